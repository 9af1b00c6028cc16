from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings

_IN_MEMORY_URLS = {"sqlite://", "sqlite:///:memory:"}


def engine_options(database_url: str) -> dict:
    """Return ``create_engine`` keyword arguments suited to ``database_url``.

    SQLite connections are shared across FastAPI's worker threads, and an
    in-memory database has to live on a single connection or every new
    connection would see an empty schema.
    """
    if not database_url.startswith("sqlite"):
        return {}
    options: dict = {"connect_args": {"check_same_thread": False}}
    if database_url in _IN_MEMORY_URLS:
        options["poolclass"] = StaticPool
    return options


engine = create_engine(settings.database_url, **engine_options(settings.database_url))

SessionLocal = sessionmaker(bind=engine, autoflush=False)


class Base(DeclarativeBase):
    pass


def get_db():
    """Yield a database session and make sure it is always closed.

    The record store commits or rolls back explicitly on every write.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope():
    """Provide a transactional scope around a series of operations."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

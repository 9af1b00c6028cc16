import os
from collections import defaultdict
from datetime import date

# Settings are read at import time; keep the app's own engine unseeded.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SEED_ON_STARTUP", "false")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from user_management import models  # noqa: E402
from user_management.data_context import SqlAlchemyDataContext  # noqa: E402
from user_management.database import Base, get_db  # noqa: E402
from user_management.main import create_app  # noqa: E402
from user_management.results import InvalidArgumentError  # noqa: E402
from user_management.seeds import seed_defaults  # noqa: E402

# In-memory SQLite database shared across connections via StaticPool.
TEST_DATABASE_URL = "sqlite://"

engine_test = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine_test)


class InMemoryDataContext:
    """Record store that keeps entities in plain lists.

    Ids are assigned per entity type and never reused, like the real store.
    """

    def __init__(self) -> None:
        self.tables = defaultdict(list)
        self._next_ids = defaultdict(lambda: 1)

    def get_all(self, entity_type):
        return list(self.tables[entity_type])

    def create(self, entity):
        if entity is None:
            raise InvalidArgumentError("entity must not be None")
        entity_type = type(entity)
        if entity.id is None:
            entity.id = self._next_ids[entity_type]
        self._next_ids[entity_type] = max(self._next_ids[entity_type], entity.id + 1)
        self.tables[entity_type].append(entity)
        return entity

    def update(self, entity):
        if entity is None:
            raise InvalidArgumentError("entity must not be None")
        return entity

    def delete(self, entity):
        if entity is None:
            raise InvalidArgumentError("entity must not be None")
        self.tables[type(entity)].remove(entity)

    def discard(self, entity):
        if entity is None:
            raise InvalidArgumentError("entity must not be None")


def make_user(
    user_id=None,
    forename="Roy",
    surname="Waller",
    email="roy@waller.com",
    is_active=True,
    date_of_birth=date(2000, 1, 1),
) -> models.User:
    return models.User(
        id=user_id,
        forename=forename,
        surname=surname,
        email=email,
        is_active=is_active,
        date_of_birth=date_of_birth,
    )


@pytest.fixture()
def memory_store():
    return InMemoryDataContext()


@pytest.fixture()
def db_session():
    """Provide a fresh test database session for each test.

    The schema is dropped and recreated for every test function,
    ensuring complete isolation between tests.
    """
    Base.metadata.drop_all(bind=engine_test)
    Base.metadata.create_all(bind=engine_test)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def sql_store(db_session):
    return SqlAlchemyDataContext(db_session)


@pytest.fixture()
def seeded(db_session):
    """Load the eleven default users and their ``Add`` logs."""
    seed_defaults(db_session)
    db_session.commit()
    return db_session


@pytest.fixture()
def app():
    return create_app()


@pytest.fixture()
def client(app, db_session):
    """TestClient whose requests share the in-memory test database."""

    def override_get_db():
        try:
            yield db_session
        finally:
            # Session cleanup is handled by the db_session fixture.
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def user_factory(db_session):
    """Create users directly in the test database, bypassing the services."""

    def _create_user(email: str, forename: str = "Jane", surname: str = "Doe", is_active: bool = True) -> models.User:
        user = make_user(email=email, forename=forename, surname=surname, is_active=is_active)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _create_user

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


class User(Base):
    __tablename__ = "users"
    # AUTOINCREMENT keeps SQLite from handing out the id of a deleted row again.
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    forename: Mapped[str] = mapped_column(String(255), nullable=False)
    surname: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, email={self.email!r})"


class Log(Base):
    """One entry of the append-only activity log.

    ``user_id`` is deliberately not a foreign key: entries outlive the user
    they describe.
    """

    __tablename__ = "logs"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    owner: Mapped[str] = mapped_column(String(255), nullable=False)
    action: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    change: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)

    def __init__(self, **kwargs) -> None:
        # Stamp at construction so the entry validates before it is inserted.
        kwargs.setdefault("timestamp", datetime.now())
        super().__init__(**kwargs)

    def __repr__(self) -> str:
        return f"Log(id={self.id!r}, user_id={self.user_id!r}, action={self.action!r})"

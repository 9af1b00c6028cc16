import argparse
import logging
import re
from datetime import date, datetime

from faker import Faker
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from . import models
from .config import settings
from .data_context import SqlAlchemyDataContext
from .database import Base, engine, session_scope
from .services.log_service import LogService
from .services.user_service import UserService

logger = logging.getLogger(__name__)

fake = Faker()
Faker.seed(1234)

SEED_LOG_TIMESTAMP = datetime(2000, 1, 1)

DEFAULT_USERS = [
    (1, "Peter", "Loew", "ploew@example.com", True, date(2004, 12, 3)),
    (2, "Benjamin Franklin", "Gates", "bfgates@example.com", True, date(1989, 3, 28)),
    (3, "Castor", "Troy", "ctroy@example.com", False, date(1970, 6, 1)),
    (4, "Memphis", "Raines", "mraines@example.com", True, date(2000, 1, 11)),
    (5, "Stanley", "Goodspeed", "sgodspeed@example.com", True, date(1997, 2, 12)),
    (6, "H.I.", "McDunnough", "himcdunnough@example.com", True, date(1965, 12, 12)),
    (7, "Cameron", "Poe", "cpoe@example.com", False, date(1988, 8, 17)),
    (8, "Edward", "Malus", "emalus@example.com", False, date(1977, 9, 21)),
    (9, "Damon", "Macready", "dmacready@example.com", False, date(2001, 3, 7)),
    (10, "Johnny", "Blaze", "jblaze@example.com", True, date(1981, 10, 1)),
    (11, "Robin", "Feld", "rfeld@example.com", True, date(1999, 12, 25)),
]


def seed_defaults(session: Session) -> bool:
    """Insert the fixture users and their ``Add`` logs into an empty store.

    Returns ``False`` without touching anything when users already exist.
    """
    if session.scalar(select(func.count()).select_from(models.User)):
        return False

    for user_id, forename, surname, email, is_active, date_of_birth in DEFAULT_USERS:
        session.add(
            models.User(
                id=user_id,
                forename=forename,
                surname=surname,
                email=email,
                is_active=is_active,
                date_of_birth=date_of_birth,
            )
        )
        session.add(
            models.Log(
                id=user_id,
                user_id=user_id,
                owner=settings.log_owner,
                action="Add",
                change="N/A",
                timestamp=SEED_LOG_TIMESTAMP,
            )
        )
    session.flush()
    logger.info("Seeded %d default users", len(DEFAULT_USERS))
    return True


def _letters(value: str) -> str:
    return re.sub(r"[^A-Za-z ]", "", value).strip()


def seed_extra_users(session: Session, count: int) -> int:
    """Add ``count`` generated users through the services, logging each one.

    Returns how many were accepted; generated duplicates are skipped.
    """
    data_context = SqlAlchemyDataContext(session)
    user_service = UserService(data_context)
    log_service = LogService(data_context)

    created = 0
    for _ in range(count):
        forename = _letters(fake.first_name()) or "Alex"
        surname = _letters(fake.last_name()) or "Smith"
        email = f"{forename}.{surname}{fake.random_int(1, 9999)}@example.com".replace(" ", "").lower()
        user = models.User(
            forename=forename,
            surname=surname,
            email=email,
            is_active=fake.boolean(chance_of_getting_true=75),
            date_of_birth=fake.date_of_birth(minimum_age=18, maximum_age=70),
        )
        if not user_service.add_user(user):
            continue
        log_service.add_log(
            models.Log(
                user_id=user.id,
                owner=settings.log_owner,
                action="Add",
                change=f"Added User {forename} {surname}",
            )
        )
        created += 1
    return created


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the user management database.")
    parser.add_argument(
        "--extra-users",
        type=int,
        default=0,
        help="Number of generated users to add after the defaults (default: 0).",
    )
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level)
    Base.metadata.create_all(bind=engine)
    with session_scope() as session:
        seed_defaults(session)
        created = seed_extra_users(session, args.extra_users)

    print(f"Seeding complete ({created} extra users).")


if __name__ == "__main__":
    main()

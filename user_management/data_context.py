"""Generic record store consumed by the services."""

from abc import abstractmethod
from typing import List, Protocol, Type, TypeVar

from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .results import InvalidArgumentError

T = TypeVar("T")


class StoreError(RuntimeError):
    """A write could not be committed; the session was rolled back."""


class IntegrityViolationError(StoreError):
    """A write broke a store-level constraint such as a unique index."""


class DataContext(Protocol):
    """Typed create/read/update/delete store keyed by entity type."""

    @abstractmethod
    def get_all(self, entity_type: Type[T]) -> List[T]:
        """Return every stored entity of ``entity_type``."""
        ...

    @abstractmethod
    def create(self, entity: T) -> T:
        """Persist a new entity and return it with its id assigned."""
        ...

    @abstractmethod
    def update(self, entity: T) -> T:
        """Persist changes made to an existing entity."""
        ...

    @abstractmethod
    def delete(self, entity: T) -> None:
        """Physically remove an entity."""
        ...

    @abstractmethod
    def discard(self, entity: T) -> None:
        """Drop unsaved changes made to a stored entity."""
        ...


def _require(entity, name: str = "entity") -> None:
    if entity is None:
        raise InvalidArgumentError(f"{name} must not be None")


class SqlAlchemyDataContext:
    """:class:`DataContext` backed by a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_all(self, entity_type: Type[T]) -> List[T]:
        stmt = select(entity_type).order_by(*inspect(entity_type).primary_key)
        return list(self._session.scalars(stmt).all())

    def create(self, entity: T) -> T:
        _require(entity)
        self._session.add(entity)
        self._commit()
        self._session.refresh(entity)
        return entity

    def update(self, entity: T) -> T:
        _require(entity)
        if entity not in self._session:
            entity = self._session.merge(entity)
        self._commit()
        self._session.refresh(entity)
        return entity

    def delete(self, entity: T) -> None:
        _require(entity)
        self._session.delete(entity)
        self._commit()

    def discard(self, entity: T) -> None:
        _require(entity)
        if inspect(entity).persistent:
            self._session.refresh(entity)

    def _commit(self) -> None:
        try:
            self._session.commit()
        except IntegrityError as exc:
            self._session.rollback()
            raise IntegrityViolationError("Database constraint violated") from exc
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StoreError("Database commit failed") from exc

import logging
from typing import List, Optional

from .. import models, schemas
from ..data_context import DataContext
from ..results import ErrorKind, InvalidArgumentError, ServiceResult

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "Email already exists."


def _not_found(user_id) -> ServiceResult:
    return ServiceResult.fail(f"User with ID {user_id} not found.", ErrorKind.NOT_FOUND)


def _shape_errors(user: models.User) -> Optional[ServiceResult]:
    errors = schemas.validate_entity(schemas.UserForm, user)
    if not errors:
        return None
    return ServiceResult.fail("; ".join(error.msg for error in errors))


class UserService:
    """Validates and mutates users.

    Every check reads the full user list from the store, so field shape is
    validated first, then existence, then email uniqueness. Logging of the
    change itself is left to the caller.
    """

    def __init__(self, data_context: DataContext) -> None:
        self._data = data_context

    def get_all(self) -> List[models.User]:
        return self._data.get_all(models.User)

    def filter_by_active(self, is_active: bool) -> List[models.User]:
        return [user for user in self.get_all() if user.is_active == is_active]

    def filter_by_id(self, user_id: int) -> Optional[models.User]:
        return next((user for user in self.get_all() if user.id == user_id), None)

    def add_user(self, user: Optional[models.User]) -> ServiceResult:
        if user is None:
            raise InvalidArgumentError("user must not be None")

        invalid = _shape_errors(user)
        if invalid is not None:
            logger.warning("Rejected new user: %s", invalid.error_message)
            return invalid

        if any(existing.email == user.email for existing in self.get_all()):
            logger.warning("Rejected new user: email %s is taken", user.email)
            return ServiceResult.fail(EMAIL_TAKEN)

        self._data.create(user)
        logger.info("Created user %s (%s)", user.id, user.email)
        return ServiceResult.success()

    def update_user(self, user: Optional[models.User]) -> ServiceResult:
        """Overwrite the stored user whose id matches ``user.id``.

        ``user`` may be a detached copy; only the stored record is written.
        If ``user`` is the stored record itself, a rejected update reloads it
        so its edits are not committed by a later write on the same session.
        """
        if user is None:
            raise InvalidArgumentError("user must not be None")

        invalid = _shape_errors(user)
        if invalid is not None:
            logger.warning("Rejected update of user %s: %s", user.id, invalid.error_message)
            self._data.discard(user)
            return invalid

        users = self.get_all()
        existing = next((u for u in users if u.id == user.id), None)
        if existing is None:
            return _not_found(user.id)

        if any(u.email == user.email and u.id != user.id for u in users):
            logger.warning("Rejected update of user %s: email %s is taken", user.id, user.email)
            self._data.discard(user)
            return ServiceResult.fail(EMAIL_TAKEN)

        existing.forename = user.forename
        existing.surname = user.surname
        existing.email = user.email
        existing.is_active = bool(user.is_active)
        existing.date_of_birth = user.date_of_birth

        self._data.update(existing)
        logger.info("Updated user %s", existing.id)
        return ServiceResult.success()

    def delete_user(self, user_id: int) -> ServiceResult:
        user = self.filter_by_id(user_id)
        if user is None:
            return _not_found(user_id)

        self._data.delete(user)
        logger.info("Deleted user %s", user_id)
        return ServiceResult.success()

import logging
from typing import List, Optional

from .. import models, schemas
from ..data_context import DataContext
from ..results import InvalidArgumentError, ServiceResult

logger = logging.getLogger(__name__)


def _newest_first(logs: List[models.Log]) -> List[models.Log]:
    return sorted(logs, key=lambda log: log.timestamp, reverse=True)


class LogService:
    def __init__(self, data_context: DataContext) -> None:
        self._data = data_context

    def get_all(self) -> List[models.Log]:
        return self._data.get_all(models.Log)

    def count(self) -> int:
        return len(self.get_all())

    def filter_all_by_action(self, action: str) -> List[models.Log]:
        """Return logs with ``action``, newest first."""
        if action is None or not action.strip():
            raise InvalidArgumentError("Action must be provided")
        return _newest_first([log for log in self.get_all() if log.action == action])

    def filter_all_by_user_id(self, user_id: int) -> List[models.Log]:
        return [log for log in self.get_all() if log.user_id == user_id]

    def filter_all_by_id(self, log_id: int) -> Optional[models.Log]:
        return next((log for log in self.get_all() if log.id == log_id), None)

    def add_log(self, log: Optional[models.Log]) -> ServiceResult:
        if log is None:
            raise InvalidArgumentError("log must not be None")

        errors = schemas.validate_entity(schemas.LogForm, log)
        if errors:
            message = "; ".join(error.msg for error in errors)
            logger.warning("Rejected log entry for user %s: %s", log.user_id, message)
            return ServiceResult.fail(message)

        self._data.create(log)
        logger.debug("Recorded %s for user %s", log.action, log.user_id)
        return ServiceResult.success()

    def get_paged(self, page: int, page_size: int) -> List[models.Log]:
        """Return one page of logs ordered by timestamp, newest first.

        Pages are 1-based; the last page may be short or empty.
        """
        if page <= 0:
            raise InvalidArgumentError("Page must be greater than zero")
        if page_size <= 0:
            raise InvalidArgumentError("Page size must be greater than zero")

        offset = (page - 1) * page_size
        return _newest_first(self.get_all())[offset:offset + page_size]

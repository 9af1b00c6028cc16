"""Outcome values shared by the service layer.

Recoverable failures (a rejected form, a missing record) come back as a
:class:`ServiceResult`; passing ``None`` or an out-of-range argument is a
caller bug and raises :class:`InvalidArgumentError` instead.
"""

import enum
from dataclasses import dataclass
from typing import Optional


class InvalidArgumentError(ValueError):
    """Raised when a required argument is absent or out of range."""


class ErrorKind(str, enum.Enum):
    VALIDATION_FAILED = "validation_failed"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ServiceResult:
    is_valid: bool
    error_message: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def success(cls) -> "ServiceResult":
        return cls(is_valid=True)

    @classmethod
    def fail(cls, message: str, kind: ErrorKind = ErrorKind.VALIDATION_FAILED) -> "ServiceResult":
        return cls(is_valid=False, error_message=message, error_kind=kind)

    @property
    def is_not_found(self) -> bool:
        return self.error_kind is ErrorKind.NOT_FOUND

    def __bool__(self) -> bool:
        return self.is_valid

import re
from datetime import date, datetime
from typing import Any, List, Optional, Type

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic_core import PydanticCustomError

_NAME_PATTERN = re.compile(r"[A-Za-z\s]+")


class ValidationResult(BaseModel):
    loc: str
    msg: str


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _required(label: str) -> PydanticCustomError:
    return PydanticCustomError("required", "{label} is required", {"label": label})


# ----- Forms -----


class UserForm(BaseModel):
    """Field-shape rules for a user; the service checks uniqueness separately."""

    forename: str
    surname: str
    email: str
    is_active: Optional[bool] = None
    date_of_birth: date

    @field_validator("forename", "surname", mode="before")
    @classmethod
    def letters_only(cls, value, info):
        label = info.field_name.capitalize()
        if _is_blank(value):
            raise _required(label)
        if not isinstance(value, str) or not _NAME_PATTERN.fullmatch(value):
            raise PydanticCustomError(
                "letters_only", "{label} must contain only letters", {"label": label}
            )
        return value

    @field_validator("email", mode="before")
    @classmethod
    def email_format(cls, value):
        if _is_blank(value):
            raise _required("Email")
        try:
            validate_email(
                str(value),
                check_deliverability=False,
                globally_deliverable=False,
                test_environment=True,
            )
        except EmailNotValidError:
            raise PydanticCustomError("email_format", "Wrong Email Format")
        return value

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def date_required(cls, value):
        if _is_blank(value):
            raise _required("Date of Birth")
        if isinstance(value, str):
            try:
                return date.fromisoformat(value.strip())
            except ValueError:
                raise PydanticCustomError("date_format", "Date of Birth must be a valid date")
        return value


class LogForm(BaseModel):
    user_id: int
    owner: str
    action: str
    change: str
    timestamp: datetime

    @field_validator("user_id", mode="before")
    @classmethod
    def user_id_required(cls, value):
        if value is None:
            raise _required("User id")
        return value

    @field_validator("owner", "action", "change", mode="before")
    @classmethod
    def not_blank(cls, value, info):
        if _is_blank(value):
            raise _required(info.field_name.capitalize())
        return value

    @field_validator("timestamp", mode="before")
    @classmethod
    def timestamp_required(cls, value):
        if value is None:
            raise _required("Timestamp")
        return value


def format_errors(exc: ValidationError) -> List[ValidationResult]:
    return [
        ValidationResult(loc=".".join(str(p) for p in error["loc"]), msg=error["msg"])
        for error in exc.errors()
    ]


def validate_entity(form: Type[BaseModel], entity: Any) -> List[ValidationResult]:
    """Run ``form``'s rules over the attributes of an ORM entity."""
    try:
        form.model_validate(entity, from_attributes=True)
    except ValidationError as exc:
        return format_errors(exc)
    return []


# ----- View models -----


class UserListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    forename: str
    surname: str
    email: str
    is_active: bool
    date_of_birth: date


class UserList(BaseModel):
    items: List[UserListItem] = []


class LogEntryItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    owner: str = ""
    action: Optional[str] = None
    change: str = ""
    timestamp: datetime


class UserDetails(BaseModel):
    user: UserListItem
    logs: List[LogEntryItem] = []


class LogPage(BaseModel):
    items: List[LogEntryItem] = []
    current_page: int = 1
    total_pages: int = 0

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

from .. import models, schemas
from ..config import settings
from ..data_context import IntegrityViolationError
from ..dependencies import get_log_service, get_user_service
from ..results import ServiceResult
from ..services.log_service import LogService
from ..services.user_service import EMAIL_TAKEN, UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))
templates.env.globals["app_name"] = settings.app_name


def _extract_form_values(form_data) -> dict:
    if hasattr(form_data, "multi_items"):
        return {key: value for key, value in form_data.multi_items()}
    return dict(form_data)


def _parse_user_form(form_data) -> Tuple[Optional[schemas.UserForm], List[schemas.ValidationResult]]:
    payload = {
        "forename": (form_data.get("forename") or "").strip(),
        "surname": (form_data.get("surname") or "").strip(),
        "email": (form_data.get("email") or "").strip(),
        "is_active": form_data.get("is_active") == "on",
        "date_of_birth": form_data.get("date_of_birth") or None,
    }
    try:
        return schemas.UserForm(**payload), []
    except ValidationError as exc:
        return None, schemas.format_errors(exc)


def build_edit_change_log(current: models.User, updated: schemas.UserForm) -> str:
    """Describe, one line per field, how ``updated`` differs from ``current``."""
    changes = []
    if current.forename != updated.forename:
        changes.append(f"Forename changed from {current.forename} to {updated.forename}")
    if current.surname != updated.surname:
        changes.append(f"Surname changed from {current.surname} to {updated.surname}")
    if current.email != updated.email:
        changes.append(f"Email changed from {current.email} to {updated.email}")
    if current.is_active != updated.is_active:
        changes.append(f"IsActive changed from {current.is_active} to {updated.is_active}")
    if current.date_of_birth != updated.date_of_birth:
        changes.append(
            f"Date of Birth changed from {current.date_of_birth} to {updated.date_of_birth}"
        )
    if not changes:
        return "No changes made"
    return "\n".join(changes)


def record_action(log_service: LogService, user_id: int, action: str, change: str) -> None:
    result = log_service.add_log(
        models.Log(user_id=user_id, owner=settings.log_owner, action=action, change=change)
    )
    if not result:
        logger.warning("Could not record %s for user %s: %s", action, user_id, result.error_message)


def _get_user_or_404(user_service: UserService, user_id: int) -> models.User:
    user = user_service.filter_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    return user


def _render_form(request: Request, user_id: Optional[int], form_values: dict, errors, page_title: str):
    return templates.TemplateResponse(
        request,
        "users/form.html",
        {
            "user_id": user_id,
            "form_values": form_values,
            "errors": errors,
            "page_title": page_title,
        },
        status_code=status.HTTP_400_BAD_REQUEST if errors else status.HTTP_200_OK,
    )


def _result_errors(result: ServiceResult) -> List[schemas.ValidationResult]:
    return [schemas.ValidationResult(loc="", msg=result.error_message or "An unknown error occurred.")]


@router.get("", response_class=HTMLResponse)
def list_users(
    request: Request,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    user_service: UserService = Depends(get_user_service),
):
    if status_filter in ("active", "inactive"):
        users = user_service.filter_by_active(status_filter == "active")
    else:
        users = user_service.get_all()

    model = schemas.UserList(
        items=sorted(
            (schemas.UserListItem.model_validate(user) for user in users),
            key=lambda item: item.id,
        )
    )
    return templates.TemplateResponse(
        request,
        "users/list.html",
        {"model": model, "status": status_filter, "page_title": "Users"},
    )


@router.get("/add", response_class=HTMLResponse)
def add_user_form(request: Request):
    return _render_form(request, None, {}, [], "Add User")


@router.post("/add", response_class=HTMLResponse)
async def add_user(
    request: Request,
    user_service: UserService = Depends(get_user_service),
    log_service: LogService = Depends(get_log_service),
):
    form_data = await request.form()
    form_values = _extract_form_values(form_data)
    validated, errors = _parse_user_form(form_data)
    if errors or validated is None:
        return _render_form(request, None, form_values, errors, "Add User")

    user = models.User(
        forename=validated.forename,
        surname=validated.surname,
        email=validated.email,
        is_active=True,
        date_of_birth=validated.date_of_birth,
    )
    try:
        result = user_service.add_user(user)
    except IntegrityViolationError:
        result = ServiceResult.fail(EMAIL_TAKEN)
    if not result:
        return _render_form(request, None, form_values, _result_errors(result), "Add User")

    record_action(log_service, user.id, "Add", f"Added User {user.forename} {user.surname}")
    return RedirectResponse(url="/users", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/{user_id}", response_class=HTMLResponse)
def view_user(
    user_id: int,
    request: Request,
    user_service: UserService = Depends(get_user_service),
    log_service: LogService = Depends(get_log_service),
):
    user = _get_user_or_404(user_service, user_id)
    record_action(log_service, user.id, "View", "N/A")

    details = schemas.UserDetails(
        user=schemas.UserListItem.model_validate(user),
        logs=[
            schemas.LogEntryItem.model_validate(log)
            for log in log_service.filter_all_by_user_id(user.id)
        ],
    )
    return templates.TemplateResponse(
        request,
        "users/view.html",
        {"model": details, "page_title": f"{user.forename} {user.surname}"},
    )


@router.get("/{user_id}/edit", response_class=HTMLResponse)
def edit_user_form(
    user_id: int,
    request: Request,
    user_service: UserService = Depends(get_user_service),
):
    user = _get_user_or_404(user_service, user_id)
    form_values = {
        "forename": user.forename,
        "surname": user.surname,
        "email": user.email,
        "is_active": "on" if user.is_active else "",
        "date_of_birth": user.date_of_birth.isoformat(),
    }
    return _render_form(request, user.id, form_values, [], "Edit User")


@router.post("/{user_id}/edit", response_class=HTMLResponse)
async def edit_user(
    user_id: int,
    request: Request,
    user_service: UserService = Depends(get_user_service),
    log_service: LogService = Depends(get_log_service),
):
    existing = _get_user_or_404(user_service, user_id)

    form_data = await request.form()
    form_values = _extract_form_values(form_data)
    validated, errors = _parse_user_form(form_data)
    if errors or validated is None:
        return _render_form(request, user_id, form_values, errors, "Edit User")

    change_log = build_edit_change_log(existing, validated)

    # Detached copy: the stored record is only touched once the update passes.
    candidate = models.User(
        id=user_id,
        forename=validated.forename,
        surname=validated.surname,
        email=validated.email,
        is_active=bool(validated.is_active),
        date_of_birth=validated.date_of_birth,
    )
    try:
        result = user_service.update_user(candidate)
    except IntegrityViolationError:
        result = ServiceResult.fail(EMAIL_TAKEN)
    if result.is_not_found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    if not result:
        return _render_form(request, user_id, form_values, _result_errors(result), "Edit User")

    record_action(log_service, user_id, "Edit", change_log)
    return RedirectResponse(url="/users", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/{user_id}/delete", response_class=HTMLResponse)
def delete_user_form(
    user_id: int,
    request: Request,
    user_service: UserService = Depends(get_user_service),
):
    user = _get_user_or_404(user_service, user_id)
    return templates.TemplateResponse(
        request,
        "users/delete.html",
        {"user": schemas.UserListItem.model_validate(user), "page_title": "Delete User"},
    )


@router.post("/{user_id}/delete")
def delete_user(
    user_id: int,
    user_service: UserService = Depends(get_user_service),
    log_service: LogService = Depends(get_log_service),
):
    result = user_service.delete_user(user_id)
    if result.is_not_found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")

    record_action(log_service, user_id, "Delete", "User Deleted")
    return RedirectResponse(url="/users", status_code=status.HTTP_303_SEE_OTHER)

import math
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from .. import schemas
from ..config import settings
from ..dependencies import get_log_service
from ..results import InvalidArgumentError
from ..services.log_service import LogService

router = APIRouter(prefix="/logs", tags=["logs"])

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))
templates.env.globals["app_name"] = settings.app_name


def _render_list(request: Request, model: schemas.LogPage, page_title: str, page_size: Optional[int] = None):
    return templates.TemplateResponse(
        request,
        "logs/list.html",
        {"model": model, "page_size": page_size, "page_title": page_title},
    )


@router.get("", response_class=HTMLResponse)
def list_logs(
    request: Request,
    page: int = 1,
    page_size: int = settings.default_page_size,
    log_service: LogService = Depends(get_log_service),
):
    try:
        logs = log_service.get_paged(page, page_size)
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    model = schemas.LogPage(
        items=[schemas.LogEntryItem.model_validate(log) for log in logs],
        current_page=page,
        total_pages=math.ceil(log_service.count() / page_size),
    )
    return _render_list(request, model, "Activity log", page_size=page_size)


@router.get("/user/{user_id}", response_class=HTMLResponse)
def user_logs(
    user_id: int,
    request: Request,
    log_service: LogService = Depends(get_log_service),
):
    logs = log_service.filter_all_by_user_id(user_id)
    model = schemas.LogPage(items=[schemas.LogEntryItem.model_validate(log) for log in logs])
    return _render_list(request, model, f"Activity for user {user_id}")


@router.get("/action/{action}", response_class=HTMLResponse)
def action_logs(
    action: str,
    request: Request,
    log_service: LogService = Depends(get_log_service),
):
    try:
        logs = log_service.filter_all_by_action(action)
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    model = schemas.LogPage(items=[schemas.LogEntryItem.model_validate(log) for log in logs])
    return _render_list(request, model, f"{action} activity")


@router.get("/{log_id}", response_class=HTMLResponse)
def view_log(
    log_id: int,
    request: Request,
    log_service: LogService = Depends(get_log_service),
):
    log = log_service.filter_all_by_id(log_id)
    if log is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Log entry not found.")

    return templates.TemplateResponse(
        request,
        "logs/view.html",
        {"log": schemas.LogEntryItem.model_validate(log), "page_title": f"Log {log.id}"},
    )

import logging
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import HTTPException as FastAPIHTTPException
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .database import Base, SessionLocal, engine
from .results import InvalidArgumentError
from .routes import logs as logs_routes
from .routes import users as users_routes
from .seeds import seed_defaults

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

base_path = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(base_path / "templates"))
templates.env.globals["app_name"] = settings.app_name


def on_startup() -> None:
    """Create the schema and, unless disabled, seed the default users."""
    Base.metadata.create_all(bind=engine)
    if not settings.seed_on_startup:
        return

    db = SessionLocal()
    try:
        seed_defaults(db)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    finally:
        db.close()


def landing() -> RedirectResponse:
    return RedirectResponse(url="/users", status_code=status.HTTP_303_SEE_OTHER)


def _wants_html(request: Request) -> bool:
    accept = request.headers.get("accept", "")
    return "text/html" in accept or "*/*" in accept


def _error_response(request: Request, detail, status_code: int):
    if _wants_html(request):
        template_name = "errors/404.html" if status_code == 404 else "errors/generic.html"
        return templates.TemplateResponse(
            request,
            template_name,
            {"detail": detail, "status_code": status_code},
            status_code=status_code,
        )
    return JSONResponse({"detail": detail}, status_code=status_code)


async def http_exception_handler(request: Request, exc: FastAPIHTTPException):
    return _error_response(request, exc.detail, exc.status_code)


async def invalid_argument_handler(request: Request, exc: InvalidArgumentError):
    logger.warning("Invalid argument on %s: %s", request.url.path, exc)
    return _error_response(request, str(exc), status.HTTP_400_BAD_REQUEST)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled application error", exc_info=exc)
    return _error_response(request, "Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)


def create_app() -> FastAPI:
    """Build the application with its routers, error handlers and startup hook."""
    application = FastAPI(
        title=settings.app_name,
        description="Maintain users and browse the log of actions taken on them.",
    )
    application.add_event_handler("startup", on_startup)

    application.add_exception_handler(FastAPIHTTPException, http_exception_handler)
    application.add_exception_handler(InvalidArgumentError, invalid_argument_handler)
    application.add_exception_handler(Exception, unhandled_exception_handler)

    application.add_api_route("/", landing, methods=["GET"], include_in_schema=False)
    application.include_router(users_routes.router)
    application.include_router(logs_routes.router)
    return application


app = create_app()

"""FastAPI application for Taskhub.

``create_app(config)`` assembles the API: the health, auth, project, task
and seed routers under ``config.web.api_prefix``, CORS, request logging,
and exception handlers that turn every failure into the standard response
envelope:

- TaskhubError subclasses keep their own status and code
- request-model validation errors become 400 ``validation.failed``
- lost database connections become 503 ``storage.unavailable``
- anything else becomes a logged 500 ``internal.server.error``

Run it with ``taskhub serve`` or any ASGI server.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskhub import __version__
from taskhub.config import TaskhubConfig
from taskhub.database.connection import get_engine, get_session_factory
from taskhub.errors import TaskhubError
from taskhub.logging import get_logger
from taskhub.web.envelope import error_response
from taskhub.web.middleware import RequestLoggingMiddleware
from taskhub.web.routes.auth import create_auth_router
from taskhub.web.routes.health import create_health_router
from taskhub.web.routes.projects import create_projects_router
from taskhub.web.routes.seed import create_seed_router
from taskhub.web.routes.tasks import create_tasks_router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)

ROUTER_FACTORIES: tuple[Callable[[], APIRouter], ...] = (
    create_health_router,
    create_auth_router,
    create_projects_router,
    create_tasks_router,
    create_seed_router,
)

_HTTP_CODES = {
    401: "auth.unauthorized",
    403: "access.denied",
    404: "resource.not.found",
    405: "method.not.allowed",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the database engine for the life of the server.

    An engine already placed on ``app.state`` (tests do this) is used as
    is and left for its owner to dispose.
    """
    config: TaskhubConfig = app.state.config
    owns_engine = app.state.engine is None

    if owns_engine:
        app.state.engine = get_engine(config.database)
        app.state.session_factory = get_session_factory(app.state.engine)
        logger.info(
            "database_engine_opened",
            sqlite=config.database.is_sqlite,
            pool_size=None if config.database.is_sqlite else config.database.pool_size,
        )

    try:
        yield
    finally:
        if owns_engine:
            await app.state.engine.dispose()
            app.state.engine = None
            logger.info("database_engine_disposed")


async def handle_taskhub_error(request: Request, exc: TaskhubError) -> JSONResponse:
    logger.info(
        "request_rejected",
        path=request.url.path,
        status_code=exc.status_code,
        code=exc.code,
    )
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return error_response(exc.status_code, exc.code, exc.errors, headers=headers)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        errors.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    logger.info("request_validation_failed", path=request.url.path, errors=errors)
    return error_response(400, "validation.failed", errors)


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _HTTP_CODES.get(exc.status_code, "http.error")
    return error_response(
        exc.status_code,
        code,
        [str(exc.detail)],
        headers=getattr(exc, "headers", None),
    )


async def handle_storage_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("storage_unavailable", path=request.url.path, error=str(exc), exc_info=exc)
    return error_response(503, "storage.unavailable", ["The data store is unavailable"])


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        error=str(exc),
        exc_info=exc,
    )
    return error_response(500, "internal.server.error", ["An unexpected error occurred"])


def create_app(config: TaskhubConfig | None = None) -> FastAPI:
    """Build the Taskhub ASGI application.

    Args:
        config: Settings to run with; defaults to TaskhubConfig() (TOML is
            not read here, use load_config for that).
    """
    config = config or TaskhubConfig()

    app = FastAPI(
        title="Taskhub",
        version=__version__,
        description="Task and project management API",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.engine = None
    app.state.session_factory = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RequestLoggingMiddleware,
        quiet_path_prefix=f"{config.web.api_prefix}/health",
    )

    app.add_exception_handler(TaskhubError, handle_taskhub_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, handle_http_error)  # type: ignore[arg-type]
    app.add_exception_handler(OperationalError, handle_storage_error)
    app.add_exception_handler(InterfaceError, handle_storage_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    for factory in ROUTER_FACTORIES:
        app.include_router(factory(), prefix=config.web.api_prefix)

    if config.auth.uses_development_key:
        logger.warning(
            "development_secret_key_in_use",
            hint="set TASKHUB_AUTH__SECRET_KEY or [auth] secret_key",
        )
    logger.info("app_created", api_prefix=config.web.api_prefix, version=__version__)
    return app

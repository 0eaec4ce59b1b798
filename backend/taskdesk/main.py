"""FastAPI application wiring for the task lifecycle service."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskdesk.api.tasks import router as tasks_router
from taskdesk.core.config import settings
from taskdesk.core.logging import configure_logging, get_logger
from taskdesk.db.session import init_db
from taskdesk.services.lifecycle.errors import ErrorKind, LifecycleError

logger = get_logger(__name__)

ERROR_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.STAGE_NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.VALIDATION_ERROR: 422,
    ErrorKind.INVALID_REFERENCE: 400,
    ErrorKind.INVALID_STATE: 400,
    ErrorKind.CONFLICT: 409,
}


async def lifecycle_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map typed lifecycle failures to HTTP responses."""
    if not isinstance(exc, LifecycleError):
        raise exc
    status_code = ERROR_STATUS_CODES.get(exc.kind, 400)
    logger.warning(
        "task.lifecycle.rejected",
        extra={
            "kind": exc.kind.value,
            "path": request.url.path,
            "method": request.method,
            "status_code": status_code,
        },
    )
    return JSONResponse(status_code=status_code, content={"detail": exc.as_detail()})


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    await init_db()
    yield


def _health() -> dict[str, bool]:
    return {"ok": True}


def create_app() -> FastAPI:
    configure_logging()
    application = FastAPI(title="Taskdesk API", lifespan=lifespan)
    origins = settings.cors_origin_list()
    if origins:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=list(origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    application.add_exception_handler(LifecycleError, lifecycle_error_handler)

    application.add_api_route("/health", _health, methods=["GET"], tags=["health"])
    application.add_api_route("/healthz", _health, methods=["GET"], tags=["health"])

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.add_api_route("/health", _health, methods=["GET"], tags=["health"])
    api_v1.include_router(tasks_router)
    application.include_router(api_v1)
    return application


app = create_app()

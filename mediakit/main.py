from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from mediakit.api.v1 import get_api_router
from mediakit.core import errors
from mediakit.core.config import Settings, get_settings
from mediakit.core.logging import configure_logging, get_logger
from mediakit.services.container import ServiceContainer, build_container

request_logger = get_logger(component="http")

_ERROR_STATUS: tuple[tuple[type[errors.MediaError], int], ...] = (
    (errors.FormatIndeterminate, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE),
    (errors.FormatUnsupported, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE),
    (errors.DecodeFailed, status.HTTP_400_BAD_REQUEST),
    (errors.BodyTooLarge, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE),
    (errors.FetchFailed, status.HTTP_502_BAD_GATEWAY),
    (errors.MetadataParseFailed, status.HTTP_502_BAD_GATEWAY),
    (errors.MetadataImageMissing, status.HTTP_502_BAD_GATEWAY),
    (errors.StorageUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
)

_ERROR_CODES: dict[type[errors.MediaError], str] = {
    errors.FormatIndeterminate: "format_indeterminate",
    errors.FormatUnsupported: "format_unsupported",
    errors.DecodeFailed: "decode_failed",
    errors.EncodeFailed: "encode_failed",
    errors.TranscodeSpawnFailed: "transcode_spawn_failed",
    errors.TranscodeProcessFailed: "transcode_process_failed",
    errors.StorageUnavailable: "storage_unavailable",
    errors.MetadataParseFailed: "metadata_parse_failed",
    errors.MetadataImageMissing: "metadata_image_missing",
    errors.BodyTooLarge: "body_too_large",
    errors.FetchFailed: "fetch_failed",
    errors.SweepIOFailed: "sweep_io_failed",
}


def status_for_error(exc: errors.MediaError) -> int:
    for error_type, code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def _handle_media_error(request: Request, exc: errors.MediaError) -> JSONResponse:
    code = status_for_error(exc)
    error = _ERROR_CODES.get(type(exc), "media_error")
    if code >= 500:
        request_logger.error("request_failed", error=error, detail=str(exc), path=request.url.path)
    else:
        request_logger.warning("request_rejected", error=error, detail=str(exc), path=request.url.path)
    return JSONResponse(status_code=code, content={"error": error, "detail": str(exc)})


async def _request_event(request: Request, call_next):
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(trace_id=request.headers.get("x-trace-id") or uuid4().hex)
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = round((time.perf_counter() - start) * 1000, 2)
    fields = {
        "status": response.status_code,
        "method": request.method,
        "path": request.url.path,
        "duration_ms": duration_ms,
    }
    if response.status_code >= 500:
        request_logger.error("response", **fields)
    elif response.status_code >= 400:
        request_logger.warning("response", **fields)
    else:
        request_logger.info("response", **fields)
    return response


def create_app(settings: Settings | None = None, container: ServiceContainer | None = None) -> FastAPI:
    settings = settings or get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    configure_logging(level=log_level, json_output=not settings.is_dev)
    container = container or build_container(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = settings
        app.state.container = container
        stop_event = asyncio.Event()
        sweeper_task: asyncio.Task[None] | None = None
        if settings.enable_sweeper:
            sweeper_task = asyncio.create_task(container.sweeper.run(stop_event))
        try:
            yield
        finally:
            stop_event.set()
            if sweeper_task is not None:
                sweeper_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await sweeper_task
            await container.web.aclose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        lifespan=lifespan,
        openapi_url="/openapi.json",
        docs_url="/docs",
    )
    app.middleware("http")(_request_event)
    app.add_exception_handler(errors.MediaError, _handle_media_error)
    app.include_router(get_api_router())
    return app


__all__ = ["create_app", "status_for_error"]

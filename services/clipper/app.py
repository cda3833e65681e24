from __future__ import annotations

import logging
import shutil
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from prometheus_client import make_asgi_app

from .config import ClipperSettings
from .logs import LOGGER_NAME, bind, configure_logging
from .models import ClipResponse, CreateClipRequest, ErrorKind, ErrorResponse
from .service import ClipService, clip_failures_total

INVALID_BODY_MESSAGE = "Invalid request body. Send JSON with string fields url, startTime and endTime."

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.validation_error: 400,
    ErrorKind.acquisition_error: 500,
    ErrorKind.extraction_error: 500,
    ErrorKind.internal_error: 500,
    ErrorKind.timeout_error: 504,
}


def create_app(service: ClipService | None = None) -> FastAPI:
    configure_logging()
    service = service or ClipService()
    settings: ClipperSettings = service.settings
    settings.clips_dir.mkdir(parents=True, exist_ok=True)

    app = FastAPI(title="Video Clip Service")
    app.state.clip_service = service

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        request_id = uuid.uuid4().hex
        clip_failures_total.labels(error_kind=ErrorKind.validation_error.value).inc()
        bind(logging.getLogger(LOGGER_NAME), request_id=request_id).event(
            logging.WARNING,
            "clip_rejected",
            path=request.url.path,
            errors=exc.errors(),
        )
        body = ErrorResponse(error=INVALID_BODY_MESSAGE, error_kind=ErrorKind.validation_error, request_id=request_id)
        return JSONResponse(status_code=400, content=body.model_dump(mode="json", by_alias=True))

    @app.post(
        "/api/clip",
        response_model=ClipResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}, 504: {"model": ErrorResponse}},
    )
    def create_clip(payload: CreateClipRequest):
        outcome = service.create_clip(payload.url, payload.start_time, payload.end_time)
        if not outcome.succeeded:
            body = ErrorResponse(error=outcome.message, error_kind=outcome.error_kind, request_id=outcome.request_id)
            return JSONResponse(
                status_code=STATUS_BY_KIND[outcome.error_kind],
                content=body.model_dump(mode="json", by_alias=True),
            )
        return ClipResponse(message=outcome.message, clip_url=outcome.public_ref, request_id=outcome.request_id)

    @app.get("/healthz")
    def healthz() -> dict:
        tools = {
            "yt-dlp": shutil.which(settings.ytdlp_binary) is not None,
            "ffmpeg": shutil.which(settings.ffmpeg_binary) is not None,
        }
        return {"status": "ok" if all(tools.values()) else "degraded", "tools": tools}

    app.mount("/metrics", make_asgi_app())
    app.mount(settings.public_prefix, StaticFiles(directory=settings.clips_dir), name="clips")
    return app

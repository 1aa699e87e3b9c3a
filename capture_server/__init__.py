"""Application factory for the capture server."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .correlation import install_request_id_middleware
from .routes import build_capture_router
from .services import CaptureError, CaptureService, StorageError
from .store import CaptureStore

__version__ = "0.1.0"

logger = logging.getLogger("capture_server")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[CaptureStore] = None,
) -> FastAPI:
    """Instantiate the FastAPI application with configured dependencies."""

    settings = settings or Settings()

    store = store or CaptureStore(
        settings.captures_dir,
        extension=settings.extension,
        heading=settings.heading,
    )
    service = CaptureService(
        store=store,
        default_topic=settings.default_topic,
        sort_keys=settings.sort_keys,
    )

    app = FastAPI(title=settings.app_name, version=settings.app_version)
    app.state.settings = settings
    app.state.capture_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    install_request_id_middleware(app)

    app.include_router(build_capture_router(service=service))

    @app.exception_handler(CaptureError)
    async def capture_error_handler(_: Request, exc: CaptureError) -> JSONResponse:
        return _error(400, str(exc))

    @app.exception_handler(StorageError)
    async def storage_error_handler(_: Request, exc: StorageError) -> JSONResponse:
        logger.error("capture storage failure", exc_info=exc)
        return _error(500, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unknown paths and unsupported methods share one response shape.
        if exc.status_code in (404, 405):
            return _error(404, "not found")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(_: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled capture failure", exc_info=exc)
        return _error(500, "Unexpected error")  # do not leak internals

    return app


__all__ = ["create_app", "Settings", "CaptureService", "CaptureStore", "__version__"]

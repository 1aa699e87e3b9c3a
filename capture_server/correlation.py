"""Request ID middleware for the capture server."""

from __future__ import annotations

import logging
import uuid
from typing import Awaitable, Callable

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .logging_setup import get_request_id, set_request_id

REQUEST_ID_HEADER = "X-Request-ID"

request_logger = logging.getLogger("capture_server.request")


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        set_request_id(request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4()))
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = get_request_id()
        request_logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={"method": request.method, "path": request.url.path, "status": response.status_code},
        )
        return response


def install_request_id_middleware(app: FastAPI) -> None:
    """Attach the request ID middleware to the given FastAPI app."""

    app.add_middleware(RequestIDMiddleware)


__all__ = ["REQUEST_ID_HEADER", "RequestIDMiddleware", "install_request_id_middleware"]

"""API routes for the capture server."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from .schemas import CaptureListingResponse, ErrorResponse, capture_response
from .services import CaptureService


def build_capture_router(*, service: CaptureService) -> APIRouter:
    router = APIRouter()

    @router.get("/", response_model=CaptureListingResponse)
    async def list_captures() -> CaptureListingResponse:
        listing = await run_in_threadpool(service.list_captures)
        return CaptureListingResponse.from_listing(listing)

    # "/{topic:path}" also matches "/", which resolves to the default topic.
    @router.post(
        "/{topic:path}",
        status_code=201,
        responses={200: {"description": "Duplicate payload"}, 400: {"model": ErrorResponse}},
    )
    async def capture(topic: str, request: Request) -> JSONResponse:
        body = await request.body()
        result = await run_in_threadpool(service.capture, topic, body)
        status_code = 200 if result.duplicate else 201
        return JSONResponse(capture_response(result).model_dump(), status_code=status_code)

    @router.options("/{path:path}", include_in_schema=False)
    async def options(path: str) -> Response:
        return Response(status_code=204)

    return router


__all__ = ["build_capture_router"]

"""Response bodies returned by the capture API."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from .services import CaptureListing, CaptureResult


class CaptureListingResponse(BaseModel):
    dir: str
    files: List[str] = Field(default_factory=list)

    @classmethod
    def from_listing(cls, listing: CaptureListing) -> "CaptureListingResponse":
        return cls(dir=str(listing.dir), files=list(listing.files))


class CaptureSavedResponse(BaseModel):
    saved: str
    hash: str


class CaptureDuplicateResponse(BaseModel):
    duplicate: bool = True
    file: str
    hash: str


class ErrorResponse(BaseModel):
    error: str


def capture_response(result: CaptureResult) -> CaptureSavedResponse | CaptureDuplicateResponse:
    if result.duplicate:
        return CaptureDuplicateResponse(file=str(result.file), hash=result.hash)
    return CaptureSavedResponse(saved=str(result.file), hash=result.hash)


__all__ = [
    "CaptureDuplicateResponse",
    "CaptureListingResponse",
    "CaptureSavedResponse",
    "ErrorResponse",
    "capture_response",
]

"""Request dispatch for listing and appending captures."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Union

from .hasher import JSONValue, fingerprint
from .store import CaptureStore, StorageError

logger = logging.getLogger(__name__)

DEFAULT_TOPIC = "capture"


class CaptureError(Exception):
    """Base class for client-facing capture failures."""


class MalformedPayloadError(CaptureError, ValueError):
    """Raised when a request body does not parse as JSON."""


class InvalidTopicError(CaptureError, ValueError):
    """Raised when a topic name would escape the capture directory."""


class CaptureStatus(str, Enum):
    SAVED = "saved"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class CaptureResult:
    status: CaptureStatus
    topic: str
    file: Path
    hash: str

    @property
    def duplicate(self) -> bool:
        return self.status is CaptureStatus.DUPLICATE


@dataclass(frozen=True)
class CaptureListing:
    dir: Path
    files: List[str]


def _reject_constant(name: str) -> None:
    raise ValueError(f"{name} is not valid JSON")


def validate_topic(topic: str) -> str:
    """Return ``topic`` unchanged if it names a file directly under the root."""

    if not topic or "/" in topic or "\\" in topic or "\x00" in topic or topic in {".", ".."}:
        raise InvalidTopicError(f"Invalid topic name: {topic!r}")
    return topic


def parse_payload(body: Union[bytes, str]) -> JSONValue:
    """Parse a request body strictly: UTF-8 JSON without NaN or Infinity."""

    try:
        text = body.decode("utf-8") if isinstance(body, bytes) else body
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError as exc:
        raise MalformedPayloadError(str(exc)) from exc
    except RecursionError as exc:
        raise MalformedPayloadError("JSON document is nested too deeply") from exc


class CaptureService:
    """Maps list and append requests onto a :class:`CaptureStore`."""

    def __init__(
        self,
        *,
        store: CaptureStore,
        default_topic: str = DEFAULT_TOPIC,
        sort_keys: bool = False,
    ) -> None:
        self._store = store
        self._default_topic = validate_topic(default_topic)
        self._sort_keys = sort_keys

    @property
    def store(self) -> CaptureStore:
        return self._store

    def normalize_topic(self, raw: str | None) -> str:
        return validate_topic((raw or "").strip("/") or self._default_topic)

    def list_captures(self) -> CaptureListing:
        root = self._store.ensure_root()
        return CaptureListing(dir=root, files=self._store.list_topics())

    def capture(self, raw_topic: str | None, body: Union[bytes, str]) -> CaptureResult:
        payload = parse_payload(body)
        topic = self.normalize_topic(raw_topic)
        digest = fingerprint(payload, sort_keys=self._sort_keys)

        self._store.ensure_root()
        path = self._store.path_for(topic)
        extra = {"topic": topic, "hash": digest, "file": str(path)}

        with self._store.lock(topic):
            if self._store.is_duplicate(topic, digest):
                logger.info(f"duplicate skipped [{digest}] -> {path}", extra=extra)
                return CaptureResult(status=CaptureStatus.DUPLICATE, topic=topic, file=path, hash=digest)
            self._store.append(topic, payload, digest)

        logger.info(f"appended [{digest}] -> {path}", extra=extra)
        return CaptureResult(status=CaptureStatus.SAVED, topic=topic, file=path, hash=digest)


__all__ = [
    "CaptureError",
    "CaptureListing",
    "CaptureResult",
    "CaptureService",
    "CaptureStatus",
    "DEFAULT_TOPIC",
    "InvalidTopicError",
    "MalformedPayloadError",
    "StorageError",
    "parse_payload",
    "validate_topic",
]

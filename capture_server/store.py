"""Append-only Markdown capture logs, one file per topic."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Dict, Iterator, List

from .hasher import JSONValue, dumps_json

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".md"
DEFAULT_HEADING = "# Captures"


class StorageError(RuntimeError):
    """Raised when a capture log cannot be read, created or written."""


def hash_marker(fingerprint: str) -> str:
    return f"<!-- hash:{fingerprint} -->"


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""

    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class CaptureEntry:
    fingerprint: str
    payload: JSONValue
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def timestamp(self) -> str:
        return format_timestamp(self.created_at)

    def render(self) -> str:
        lines = [
            hash_marker(self.fingerprint),
            f"## {self.timestamp}",
            "",
            "```json",
            dumps_json(self.payload, indent=2),
            "```",
            "",
        ]
        return "\n".join(lines) + "\n"


class CaptureStore:
    """Filesystem backed capture logs rooted at a single directory.

    Topic names handed to this class must already be validated; the store
    only maps them to ``<root>/<topic><extension>``.
    """

    def __init__(
        self,
        root: Path,
        *,
        extension: str = DEFAULT_EXTENSION,
        heading: str = DEFAULT_HEADING,
    ) -> None:
        self._root = Path(root)
        self._extension = extension
        self._heading = heading
        # One lock per topic seen by this process; entries are never evicted.
        self._locks: Dict[str, Lock] = {}
        self._locks_guard = Lock()

    @property
    def root(self) -> Path:
        return self._root

    @property
    def extension(self) -> str:
        return self._extension

    def ensure_root(self) -> Path:
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Unable to create capture directory {self._root}: {exc}") from exc
        return self._root

    def path_for(self, topic: str) -> Path:
        return self._root / f"{topic}{self._extension}"

    def exists(self, topic: str) -> bool:
        return self.path_for(topic).is_file()

    def list_topics(self) -> List[str]:
        """Log file names under the root, in directory enumeration order."""

        try:
            return [
                child.name
                for child in self._root.iterdir()
                if child.name.endswith(self._extension) and child.is_file()
            ]
        except OSError as exc:
            raise StorageError(f"Unable to list {self._root}: {exc}") from exc

    def is_duplicate(self, topic: str, fingerprint: str) -> bool:
        path = self.path_for(topic)
        try:
            content = path.read_bytes()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StorageError(f"Unable to read {path}: {exc}") from exc
        return hash_marker(fingerprint).encode("ascii") in content

    def append(self, topic: str, payload: JSONValue, fingerprint: str) -> CaptureEntry:
        entry = CaptureEntry(fingerprint=fingerprint, payload=payload)
        path = self.path_for(topic)
        rendered = entry.render()
        try:
            try:
                with path.open("x", encoding="utf-8", newline="") as handle:
                    handle.write(f"{self._heading}\n\n{rendered}")
                logger.debug("created capture log", extra={"topic": topic, "file": str(path)})
            except FileExistsError:
                with path.open("a", encoding="utf-8", newline="") as handle:
                    handle.write(rendered)
        except OSError as exc:
            raise StorageError(f"Unable to write {path}: {exc}") from exc
        return entry

    @contextmanager
    def lock(self, topic: str) -> Iterator[None]:
        """Hold the per-topic lock around a duplicate check and append."""

        with self._locks_guard:
            topic_lock = self._locks.setdefault(topic, Lock())
        with topic_lock:
            yield


__all__ = [
    "CaptureEntry",
    "CaptureStore",
    "DEFAULT_EXTENSION",
    "DEFAULT_HEADING",
    "StorageError",
    "format_timestamp",
    "hash_marker",
]

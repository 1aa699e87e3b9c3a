from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from capture_server.services import (
    CaptureService,
    CaptureStatus,
    InvalidTopicError,
    MalformedPayloadError,
    parse_payload,
)
from capture_server.store import CaptureStore


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("", "capture"),
        (None, "capture"),
        ("/", "capture"),
        ("logs", "logs"),
        ("/logs/", "logs"),
        ("//metrics//", "metrics"),
    ],
)
def test_normalize_topic(service: CaptureService, raw: str | None, expected: str) -> None:
    assert service.normalize_topic(raw) == expected


@pytest.mark.parametrize("raw", ["a/b", "..", "/../", "a\\b"])
def test_normalize_topic_rejects_escapes(service: CaptureService, raw: str) -> None:
    with pytest.raises(InvalidTopicError):
        service.normalize_topic(raw)


def test_custom_default_topic(store: CaptureStore) -> None:
    service = CaptureService(store=store, default_topic="inbox")
    assert service.normalize_topic("") == "inbox"


def test_parse_payload_accepts_any_json_value() -> None:
    assert parse_payload(b'{"a": 1}') == {"a": 1}
    assert parse_payload("[1, 2]") == [1, 2]
    assert parse_payload(b'"text"') == "text"
    assert parse_payload(b"null") is None


@pytest.mark.parametrize("body", [b"", b"not json", b"{", b"NaN", b"[Infinity]", b"\xff\xfe"])
def test_parse_payload_rejects_non_json(body: bytes) -> None:
    with pytest.raises(MalformedPayloadError):
        parse_payload(body)


def test_capture_then_duplicate(service: CaptureService, captures_dir: Path) -> None:
    first = service.capture("logs", b'{"a":1}')
    assert first.status is CaptureStatus.SAVED
    assert first.file == captures_dir / "logs.md"
    assert first.hash == "015abd7f5cc5"

    second = service.capture("/logs/", b'{"a": 1}')
    assert second.duplicate
    assert second.hash == first.hash
    assert second.file == first.file

    content = first.file.read_text(encoding="utf-8")
    assert content.count("<!-- hash:015abd7f5cc5 -->") == 1


def test_same_payload_in_other_topic_is_not_duplicate(service: CaptureService) -> None:
    assert service.capture("logs", b'{"a":1}').status is CaptureStatus.SAVED
    assert service.capture("metrics", b'{"a":1}').status is CaptureStatus.SAVED


def test_malformed_payload_does_not_touch_disk(service: CaptureService, captures_dir: Path) -> None:
    with pytest.raises(MalformedPayloadError):
        service.capture("metrics", b"definitely not json")
    assert not captures_dir.exists()


def test_sorted_keys_option(store: CaptureStore) -> None:
    service = CaptureService(store=store, sort_keys=True)
    assert service.capture("logs", b'{"a":1,"b":2}').status is CaptureStatus.SAVED
    assert service.capture("logs", b'{"b":2,"a":1}').duplicate


def test_insertion_order_keys_by_default(service: CaptureService) -> None:
    assert service.capture("logs", b'{"a":1,"b":2}').status is CaptureStatus.SAVED
    assert service.capture("logs", b'{"b":2,"a":1}').status is CaptureStatus.SAVED


def test_list_captures_creates_root(service: CaptureService, captures_dir: Path) -> None:
    listing = service.list_captures()
    assert listing.dir == captures_dir
    assert listing.files == []
    assert captures_dir.is_dir()


def test_concurrent_identical_captures_write_once(service: CaptureService) -> None:
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: service.capture("race", b'{"same": true}'), range(16)))

    saved = [result for result in results if result.status is CaptureStatus.SAVED]
    assert len(saved) == 1
    content = saved[0].file.read_text(encoding="utf-8")
    assert content.count("<!-- hash:") == 1


def test_parse_payload_rejects_deep_nesting() -> None:
    with pytest.raises(MalformedPayloadError, match="nested too deeply"):
        parse_payload(b"[" * 100000 + b"]" * 100000)


@pytest.mark.parametrize("default_topic", ["", "../x", "a/b", ".."])
def test_default_topic_is_validated(store: CaptureStore, default_topic: str) -> None:
    with pytest.raises(InvalidTopicError):
        CaptureService(store=store, default_topic=default_topic)

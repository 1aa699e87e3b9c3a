from __future__ import annotations

import json
import logging

from capture_server.logging_setup import JsonFormatter, configure_logging, get_request_id, set_request_id


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("capture_server.services", logging.INFO, __file__, 1, "appended", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_request_id_and_extras() -> None:
    set_request_id("req-1")
    line = JsonFormatter().format(_record(topic="logs", hash="015abd7f5cc5"))
    payload = json.loads(line)
    assert payload["message"] == "appended"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "req-1"
    assert payload["topic"] == "logs"
    assert payload["hash"] == "015abd7f5cc5"
    assert "file" not in payload


def test_get_request_id_generates_when_unset() -> None:
    set_request_id(None)
    rid = get_request_id()
    assert rid
    assert get_request_id() == rid


def test_configure_logging_installs_single_handler() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging("DEBUG")
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert root.level == logging.DEBUG
    finally:
        root.handlers = saved_handlers
        root.setLevel(saved_level)

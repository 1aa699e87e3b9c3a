import logging
import json
import sys
import uuid
from contextvars import ContextVar
from typing import Optional

# Context variable for correlation IDs
_request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

EXTRA_FIELDS = ("topic", "hash", "file", "method", "path", "status")


def get_request_id() -> str:
    rid = _request_id_ctx.get()
    if rid is None:
        rid = str(uuid.uuid4())
        _request_id_ctx.set(rid)
    return rid


def set_request_id(rid: Optional[str]) -> None:
    _request_id_ctx.set(rid)


class JsonFormatter(logging.Formatter):
    def format(self, record):
        base = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "request_id": get_request_id(),
        }
        for name in EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                base[name] = value
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base, separators=(",", ":"), ensure_ascii=False)


def configure_logging(level: str = "INFO"):
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

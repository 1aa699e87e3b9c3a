"""Entry point for running the capture server."""

from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

import uvicorn

from . import create_app
from .config import Settings, get_settings
from .logging_setup import configure_logging

logger = logging.getLogger("capture_server")


def _build_app():
    settings = get_settings()
    return create_app(settings)


app = _build_app()


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Append JSON payloads to per-topic Markdown logs.")
    parser.add_argument("--host", default=None, help="Interface to bind (default: $HOST or 0.0.0.0)")
    parser.add_argument("--port", "-p", type=int, default=None, help="Port to listen on (default: $PORT or 51741)")
    parser.add_argument(
        "--dir",
        "-d",
        dest="captures_dir",
        default=None,
        help="Directory holding capture logs (default: $JSON_SERVER_DIR)",
    )
    parser.add_argument("--log-level", default=None, help="Log level (default: $LOG_LEVEL or INFO)")
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    overrides = {
        name: value
        for name, value in (
            ("host", args.host),
            ("port", args.port),
            ("captures_dir", args.captures_dir),
            ("log_level", args.log_level),
        )
        if value is not None
    }
    return Settings(**overrides)


def run(argv: Optional[Sequence[str]] = None) -> None:
    settings = load_settings(parse_args(argv))
    configure_logging(settings.log_level)

    logger.info(f"capture-server listening on http://localhost:{settings.port}")
    logger.info(f"saving to {settings.captures_dir}")
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


__all__ = ["app", "create_app", "load_settings", "parse_args", "run"]


if __name__ == "__main__":
    run()

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from capture_server import Settings, create_app
from capture_server.services import CaptureService
from capture_server.store import CaptureStore


@pytest.fixture
def captures_dir(tmp_path: Path) -> Path:
    return tmp_path / "captures"


@pytest.fixture
def settings(captures_dir: Path) -> Settings:
    return Settings(captures_dir=captures_dir)


@pytest.fixture
def store(captures_dir: Path) -> CaptureStore:
    return CaptureStore(captures_dir)


@pytest.fixture
def service(store: CaptureStore) -> CaptureService:
    return CaptureService(store=store)


@pytest.fixture
def client(settings: Settings) -> TestClient:
    return TestClient(create_app(settings=settings))

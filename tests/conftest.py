from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any

import cv2  # type: ignore
import numpy as np
import pytest
from fastapi.testclient import TestClient

from mediakit.core.config import get_settings
from mediakit.core.storage import LocalStorage
from mediakit.main import create_app
from mediakit.media.video import VideoBackend
from mediakit.services.container import build_container

API_KEY = "test-key"

GIF_BYTES = b"GIF89a" + b"\x00" * 64
MP4_BYTES = b"\x00\x00\x00\x18ftypisom\x00\x00\x02\x00isomiso2" + b"\x00" * 64
FAKE_MP4_OUTPUT = b"\x00\x00\x00\x18ftypisom-transcoded"


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "no_default_env: disable the default mediakit environment bootstrap fixture for tests that manage their own .env",
    )


@pytest.fixture(autouse=True)
def configure_environment(request, monkeypatch, tmp_path):
    if request.node.get_closest_marker("no_default_env"):
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()
        return

    monkeypatch.delenv("MEDIAKIT_ENVIRONMENT", raising=False)
    monkeypatch.setenv("MEDIAKIT_ENV", "test")
    monkeypatch.setenv("MEDIAKIT_LOG_LEVEL", "debug")
    monkeypatch.setenv("MEDIAKIT_STORAGE_BACKEND", "local")
    monkeypatch.setenv("MEDIAKIT_LOCAL_STORAGE_BASE_PATH", str(tmp_path / "storage"))
    monkeypatch.setenv("MEDIAKIT_STORAGE_EXTERNAL_URL", "https://cdn.test")
    monkeypatch.setenv("MEDIAKIT_SCRATCH_DIR", str(tmp_path / "scratch"))
    monkeypatch.setenv("MEDIAKIT_ENABLE_SWEEPER", "false")
    monkeypatch.setenv("MEDIAKIT_IPFS_GATEWAY_URL", "https://gateway.test")
    monkeypatch.setenv("MEDIAKIT_API_KEY", API_KEY)

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def storage(tmp_path) -> LocalStorage:
    return LocalStorage(tmp_path / "objects", external_url="https://cdn.test")


@pytest.fixture()
def fake_ffmpeg(monkeypatch) -> list[list[str]]:
    """Replace the ffmpeg call with one that writes a canned MP4 to the output path."""
    calls: list[list[str]] = []

    def _run(command, **kwargs: Any):
        calls.append(list(command))
        Path(command[-1]).write_bytes(FAKE_MP4_OUTPUT)
        return subprocess.CompletedProcess(command, 0, stdout="", stderr="")

    monkeypatch.setattr("mediakit.media.video.subprocess.run", _run)
    return calls


@pytest.fixture()
def video_backend(tmp_path) -> VideoBackend:
    return VideoBackend(tmp_path / "scratch")


@pytest.fixture()
def client(configure_environment):
    app = create_app()
    with TestClient(app) as client:
        yield client


@pytest.fixture()
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {API_KEY}"}


@pytest.fixture()
def container_factory():
    def _factory(**overrides: Any):
        return build_container(get_settings(), **overrides)

    return _factory


def encode_image(width: int, height: int, ext: str = ".jpg", *, channels: int = 3) -> bytes:
    """Return an encoded test image with a horizontal gradient."""
    gradient = np.tile(np.linspace(0, 255, width, dtype=np.uint8), (height, 1))
    image = np.dstack([gradient] * channels)
    ok, encoded = cv2.imencode(ext, image)
    assert ok, f"could not encode {ext} fixture"
    return encoded.tobytes()


def decode_size(payload: bytes) -> tuple[int, int]:
    image = cv2.imdecode(np.frombuffer(payload, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    assert image is not None
    height, width = image.shape[:2]
    return width, height

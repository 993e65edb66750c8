import pytest
from fastapi.testclient import TestClient

from safedrop.config import ServerConfig
from safedrop.main import create_app
from safedrop.vault import Vault


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "PORT",
        "SAFEDROP_HOST",
        "SAFEDROP_MAX_BODY_BYTES",
        "SAFEDROP_STATIC_DIR",
        "SAFEDROP_SWEEP_INTERVAL",
        "SAFEDROP_LOG_DIR",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def vault(clock):
    return Vault(clock=clock)


@pytest.fixture
def static_dir(tmp_path):
    (tmp_path / "index.html").write_text("<html>safedrop</html>")
    (tmp_path / "js").mkdir()
    (tmp_path / "js" / "app.js").write_text("'use strict';")
    return tmp_path


@pytest.fixture
def config(static_dir):
    return ServerConfig(static_dir=str(static_dir), max_body_bytes=1024)


@pytest.fixture
def client(config, vault):
    return TestClient(create_app(config, vault))

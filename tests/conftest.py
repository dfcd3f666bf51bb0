import pytest
from fastapi.testclient import TestClient

from guardproto.api import deps
from guardproto.api.main import app
from guardproto.core.config import reset_settings
from guardproto.core.observability.metrics import reset_metrics
from guardproto.core.registry import ProtocolRegistry, UnitStore


@pytest.fixture(autouse=True)
def _clean_metrics():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture()
def registry():
    return ProtocolRegistry()


@pytest.fixture()
def store():
    return UnitStore()


@pytest.fixture()
def client(monkeypatch):
    # builtin Numbers plugins, consolidated at first use
    for key in ("GUARDPROTO_CONFIG", "GUARDPROTO_PLUGINS_DIR", "GUARDPROTO_RUN_TESTS_ON_CONSOLIDATE", "GUARDPROTO_CONSOLIDATE_ON_STARTUP"):
        monkeypatch.delenv(key, raising=False)
    reset_settings()
    deps.reset_builder()
    yield TestClient(app)
    deps.reset_builder()
    reset_settings()

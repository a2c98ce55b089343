"""Shared fixtures for menudigital tests."""

import asyncio
import os
import socket
import threading
import time
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from menudigital.adapters.sqlite_store import SqliteStore
from menudigital.config import Settings
from menudigital.models import ChannelState, new_id
from menudigital.observability import reset_metrics

DEV_ORIGIN = "http://localhost:5173"


# ---------------------------------------------------------------------------
# Auto-use fixtures: cleanup global state between tests
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _reset_metrics():
    """Reset module-level request counters after every test."""
    yield
    reset_metrics()


# ---------------------------------------------------------------------------
# Settings, store, app
# ---------------------------------------------------------------------------

def make_settings(tmp_path, **env):
    """Build Settings from a clean environment rooted at *tmp_path*."""
    base = {
        "MENUDIGITAL_ENV": "development",
        "MENUDIGITAL_DB_PATH": str(tmp_path / "menu.db"),
        "MENUDIGITAL_UPLOAD_DIR": str(tmp_path / "uploads"),
        "MENUDIGITAL_JWT_SECRET": "test-secret-0123456789abcdef0123456789",
    }
    base.update(env)
    cleared = {k: v for k, v in os.environ.items()
               if not k.startswith("MENUDIGITAL_") and k != "NODE_ENV"}
    with patch.dict(os.environ, {**cleared, **base}, clear=True):
        return Settings()


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def store(tmp_path):
    """Return a fresh SqliteStore."""
    return SqliteStore(tmp_path / "store.db")


@pytest.fixture
def app(settings):
    from menudigital.api import create_app
    return create_app(settings)


@pytest.fixture
def client(app):
    """TestClient with the lifespan running, so sessions share one hub."""
    with TestClient(app) as c:
        yield c


def register_owner(client, name="Ana", email=None, password="pw-123"):
    """Shared test helper: register an owner, return (token, user dict).

    Usage::

        from conftest import register_owner
        token, user = register_owner(client, name="Luis")
    """
    email = email or f"{name.lower()}-{new_id()}@example.com"
    resp = client.post("/api/auth/register",
                       json={"name": name, "email": email, "password": password})
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return body["token"], body


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Channel fakes
# ---------------------------------------------------------------------------

class FakeChannel:
    """In-memory Channel recording what the hub writes to it."""

    def __init__(self, state=ChannelState.OPEN, fail=False, origin=None, stall=False):
        self.id = new_id()
        self.origin = origin
        self.state = state
        self.fail = fail
        self.stall = stall
        self.sent = []
        self.closed_with = None

    async def send(self, message):
        if self.fail:
            raise ConnectionError("broken pipe")
        if self.stall:
            await asyncio.Event().wait()
        self.sent.append(message)

    async def close(self, code=1000, reason=""):
        self.closed_with = (code, reason)
        self.state = ChannelState.CLOSED


# ---------------------------------------------------------------------------
# Shared live_server fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def live_server(settings):
    """Start the app under uvicorn on a random port; yields ``host:port``."""
    import uvicorn
    from menudigital.api import create_app

    app = create_app(settings)

    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]

    config = uvicorn.Config(app, host="127.0.0.1", port=port, log_level="error", ws="websockets")
    server = uvicorn.Server(config)
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    deadline = time.time() + 10
    while not server.started and time.time() < deadline:
        time.sleep(0.05)

    yield f"127.0.0.1:{port}"

    server.should_exit = True
    thread.join(timeout=5)


# ---------------------------------------------------------------------------
# Marker auto-tagging
# ---------------------------------------------------------------------------

def pytest_collection_modifyitems(items):
    """Auto-mark tests that use live_server as integration."""
    for item in items:
        if "live_server" in item.fixturenames:
            item.add_marker(pytest.mark.integration)

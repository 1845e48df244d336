"""Test fixtures — a fresh app and hub per test, plus fake sockets.

Learn: Two ways in:

1. Unit tests build a RealtimeHub directly and wrap FakeWebSocket objects
   in real Connection instances. No server is involved, and
   every sent frame is recorded on the fake.
2. API / end-to-end tests build a new app with create_app() so each test
   gets its own hub. HTTP goes through httpx ASGITransport; WebSocket
   round trips go through Starlette's TestClient.
"""

import json

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from starlette.testclient import TestClient
from starlette.websockets import WebSocketState

from bizdir.config import Settings
from bizdir.main import create_app
from bizdir.realtime.connection import Connection
from bizdir.realtime.hub import RealtimeHub
from bizdir.services.analytics_service import AnalyticsService
from bizdir.services.business_service import BusinessService


class FakeWebSocket:
    """Stands in for a Starlette WebSocket and records outbound frames."""

    def __init__(self, fail_sends: bool = False):
        self.sent: list = []
        self.client = None
        self.client_state = WebSocketState.CONNECTED
        self.close_code = None
        self.fail_sends = fail_sends

    async def send_text(self, data: str) -> None:
        if self.fail_sends:
            raise RuntimeError("socket went away")
        self.sent.append(data)

    async def send_bytes(self, data: bytes) -> None:
        if self.fail_sends:
            raise RuntimeError("socket went away")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason=None) -> None:
        self.client_state = WebSocketState.DISCONNECTED
        self.close_code = code

    def frames(self) -> list[dict]:
        """Sent text frames decoded as JSON."""
        return [json.loads(s) for s in self.sent]


# ─── Hub-level fixtures ──────────────────────────────────


@pytest.fixture()
def hub():
    return RealtimeHub()


@pytest.fixture()
def analytics():
    return AnalyticsService()


@pytest.fixture()
def business_service(hub):
    return BusinessService(hub)


@pytest.fixture()
def make_connection():
    """Factory for Connections backed by FakeWebSocket."""

    def _make(fail_sends: bool = False) -> Connection:
        return Connection(FakeWebSocket(fail_sends=fail_sends))

    return _make


# ─── App-level fixtures ──────────────────────────────────


@pytest.fixture()
def settings():
    return Settings(ws_handler="notifications")


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client against a fresh app (lifespan not run)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def ws_client(app):
    """Starlette TestClient for WebSocket round trips (runs lifespan)."""
    with TestClient(app) as tc:
        yield tc


@pytest.fixture()
def relay_client():
    """TestClient against an app running the relay handler."""
    relay_app = create_app(Settings(ws_handler="relay"))
    with TestClient(relay_app) as tc:
        yield tc

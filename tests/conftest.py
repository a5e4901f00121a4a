"""Shared fixtures: a room on a manual clock and an app around it."""

import pytest
from httpx import ASGITransport, AsyncClient

from chat_presence.api.app import create_app
from chat_presence.config import Settings
from chat_presence.services.clock import ManualClock
from chat_presence.services.gateway import SessionGateway
from chat_presence.services.room import ChatRoom
from chat_presence.services.sweeper import PresenceSweeper


@pytest.fixture
def settings() -> Settings:
    return Settings(
        SWEEP_INTERVAL=15.0,
        PARTICIPANT_TIMEOUT=10.0,
        BROADCAST_TARGET="Todos",
        LOG_LEVEL="WARNING",
        LOG_JSON=False,
    )


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start=1000.0)


@pytest.fixture
def room(settings, clock) -> ChatRoom:
    return ChatRoom(settings, clock=clock)


@pytest.fixture
def gateway(room) -> SessionGateway:
    return SessionGateway(room)


@pytest.fixture
def sweeper(room) -> PresenceSweeper:
    return PresenceSweeper(room)


@pytest.fixture
def app(settings, clock):
    return create_app(settings, clock=clock, configure_logs=False)


@pytest.fixture
def client(app) -> AsyncClient:
    """Unopened client; tests enter it with ``async with``."""
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

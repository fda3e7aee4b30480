"""
Pytest configuration for wadesk tests

Provides stores, an event recorder, mock automation chats and an API client
wired to all of them.
"""

from __future__ import annotations

import time

import pytest
from fastapi.testclient import TestClient

from tests.factories import DAY, make_chat
from wadesk.api.app import create_app
from wadesk.automation.mock_client import MockAutomationClient
from wadesk.infrastructure.database import ChatStore
from wadesk.observability import telemetry
from wadesk.realtime.events import EventBus, RecordingSubscriber
from wadesk.tags.repository import TagRepository
from wadesk.tags.service import TagService


@pytest.fixture(autouse=True)
def reset_telemetry():
    """Counters are process-wide; start every test from zero"""
    telemetry.reset()
    yield


@pytest.fixture
def store():
    """Open in-memory store (flushes are no-ops)"""
    s = ChatStore(None)
    s.open()
    yield s
    s.close()


@pytest.fixture
def file_store(tmp_path):
    """Open store backed by a file in tmp_path"""
    s = ChatStore(tmp_path / "data.sqlite")
    s.open()
    yield s
    s.close()


@pytest.fixture
def recorder():
    return RecordingSubscriber()


@pytest.fixture
def bus(recorder):
    b = EventBus()
    b.subscribe(recorder)
    return b


@pytest.fixture
def tag_service(store, bus):
    return TagService(TagRepository(store), bus)


@pytest.fixture
def live_chats():
    """Chats with timestamps relative to the real clock, for API tests"""
    now = int(time.time())
    return [
        make_chat("111@c.us", [now - 300, now - 120], name="Alice", unread=1),
        make_chat("222@c.us", [now - 3 * DAY], name="Stale"),
        make_chat("333@c.us", [now - 60], name="Archived Bob", archived=True),
    ]


@pytest.fixture
def mock_client(live_chats):
    return MockAutomationClient(chats=live_chats)


@pytest.fixture
def app(store, mock_client):
    return create_app(store=store, client=mock_client, static_dir=None, await_client=True)


@pytest.fixture
def client(app):
    """TestClient with lifespan run, so the mock automation client is ready"""
    with TestClient(app) as c:
        yield c

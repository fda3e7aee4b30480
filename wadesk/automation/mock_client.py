"""
In-memory automation client for frontend development and tests.

Serves chats from a JSON fixture (``mock-data.json`` by default) so the
dashboard can run without a paired phone. Sending, archiving and inbound
messages mutate the in-memory chats only; the fixture file is never written.

Fixture shape::

    {
      "qr": "optional pairing payload",
      "chats": [
        {
          "chatId": "15551234567@c.us",
          "name": "Alice",
          "unreadCount": 1,
          "archived": false,
          "history": [
            {"id": "m1", "from": "15551234567@c.us", "body": "hi",
             "ageSeconds": 120, "fromMe": false}
          ]
        }
      ]
    }

Message timestamps are either absolute (``timestamp``, epoch seconds) or
relative to load time (``ageSeconds``) so a checked-in fixture stays "recent".
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from wadesk.automation.client import (
    CLIENT_MESSAGE,
    CLIENT_QR,
    CLIENT_READY,
    ClientEventHandler,
    MediaPayload,
)
from wadesk.config import MOCK_DATA_PATH
from wadesk.observability.logging import get_logger

logger = get_logger(__name__)

OWN_ID = "me@c.us"


@dataclass
class MockMessage:
    id: str
    body: str
    timestamp: int
    sender: str | None = None
    author: str | None = None
    from_me: bool = False
    has_media: bool = False
    mimetype: str | None = None
    filename: str | None = None
    is_sticker: bool = False
    media: MediaPayload | None = None

    async def download_media(self) -> MediaPayload | None:
        return self.media


@dataclass
class MockChat:
    id: str
    name: str | None = None
    unread_count: int = 0
    archived: bool = False
    messages: list[MockMessage] = field(default_factory=list)

    async def fetch_messages(self, limit: int) -> list[MockMessage]:
        if limit <= 0:
            return []
        return list(self.messages[-limit:])

    async def archive(self) -> None:
        self.archived = True

    async def unarchive(self) -> None:
        self.archived = False


class MockAutomationClient:
    """
    Automation client backed by in-memory chats.

    ``initialize()`` emits ``qr`` (when a pairing payload is configured) and
    then ``ready``, mimicking a client that pairs instantly.
    """

    def __init__(
        self,
        chats: list[MockChat] | None = None,
        qr_payload: str | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.chats: list[MockChat] = list(chats or [])
        self.qr_payload = qr_payload
        self.clock = clock
        self.sent: list[tuple[str, str]] = []
        self.initialized = False
        self._handlers: dict[str, list[ClientEventHandler]] = {}

    def on(self, event: str, handler: ClientEventHandler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    async def emit(self, event: str, *args: Any) -> None:
        for handler in list(self._handlers.get(event, [])):
            await handler(*args)

    async def initialize(self) -> None:
        if self.qr_payload:
            await self.emit(CLIENT_QR, self.qr_payload)
        self.initialized = True
        logger.info("Mock automation client ready with %d chats", len(self.chats))
        await self.emit(CLIENT_READY)

    async def get_chats(self) -> list[MockChat]:
        return list(self.chats)

    async def get_chat_by_id(self, chat_id: str) -> MockChat | None:
        for chat in self.chats:
            if chat.id == chat_id:
                return chat
        return None

    async def send_message(self, chat_id: str, text: str) -> None:
        chat = await self.get_chat_by_id(chat_id)
        if chat is None:
            raise ValueError(f"Chat not found: {chat_id}")
        chat.messages.append(
            MockMessage(
                id=f"msg_{len(self.sent) + 1}_{int(self.clock())}",
                body=text,
                timestamp=int(self.clock()),
                sender=OWN_ID,
                from_me=True,
            )
        )
        self.sent.append((chat_id, text))
        logger.info("Mock: sent %d chars to %s", len(text), chat_id)

    async def send_seen(self, chat_id: str) -> None:
        chat = await self.get_chat_by_id(chat_id)
        if chat is not None:
            chat.unread_count = 0

    async def receive(self, chat_id: str, body: str, name: str | None = None) -> MockMessage:
        """Simulate an inbound message, creating the chat if needed."""
        chat = await self.get_chat_by_id(chat_id)
        if chat is None:
            chat = MockChat(id=chat_id, name=name)
            self.chats.append(chat)

        message = MockMessage(
            id=f"in_{len(chat.messages) + 1}_{int(self.clock())}",
            body=body,
            timestamp=int(self.clock()),
            sender=chat_id,
        )
        chat.messages.append(message)
        chat.unread_count += 1
        await self.emit(CLIENT_MESSAGE, message)
        return message


def _message_from_fixture(item: dict[str, Any], chat_id: str, now: float) -> MockMessage:
    if "timestamp" in item:
        timestamp = int(item["timestamp"])
    else:
        timestamp = int(now - float(item.get("ageSeconds", 0)))

    media = None
    if item.get("media"):
        media = MediaPayload(
            mimetype=item["media"].get("mimetype", "application/octet-stream"),
            data=item["media"].get("data", ""),
            filename=item["media"].get("filename"),
        )

    return MockMessage(
        id=str(item.get("id") or f"{chat_id}_{timestamp}"),
        body=item.get("body") or "",
        timestamp=timestamp,
        sender=item.get("from") or chat_id,
        author=item.get("author"),
        from_me=bool(item.get("fromMe")),
        has_media=bool(item.get("hasMedia")) or media is not None,
        mimetype=item.get("mimetype"),
        filename=item.get("filename"),
        is_sticker=bool(item.get("isSticker")),
        media=media,
    )


def chats_from_fixture(data: dict[str, Any], now: float | None = None) -> list[MockChat]:
    """Build mock chats from a parsed fixture document."""
    now = time.time() if now is None else now
    chats = []
    for entry in data.get("chats", []):
        chat_id = entry.get("chatId") or entry.get("id")
        if not chat_id:
            logger.warning("Skipping fixture chat without chatId")
            continue
        messages = [_message_from_fixture(m, chat_id, now) for m in entry.get("history", [])]
        messages.sort(key=lambda m: m.timestamp)
        chats.append(
            MockChat(
                id=chat_id,
                name=entry.get("name"),
                unread_count=int(entry.get("unreadCount") or 0),
                archived=bool(entry.get("archived")),
                messages=messages,
            )
        )
    return chats


def from_fixture(path: Path | str) -> MockAutomationClient:
    """
    Load a mock client from a JSON fixture file.

    Raises:
        FileNotFoundError: If the fixture does not exist
        json.JSONDecodeError: If the fixture is not valid JSON
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    chats = chats_from_fixture(data)
    logger.info("Loaded %d mock chats from %s", len(chats), path)
    return MockAutomationClient(chats=chats, qr_payload=data.get("qr"))


def from_env() -> MockAutomationClient:
    """Default factory: fixture at ``WADESK_MOCK_DATA_PATH``, or no chats when absent."""
    if MOCK_DATA_PATH.exists():
        return from_fixture(MOCK_DATA_PATH)
    logger.warning("Mock data not found at %s, starting with no chats", MOCK_DATA_PATH)
    return MockAutomationClient()

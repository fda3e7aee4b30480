"""
Automation Client Protocols

Interface of the browser-automation WhatsApp client the dashboard proxies.
The dashboard never drives a browser itself: any object satisfying
``AutomationClient`` can be plugged in through ``WADESK_AUTOMATION_CLIENT``.

Design Principles:
- Protocols only for what the dashboard calls; nothing browser-specific
- Concrete ``MediaPayload`` because it is the agreed OUTPUT of media download
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

from wadesk.observability.logging import get_logger

logger = get_logger(__name__)

# Names of the events an automation client emits
CLIENT_QR = "qr"
CLIENT_READY = "ready"
CLIENT_MESSAGE = "message"

ClientEventHandler = Callable[..., Awaitable[None]]


@dataclass
class MediaPayload:
    """Downloaded media: base64 ``data`` plus its mimetype."""

    mimetype: str
    data: str
    filename: str | None = None

    def to_data_url(self) -> str:
        return f"data:{self.mimetype};base64,{self.data}"

    def to_dict(self, filename: str | None = None) -> dict[str, Any]:
        return {
            "data": self.to_data_url(),
            "mimetype": self.mimetype,
            "filename": filename if filename is not None else self.filename,
        }


class AutomationMessage(Protocol):
    """A single message as exposed by the automation client."""

    id: str
    author: str | None
    sender: str | None
    body: str
    timestamp: int
    from_me: bool
    has_media: bool
    mimetype: str | None
    filename: str | None
    is_sticker: bool

    async def download_media(self) -> MediaPayload | None:
        """Fetch the attached media.

        Returns:
            Media payload, or None when nothing could be downloaded
        """
        ...


class AutomationChat(Protocol):
    """A conversation as exposed by the automation client."""

    id: str
    name: str | None
    unread_count: int
    archived: bool

    async def fetch_messages(self, limit: int) -> list[AutomationMessage]:
        """Most recent ``limit`` messages, in any order."""
        ...

    async def archive(self) -> None: ...

    async def unarchive(self) -> None: ...


class AutomationClient(Protocol):
    """The browser-automation client the dashboard relays."""

    def on(self, event: str, handler: ClientEventHandler) -> None:
        """Register a coroutine for ``qr`` (payload str), ``ready`` or ``message`` (AutomationMessage)."""
        ...

    async def initialize(self) -> None:
        """Start the client; may raise on transient failures."""
        ...

    async def get_chats(self) -> list[AutomationChat]: ...

    async def get_chat_by_id(self, chat_id: str) -> AutomationChat | None: ...

    async def send_message(self, chat_id: str, text: str) -> None: ...

    async def send_seen(self, chat_id: str) -> None: ...


async def find_chat(client: AutomationClient, chat_id: str) -> AutomationChat | None:
    """
    Look a chat up by id, falling back to a scan of all chats.

    Some clients raise instead of returning None for unknown ids, so a lookup
    error is treated like a miss.
    """
    chat = None
    try:
        chat = await client.get_chat_by_id(chat_id)
    except Exception as e:
        logger.debug("get_chat_by_id(%s) failed, scanning chats: %s", chat_id, e)
    if chat is None:
        for candidate in await client.get_chats():
            if candidate.id == chat_id:
                return candidate
    return chat

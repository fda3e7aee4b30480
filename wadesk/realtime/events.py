"""
Realtime event names and the in-process event bus.

Services publish here only after the store transaction has been committed and
flushed; transports (the WebSocket connection manager) subscribe and fan the
events out. Keeping publication behind this seam lets tests record events
without a socket.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from wadesk.observability.logging import get_logger
from wadesk.observability.telemetry import counter

logger = get_logger(__name__)

# Server -> client
QR = "qr"
READY = "ready"
NOT_READY = "not_ready"
CHATS = "chats"
MESSAGES = "messages"
FULL_CHAT = "full_chat"
SENT = "sent"
ERROR = "error"
ARCHIVE_SUCCESS = "archive_success"
ARCHIVE_ERROR = "archive_error"
UNARCHIVE_SUCCESS = "unarchive_success"
UNARCHIVE_ERROR = "unarchive_error"
TAGS_UPDATED = "tags_updated"
NOTES_UPDATED = "notes_updated"
QUICK_REPLIES_UPDATED = "quick_replies_updated"

# Client -> server
REQUEST_MESSAGES = "requestMessages"
SEND_PRESET = "sendPreset"
GET_FULL_CHAT = "getFullChat"
ARCHIVE_CHAT = "archiveChat"
UNARCHIVE_CHAT = "unarchiveChat"

Subscriber = Callable[[str, Any], Awaitable[None]]


class EventBus:
    """
    Process-wide publish/subscribe hub for invalidation events.

    A failing subscriber is logged and counted; it never prevents delivery to
    the others nor propagates to the publisher, since the mutation that caused
    the event is already durable.
    """

    def __init__(self):
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    async def publish(self, event: str, data: Any = None) -> None:
        """
        Deliver ``event`` to every subscriber.

        Side Effects:
            - Invokes each subscriber coroutine in subscription order
            - Increments realtime.publish_failures for subscribers that raise
        """
        logger.debug("Publishing %s to %d subscribers", event, len(self._subscribers))
        for subscriber in list(self._subscribers):
            try:
                await subscriber(event, data)
            except Exception as e:
                counter("realtime.publish_failures")
                logger.error("Subscriber failed for event %s: %s", event, e)


class RecordingSubscriber:
    """Subscriber that keeps every published event; handy in tests and debugging."""

    def __init__(self):
        self.events: list[tuple[str, Any]] = []

    async def __call__(self, event: str, data: Any) -> None:
        self.events.append((event, data))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def clear(self) -> None:
        self.events.clear()

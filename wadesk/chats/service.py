"""
Chat Service - readiness state and the realtime chat operations.

Owns the one-way ``not_ready -> ready`` state driven by the automation
client's ``ready`` event. While not ready, reads return empty results and
writes answer with ``*_error`` events; nothing is raised to the socket.

Operations triggered by a socket get a ``reply`` coroutine for events meant
only for that socket; everything else goes through the event bus to all
dashboards.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from wadesk.automation.client import (
    CLIENT_MESSAGE,
    CLIENT_QR,
    CLIENT_READY,
    AutomationClient,
    AutomationMessage,
    find_chat,
)
from wadesk.chats.composer import ChatViewComposer, full_chat_message
from wadesk.chats.models import ChatView, FeedMessage, FullChat
from wadesk.config import FEED_MESSAGE_LIMIT, FEED_MESSAGES_PER_CHAT, FULL_CHAT_MESSAGE_LIMIT
from wadesk.errors import UpstreamUnavailableError
from wadesk.observability.logging import get_logger
from wadesk.observability.telemetry import counter, log_event
from wadesk.realtime import events
from wadesk.realtime.events import EventBus
from wadesk.tags.service import TagService
from wadesk.utils.qr import qr_data_url

logger = get_logger(__name__)

Reply = Callable[[str, Any], Awaitable[None]]

NOT_READY_MESSAGE = "WhatsApp not ready"


class ChatService:
    """
    Service layer between the automation client and the dashboards.
    """

    def __init__(
        self,
        client: AutomationClient,
        tag_service: TagService,
        bus: EventBus,
        composer: ChatViewComposer | None = None,
    ):
        self.client = client
        self.tag_service = tag_service
        self.bus = bus
        self.composer = composer or ChatViewComposer(client, tag_service)
        self.ready = False

    def require_ready(self) -> None:
        """
        Raises:
            UpstreamUnavailableError: If the automation client has not reported ready
        """
        if not self.ready:
            raise UpstreamUnavailableError(NOT_READY_MESSAGE)

    def attach(self) -> None:
        """Subscribe to the automation client's events."""
        self.client.on(CLIENT_QR, self.on_qr)
        self.client.on(CLIENT_READY, self.on_ready)
        self.client.on(CLIENT_MESSAGE, self.on_message)

    # ------------------------------------------------------------------
    # Automation client events
    # ------------------------------------------------------------------

    async def on_qr(self, payload: str) -> None:
        try:
            data_url = qr_data_url(payload)
        except Exception as e:
            logger.error("QR generation error: %s", e)
            return
        await self.bus.publish(events.QR, data_url)

    async def on_ready(self) -> None:
        logger.info("WhatsApp client ready")
        self.ready = True
        log_event("automation.ready")
        await self.bus.publish(events.READY)
        await self.broadcast_chats()

    async def on_message(self, message: AutomationMessage) -> None:
        if not message.body:
            return
        await self.broadcast_chats()

    # ------------------------------------------------------------------
    # Chat list
    # ------------------------------------------------------------------

    async def fetch_chats(self) -> list[ChatView]:
        if not self.ready:
            return []
        return await self.composer.compose()

    async def broadcast_chats(self) -> None:
        """Recompose the chat list and send it to every dashboard."""
        try:
            views = await self.fetch_chats()
        except Exception as e:
            counter("chats.broadcast_failures")
            logger.error("Error loading chats: %s", e)
            return
        await self.bus.publish(events.CHATS, [view.to_wire() for view in views])

    # ------------------------------------------------------------------
    # Socket operations
    # ------------------------------------------------------------------

    async def request_messages(self, reply: Reply) -> None:
        """Reply with a flat feed of recent messages across all chats, newest first."""
        if not self.ready:
            await reply(events.NOT_READY, None)
            await reply(events.MESSAGES, [])
            return

        try:
            feed = await self.recent_messages()
        except Exception as e:
            logger.error("requestMessages failed: %s", e)
            feed = []
        await reply(events.MESSAGES, [m.to_wire() for m in feed])

    async def recent_messages(self) -> list[FeedMessage]:
        feed: list[FeedMessage] = []
        for chat in await self.client.get_chats():
            try:
                messages = await chat.fetch_messages(FEED_MESSAGES_PER_CHAT)
            except Exception as e:
                logger.warning("Skipping messages of chat %s: %s", chat.id, e)
                continue
            for m in messages:
                if not m.body:
                    continue
                feed.append(
                    FeedMessage(
                        id=m.id,
                        chat_id=m.sender or chat.id,
                        sender=m.author or m.sender or chat.name or chat.id.split("@", 1)[0],
                        body=m.body,
                        timestamp=m.timestamp,
                    )
                )
        feed.sort(key=lambda m: m.timestamp, reverse=True)
        return feed[:FEED_MESSAGE_LIMIT]

    async def send_preset(self, chat_id: str | None, text: str | None, reply: Reply) -> None:
        """
        Send a message, mark the chat seen and rebroadcast the chat list.

        Client errors are relayed as ``error {message}`` to the sender only.
        """
        if not chat_id or not text:
            await reply(events.ERROR, {"message": "chatId and text required"})
            return
        try:
            self.require_ready()
        except UpstreamUnavailableError as e:
            await reply(events.ERROR, {"message": str(e)})
            return

        try:
            await self.client.send_message(chat_id, text)
        except Exception as e:
            logger.error("sendPreset failed: %s", e)
            await reply(events.ERROR, {"message": str(e) or "Failed to send"})
            return

        try:
            await self.client.send_seen(chat_id)
        except Exception as e:
            logger.debug("sendSeen failed for %s: %s", chat_id, e)

        log_event("chats.preset_sent", chat_id=chat_id)
        await self.broadcast_chats()
        await reply(events.SENT, {"chatId": chat_id, "text": text})

    async def get_full_chat(self, chat_id: str | None, reply: Reply) -> None:
        await reply(events.FULL_CHAT, (await self.full_chat(chat_id)).to_wire())

    async def full_chat(self, chat_id: str | None) -> FullChat:
        """Up to 200 messages of one chat, oldest first; empty when unavailable."""
        result = FullChat(chat_id=chat_id or "")
        if not self.ready or not chat_id:
            return result

        try:
            chat = await find_chat(self.client, chat_id)
            if chat is None:
                return result
            messages = await chat.fetch_messages(FULL_CHAT_MESSAGE_LIMIT)
            result.messages = [await full_chat_message(m) for m in messages]
        except Exception as e:
            logger.error("getFullChat failed: %s", e)
            result.messages = []
            return result

        result.messages.sort(key=lambda m: m.timestamp)
        return result

    async def archive_chat(self, chat_id: str | None, reply: Reply) -> None:
        """Archive in the client, tag the chat Archived, rebroadcast chats."""
        chat = await self._resolve_for_archive(chat_id, events.ARCHIVE_ERROR, reply)
        if chat is None:
            return

        try:
            await chat.archive()
        except Exception as e:
            logger.error("archiveChat failed: %s", e)
            await reply(events.ARCHIVE_ERROR, {"chatId": chat_id, "error": str(e) or "Failed to archive"})
            return

        try:
            await self.tag_service.mark_archived(chat.id)
        except Exception as e:
            logger.error("Failed to assign Archived tag: %s", e)

        log_event("chats.archived", chat_id=chat_id)
        await reply(events.ARCHIVE_SUCCESS, {"chatId": chat_id})
        await self.broadcast_chats()

    async def unarchive_chat(self, chat_id: str | None, reply: Reply) -> None:
        """Unarchive in the client, drop the Archived tag, rebroadcast chats."""
        chat = await self._resolve_for_archive(chat_id, events.UNARCHIVE_ERROR, reply)
        if chat is None:
            return

        try:
            await chat.unarchive()
        except Exception as e:
            logger.error("unarchiveChat failed: %s", e)
            await reply(
                events.UNARCHIVE_ERROR, {"chatId": chat_id, "error": str(e) or "Failed to unarchive"}
            )
            return

        try:
            await self.tag_service.clear_archived(chat.id)
        except Exception as e:
            logger.error("Failed to remove Archived tag: %s", e)

        log_event("chats.unarchived", chat_id=chat_id)
        await reply(events.UNARCHIVE_SUCCESS, {"chatId": chat_id})
        await self.broadcast_chats()

    async def unarchive_in_client(self, chat_id: str) -> None:
        """Unarchive a chat in the client only (used when the Archived tag is removed by hand)."""
        if not self.ready:
            return
        chat = await find_chat(self.client, chat_id)
        if chat is not None and chat.archived:
            await chat.unarchive()

    async def _resolve_for_archive(self, chat_id: str | None, error_event: str, reply: Reply):
        try:
            self.require_ready()
        except UpstreamUnavailableError as e:
            await reply(error_event, {"chatId": chat_id, "error": str(e)})
            return None
        if not chat_id:
            await reply(error_event, {"chatId": chat_id, "error": "chatId required"})
            return None

        try:
            chat = await find_chat(self.client, chat_id)
        except Exception as e:
            logger.error("Chat lookup failed: %s", e)
            await reply(error_event, {"chatId": chat_id, "error": str(e) or "Chat lookup failed"})
            return None

        if chat is None:
            await reply(error_event, {"chatId": chat_id, "error": "Chat not found"})
        return chat

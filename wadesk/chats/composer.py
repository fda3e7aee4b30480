"""
Chat View Composer - builds the ranked chat list every dashboard shows.

For each conversation the automation client reports:

1. take the last few messages (oldest -> newest) and the unread counter
2. keep it only if it has unread messages or activity inside the recency
   window; stale, read conversations are dropped
3. make sure archived conversations carry the Archived tag
4. sort unread-first, then most recent first

A conversation that fails to load is logged and left out; it never breaks
the list for everyone else.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from wadesk.automation.client import AutomationChat, AutomationClient, AutomationMessage
from wadesk.chats.models import ChatView, FullChatMessage, HistoryItem, MediaView
from wadesk.config import CHAT_HISTORY_LIMIT, CHAT_RECENCY_WINDOW_SECONDS
from wadesk.observability.logging import get_logger
from wadesk.observability.telemetry import counter, log_event, time_block
from wadesk.tags.service import TagService

logger = get_logger(__name__)


async def download_media(message: AutomationMessage) -> MediaView | None:
    """Inline a message's media as a data URL; failures are logged and yield None."""
    try:
        media = await message.download_media()
    except Exception as e:
        counter("chats.media_download_failures")
        logger.error("downloadMedia failed for message %s: %s", message.id, e)
        return None
    if media is None or not media.data:
        return None
    return MediaView(**media.to_dict(filename=message.filename))


async def history_item(message: AutomationMessage) -> HistoryItem:
    """Summary of a message for a chat card; stickers are small enough to inline."""
    item = HistoryItem(
        id=message.id,
        sender=message.author or message.sender,
        body=message.body or "",
        timestamp=message.timestamp,
        from_me=bool(message.from_me),
        has_media=bool(message.has_media),
        mimetype=message.mimetype or None,
        filename=message.filename or None,
        is_sticker=bool(message.is_sticker),
    )
    if item.has_media and item.is_sticker:
        item.media = await download_media(message)
    return item


async def full_chat_message(message: AutomationMessage) -> FullChatMessage:
    item = FullChatMessage(
        id=message.id,
        sender=message.author or message.sender,
        body=message.body or "",
        timestamp=message.timestamp,
        from_me=bool(message.from_me),
    )
    if message.has_media:
        item.media = await download_media(message)
    return item


class ChatViewComposer:
    """
    Composes ``ChatView`` lists from the automation client.

    ``clock`` returns epoch seconds and is injectable so the recency window can
    be tested without waiting a day.
    """

    def __init__(
        self,
        client: AutomationClient,
        tag_service: TagService,
        history_limit: int = CHAT_HISTORY_LIMIT,
        recency_window_seconds: int = CHAT_RECENCY_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.tag_service = tag_service
        self.history_limit = history_limit
        self.recency_window_seconds = recency_window_seconds
        self.clock = clock

    async def compose(self) -> list[ChatView]:
        """
        Build the filtered, sorted chat list.

        Side Effects:
            - Assigns the Archived tag to archived chats that lack it (and
              publishes tags_updated when it does)
        """
        with time_block("chats.compose"):
            chats = await self.client.get_chats()
            cutoff = self.clock() - self.recency_window_seconds

            results: list[ChatView] = []
            for chat in chats:
                try:
                    view = await self.compose_chat(chat)
                except Exception as e:
                    counter("chats.compose_failures")
                    logger.warning("Skipping chat %s: %s", getattr(chat, "id", "?"), e)
                    continue

                if not self.is_visible(view, cutoff):
                    continue
                results.append(view)

                if chat.archived:
                    await self._ensure_archived_tag(view.chat_id)

            results.sort(key=lambda v: (v.unread_count <= 0, -v.last_timestamp))

        log_event("chats.composed", shown=len(results), total=len(chats))
        return results

    async def compose_chat(self, chat: AutomationChat) -> ChatView:
        messages = await chat.fetch_messages(self.history_limit)
        history = [await history_item(m) for m in messages]
        history.sort(key=lambda item: item.timestamp)

        return ChatView(
            chat_id=chat.id,
            name=chat.name or None,
            unread_count=chat.unread_count or 0,
            history=history,
            last_timestamp=history[-1].timestamp if history else 0,
        )

    @staticmethod
    def is_visible(view: ChatView, cutoff: float) -> bool:
        """Unread chats always show; read ones only with activity since ``cutoff``."""
        return view.unread_count > 0 or view.last_timestamp >= cutoff

    async def _ensure_archived_tag(self, chat_id: str) -> None:
        try:
            await self.tag_service.mark_archived(chat_id)
        except Exception as e:
            logger.error("Failed to assign Archived tag to %s: %s", chat_id, e)

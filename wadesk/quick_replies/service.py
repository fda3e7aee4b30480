"""
Quick Reply Service - CRUD plus ``quick_replies_updated`` events.
"""

from __future__ import annotations

from typing import Any

from wadesk.quick_replies.models import QuickReply
from wadesk.quick_replies.repository import QuickReplyRepository
from wadesk.realtime.events import QUICK_REPLIES_UPDATED, EventBus


class QuickReplyService:
    def __init__(self, repository: QuickReplyRepository, bus: EventBus):
        self.repository = repository
        self.bus = bus

    def list_replies(self) -> list[QuickReply]:
        return self.repository.list()

    async def create_reply(self, text: str) -> QuickReply:
        reply = self.repository.create(text)
        await self.bus.publish(QUICK_REPLIES_UPDATED)
        return reply

    async def update_reply(self, reply_id: int, text: str) -> QuickReply:
        reply = self.repository.update(reply_id, text)
        await self.bus.publish(QUICK_REPLIES_UPDATED)
        return reply

    async def delete_reply(self, reply_id: int) -> None:
        self.repository.delete(reply_id)
        await self.bus.publish(QUICK_REPLIES_UPDATED)

    async def import_replies(self, items: list[Any], replace: bool = False) -> list[QuickReply]:
        rows = self.repository.import_items(items, replace)
        await self.bus.publish(QUICK_REPLIES_UPDATED)
        return rows

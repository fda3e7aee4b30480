"""
Tag Service - tag business logic plus invalidation events.

Orchestrates between:
- TagRepository (persistence)
- TagImporter (reconciliation)
- EventBus (``tags_updated`` after each durable change)
- an optional unarchiver, so removing the Archived tag also unarchives the
  chat in the automation client
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from wadesk.observability.logging import get_logger
from wadesk.realtime.events import TAGS_UPDATED, EventBus
from wadesk.reconciliation.models import TagImportReport, TagImportRequest
from wadesk.reconciliation.tag_import import TagImporter
from wadesk.tags.models import Tag, TagExport
from wadesk.tags.repository import TagRepository

logger = get_logger(__name__)

Unarchiver = Callable[[str], Awaitable[None]]


class TagService:
    """
    Service layer for tags and tag assignments.
    """

    def __init__(
        self,
        repository: TagRepository,
        bus: EventBus,
        unarchiver: Unarchiver | None = None,
    ):
        self.repository = repository
        self.bus = bus
        self.unarchiver = unarchiver

    def list_tags(self) -> list[Tag]:
        return self.repository.list()

    def count(self, tag_id: int) -> int:
        return self.repository.assignment_count(tag_id)

    def export(self) -> TagExport:
        return self.repository.export()

    async def create_tag(self, name: str, color: str) -> Tag:
        tag = self.repository.create(name, color)
        await self.bus.publish(TAGS_UPDATED)
        return tag

    async def update_tag(self, tag_id: int, name: str, color: str) -> Tag:
        tag = self.repository.update(tag_id, name, color)
        await self.bus.publish(TAGS_UPDATED)
        return tag

    async def delete_tag(self, tag_id: int) -> None:
        self.repository.delete(tag_id)
        await self.bus.publish(TAGS_UPDATED)

    async def assign(self, tag_id: int, chat_id: str) -> bool:
        """
        Assign a tag to a chat.

        Returns:
            True for a new assignment, False when it already existed (no
            event is published in that case)
        """
        created = self.repository.assign(tag_id, chat_id)
        if created:
            await self.bus.publish(TAGS_UPDATED)
        return created

    async def unassign(self, tag_id: int, chat_id: str) -> None:
        """
        Remove a tag from a chat.

        Removing the Archived system tag unarchives the chat in the automation
        client first; a failure there is logged and the tag is removed anyway.
        """
        if self.unarchiver is not None and self.repository.is_system_tag(tag_id):
            try:
                await self.unarchiver(chat_id)
            except Exception as e:
                logger.error("Failed to unarchive chat when removing Archived tag: %s", e)

        self.repository.unassign(tag_id, chat_id)
        await self.bus.publish(TAGS_UPDATED)

    async def mark_archived(self, chat_id: str) -> bool:
        """Assign the Archived tag (idempotent); publishes only on change."""
        created = self.repository.assign_system_tag(chat_id)
        if created:
            await self.bus.publish(TAGS_UPDATED)
        return created

    async def clear_archived(self, chat_id: str) -> None:
        self.repository.unassign_system_tag(chat_id)
        await self.bus.publish(TAGS_UPDATED)

    async def import_tags(self, request: TagImportRequest) -> TagImportReport:
        report = TagImporter(self.repository.store).run(request)
        await self.bus.publish(TAGS_UPDATED)
        return report

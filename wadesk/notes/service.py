"""
Note Service - note business logic plus ``notes_updated`` events.
"""

from __future__ import annotations

from wadesk.notes.models import Note, NoteCount
from wadesk.notes.repository import NoteRepository
from wadesk.realtime.events import NOTES_UPDATED, EventBus
from wadesk.reconciliation.models import NoteImportReport, NoteImportRequest
from wadesk.reconciliation.note_import import NoteImporter


class NoteService:
    """
    Service layer for chat notes.

    ``notes_updated`` carries the affected ``chatId`` so dashboards only
    re-fetch the open chat; after a bulk import it carries an empty object.
    """

    def __init__(self, repository: NoteRepository, bus: EventBus):
        self.repository = repository
        self.bus = bus

    def list_for_chat(self, chat_id: str) -> list[Note]:
        return self.repository.list_for_chat(chat_id)

    def counts(self) -> list[NoteCount]:
        return self.repository.counts()

    def export(self, chat_id: str | None = None) -> list[Note]:
        return self.repository.export(chat_id)

    async def create_note(self, chat_id: str, text: str) -> Note:
        note = self.repository.create(chat_id, text)
        await self.bus.publish(NOTES_UPDATED, {"chatId": note.chat_id})
        return note

    async def update_note(self, note_id: int, text: str) -> Note:
        note = self.repository.update(note_id, text)
        await self.bus.publish(NOTES_UPDATED, {"chatId": note.chat_id})
        return note

    async def delete_note(self, note_id: int) -> None:
        note = self.repository.delete(note_id)
        await self.bus.publish(NOTES_UPDATED, {"chatId": note.chat_id})

    async def import_notes(self, request: NoteImportRequest) -> NoteImportReport:
        report = NoteImporter(self.repository.store).run(request)
        await self.bus.publish(NOTES_UPDATED, {})
        return report

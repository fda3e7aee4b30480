"""
Notes import - merge exported notes into the store.

A note needs a chat. When the payload only carries a phone number, the chat
id is recovered from an existing tag assignment, then from an existing note
with that phone, and is synthesized as ``<digits>@c.us`` as a last resort.
Notes identical to an existing one (same chat, same text) are skipped, so
re-running an import is harmless.
"""

from __future__ import annotations

import sqlite3
from typing import Any

from pydantic import ValidationError

from wadesk.errors import InvalidRequestError
from wadesk.infrastructure.database import ChatStore
from wadesk.observability.logging import get_logger
from wadesk.observability.telemetry import counter, log_event, time_block
from wadesk.reconciliation.models import (
    ImportOutcome,
    NoteDescriptor,
    NoteImportReport,
    NoteImportRequest,
)
from wadesk.reconciliation.tag_import import find_chat_for_phone
from wadesk.utils.phone import chat_id_from_phone, extract_phone, normalize_phone

logger = get_logger(__name__)

PHONE_LOOKUP_TABLES = ("tag_assignments", "notes")


def resolve_note_chat(
    conn: sqlite3.Connection, descriptor: NoteDescriptor
) -> tuple[str | None, str | None]:
    """
    Resolve ``(chat_id, phone_number)`` for an imported note.

    Returns:
        ``(None, None)`` when neither a chat id nor a usable phone is present
    """
    phone = normalize_phone(descriptor.phone_number) if descriptor.phone_number else None

    if descriptor.chat_id is not None:
        return descriptor.chat_id, phone or extract_phone(descriptor.chat_id)

    if phone is None:
        return None, None

    chat_id = find_chat_for_phone(conn, phone, PHONE_LOOKUP_TABLES) or chat_id_from_phone(phone)
    return chat_id, phone


class NoteImporter:
    """
    Applies one notes import request to the store.
    """

    def __init__(self, store: ChatStore):
        self.store = store

    def run(self, request: NoteImportRequest) -> NoteImportReport:
        """
        Import notes.

        Returns:
            Report with ``imported + skipped + failed == total``

        Raises:
            InvalidRequestError: If the request carries no notes

        Side Effects:
            - With ``replace``: deletes every note first
            - Inserts notes
            - Commits and flushes the store once
        """
        if not request.notes:
            raise InvalidRequestError("notes required")

        report = NoteImportReport(total=len(request.notes))

        with time_block("reconciliation.note_import"), self.store.transaction() as conn:
            if request.replace:
                conn.execute("DELETE FROM notes")
                logger.info("Replace import: cleared existing notes")

            for raw in request.notes:
                outcome = self._import_note(conn, raw)
                if outcome is ImportOutcome.IMPORTED:
                    report.imported += 1
                elif outcome is ImportOutcome.SKIPPED:
                    report.skipped += 1
                else:
                    report.failed += 1

        counter("reconciliation.note_imports")
        log_event(
            "notes.imported",
            replace=request.replace,
            total=report.total,
            imported=report.imported,
            skipped=report.skipped,
            failed=report.failed,
        )
        return report

    def _import_note(self, conn: sqlite3.Connection, raw: Any) -> ImportOutcome:
        try:
            descriptor = NoteDescriptor.model_validate(raw)
        except ValidationError:
            return ImportOutcome.FAILED

        if not descriptor.text:
            return ImportOutcome.FAILED

        try:
            chat_id, phone = resolve_note_chat(conn, descriptor)
            if chat_id is None:
                return ImportOutcome.FAILED

            existing = conn.execute(
                "SELECT id FROM notes WHERE chat_id = ? AND text = ? LIMIT 1",
                (chat_id, descriptor.text),
            ).fetchone()
            if existing:
                return ImportOutcome.SKIPPED

            if descriptor.created_at:
                conn.execute(
                    "INSERT INTO notes (chat_id, phone_number, text, created_at) VALUES (?, ?, ?, ?)",
                    (chat_id, phone, descriptor.text, descriptor.created_at),
                )
            else:
                conn.execute(
                    "INSERT INTO notes (chat_id, phone_number, text) VALUES (?, ?, ?)",
                    (chat_id, phone, descriptor.text),
                )
            return ImportOutcome.IMPORTED
        except sqlite3.Error as e:
            logger.error("Failed to import note: %s", e)
            return ImportOutcome.FAILED


def import_notes(store: ChatStore, request: NoteImportRequest) -> NoteImportReport:
    """Convenience wrapper around ``NoteImporter(store).run(request)``."""
    return NoteImporter(store).run(request)

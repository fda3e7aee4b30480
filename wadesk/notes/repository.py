"""
Note Repository - CRUD operations for the notes table.
"""

from __future__ import annotations

from wadesk.errors import NotFoundError
from wadesk.infrastructure.database import ChatStore
from wadesk.notes.models import Note, NoteCount
from wadesk.observability.logging import get_logger
from wadesk.utils.phone import extract_phone

logger = get_logger(__name__)

_COLUMNS = "id, chat_id, phone_number, text, created_at, updated_at"


class NoteRepository:
    """
    Repository for chat notes.
    """

    def __init__(self, store: ChatStore):
        self.store = store

    def get(self, note_id: int) -> Note | None:
        with self.store.read() as conn:
            row = conn.execute(f"SELECT {_COLUMNS} FROM notes WHERE id = ?", (note_id,)).fetchone()
        return Note.from_db_row(dict(row)) if row else None

    def list_for_chat(self, chat_id: str) -> list[Note]:
        """Notes of one chat, newest first."""
        with self.store.read() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM notes WHERE chat_id = ? ORDER BY id DESC", (chat_id,)
            ).fetchall()
        return [Note.from_db_row(dict(row)) for row in rows]

    def export(self, chat_id: str | None = None) -> list[Note]:
        """All notes (or one chat's), oldest first."""
        with self.store.read() as conn:
            if chat_id is None:
                rows = conn.execute(f"SELECT {_COLUMNS} FROM notes ORDER BY id").fetchall()
            else:
                rows = conn.execute(
                    f"SELECT {_COLUMNS} FROM notes WHERE chat_id = ? ORDER BY id", (chat_id,)
                ).fetchall()
        return [Note.from_db_row(dict(row)) for row in rows]

    def counts(self) -> list[NoteCount]:
        with self.store.read() as conn:
            rows = conn.execute(
                "SELECT chat_id, COUNT(*) AS count FROM notes GROUP BY chat_id ORDER BY chat_id"
            ).fetchall()
        return [NoteCount(chat_id=row["chat_id"], count=row["count"]) for row in rows]

    def create(self, chat_id: str, text: str) -> Note:
        """
        Create a note for a chat.

        Side Effects:
            - Inserts row into notes table (phone derived from chat_id)
            - Commits and flushes the store
        """
        with self.store.transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO notes (chat_id, phone_number, text) VALUES (?, ?, ?)",
                (chat_id, extract_phone(chat_id), text),
            )
            note_id = cursor.lastrowid

        logger.info("Created note %s", note_id)
        note = self.get(note_id)
        assert note is not None
        return note

    def update(self, note_id: int, text: str) -> Note:
        """
        Replace the text of a note and stamp ``updated_at``.

        Raises:
            NotFoundError: note does not exist
        """
        if self.get(note_id) is None:
            raise NotFoundError("not found")

        with self.store.transaction() as conn:
            conn.execute(
                "UPDATE notes SET text = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (text, note_id),
            )

        note = self.get(note_id)
        assert note is not None
        return note

    def delete(self, note_id: int) -> Note:
        """
        Delete a note.

        Returns:
            The deleted note

        Raises:
            NotFoundError: note does not exist
        """
        note = self.get(note_id)
        if note is None:
            raise NotFoundError("not found")

        with self.store.transaction() as conn:
            conn.execute("DELETE FROM notes WHERE id = ?", (note_id,))

        logger.info("Deleted note %s", note_id)
        return note

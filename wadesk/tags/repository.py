"""
Tag Repository - CRUD operations for the tags and tag_assignments tables.

Every mutation runs inside ``ChatStore.transaction()`` and is therefore on
disk by the time the method returns.
"""

from __future__ import annotations

import sqlite3

from wadesk.errors import ForbiddenError, NotFoundError
from wadesk.infrastructure.database import ChatStore
from wadesk.observability.logging import get_logger
from wadesk.tags.models import Tag, TagAssignment, TagExport
from wadesk.utils.phone import extract_phone

logger = get_logger(__name__)


def find_assignment(conn: sqlite3.Connection, tag_id: int, chat_id: str) -> int | None:
    """Id of the ``(tag_id, chat_id)`` assignment, if any."""
    row = conn.execute(
        "SELECT id FROM tag_assignments WHERE tag_id = ? AND chat_id = ? LIMIT 1",
        (tag_id, chat_id),
    ).fetchone()
    return row[0] if row else None


def insert_assignment_if_missing(
    conn: sqlite3.Connection,
    tag_id: int,
    chat_id: str,
    phone_number: str | None = None,
) -> bool:
    """
    Assign a tag to a chat unless that pair is already assigned.

    ``phone_number`` defaults to the phone derived from ``chat_id``.

    Returns:
        True if a row was inserted, False for a duplicate
    """
    if find_assignment(conn, tag_id, chat_id) is not None:
        return False
    conn.execute(
        "INSERT INTO tag_assignments (tag_id, chat_id, phone_number) VALUES (?, ?, ?)",
        (tag_id, chat_id, phone_number or extract_phone(chat_id)),
    )
    return True


class TagRepository:
    """
    Repository for tags and their chat assignments.
    """

    def __init__(self, store: ChatStore):
        self.store = store

    def list(self) -> list[Tag]:
        with self.store.read() as conn:
            rows = conn.execute(
                "SELECT id, name, color, is_system, created_at FROM tags ORDER BY id"
            ).fetchall()
        return [Tag.from_db_row(dict(row)) for row in rows]

    def get(self, tag_id: int) -> Tag | None:
        with self.store.read() as conn:
            row = conn.execute(
                "SELECT id, name, color, is_system, created_at FROM tags WHERE id = ?",
                (tag_id,),
            ).fetchone()
        return Tag.from_db_row(dict(row)) if row else None

    def _get_mutable(self, tag_id: int, action: str) -> Tag:
        tag = self.get(tag_id)
        if tag is None:
            raise NotFoundError("not found")
        if tag.is_system:
            raise ForbiddenError(f"Cannot {action} system tag")
        return tag

    def create(self, name: str, color: str) -> Tag:
        """
        Create a user tag.

        Side Effects:
            - Inserts row into tags table
            - Commits and flushes the store
        """
        with self.store.transaction() as conn:
            cursor = conn.execute("INSERT INTO tags (name, color) VALUES (?, ?)", (name, color))
            tag_id = cursor.lastrowid

        logger.info("Created tag %s", tag_id)
        tag = self.get(tag_id)
        assert tag is not None
        return tag

    def update(self, tag_id: int, name: str, color: str) -> Tag:
        """
        Rename/recolor a user tag.

        Raises:
            NotFoundError: tag does not exist
            ForbiddenError: tag is the system tag
        """
        self._get_mutable(tag_id, "edit")
        with self.store.transaction() as conn:
            conn.execute("UPDATE tags SET name = ?, color = ? WHERE id = ?", (name, color, tag_id))

        tag = self.get(tag_id)
        assert tag is not None
        return tag

    def delete(self, tag_id: int) -> int:
        """
        Delete a user tag together with all its assignments.

        Returns:
            Number of assignments removed

        Raises:
            NotFoundError: tag does not exist
            ForbiddenError: tag is the system tag
        """
        self._get_mutable(tag_id, "delete")
        with self.store.transaction() as conn:
            cursor = conn.execute("DELETE FROM tag_assignments WHERE tag_id = ?", (tag_id,))
            removed = cursor.rowcount
            conn.execute("DELETE FROM tags WHERE id = ?", (tag_id,))

        logger.info("Deleted tag %s and %d assignments", tag_id, removed)
        return removed

    def assignment_count(self, tag_id: int) -> int:
        with self.store.read() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM tag_assignments WHERE tag_id = ?", (tag_id,)
            ).fetchone()
        return row[0]

    def assign(self, tag_id: int, chat_id: str) -> bool:
        """
        Assign a tag to a chat (deduplicated).

        Returns:
            True if a new assignment was stored, False if it already existed

        Raises:
            NotFoundError: tag does not exist
        """
        if self.get(tag_id) is None:
            raise NotFoundError("tag not found")

        with self.store.read() as conn:
            if find_assignment(conn, tag_id, chat_id) is not None:
                return False

        with self.store.transaction() as conn:
            return insert_assignment_if_missing(conn, tag_id, chat_id)

    def unassign(self, tag_id: int, chat_id: str) -> int:
        """
        Remove a tag from a chat.

        Returns:
            Number of rows deleted (0 when nothing was assigned)
        """
        with self.store.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM tag_assignments WHERE tag_id = ? AND chat_id = ?",
                (tag_id, chat_id),
            )
            return cursor.rowcount

    def assignments(self, chat_id: str | None = None) -> list[TagAssignment]:
        with self.store.read() as conn:
            if chat_id is None:
                rows = conn.execute(
                    "SELECT tag_id, chat_id, phone_number FROM tag_assignments ORDER BY id"
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT tag_id, chat_id, phone_number FROM tag_assignments "
                    "WHERE chat_id = ? ORDER BY id",
                    (chat_id,),
                ).fetchall()
        return [TagAssignment.from_db_row(dict(row)) for row in rows]

    def export(self) -> TagExport:
        return TagExport(tags=self.list(), assignments=self.assignments())

    def is_system_tag(self, tag_id: int) -> bool:
        return tag_id == self.store.system_tag_id()

    def assign_system_tag(self, chat_id: str) -> bool:
        """Mark a chat as archived; no-op when already marked."""
        return self.assign(self.store.system_tag_id(), chat_id)

    def unassign_system_tag(self, chat_id: str) -> int:
        return self.unassign(self.store.system_tag_id(), chat_id)

"""
Quick Reply Repository - CRUD operations for the quick_replies table.
"""

from __future__ import annotations

from typing import Any

from wadesk.errors import InvalidRequestError, NotFoundError
from wadesk.infrastructure.database import ChatStore
from wadesk.observability.logging import get_logger
from wadesk.quick_replies.models import QuickReply

logger = get_logger(__name__)


def _item_text(item: Any) -> str:
    if isinstance(item, dict):
        text = item.get("text")
    elif isinstance(item, str):
        text = item
    else:
        text = None
    return str(text) if text else ""


class QuickReplyRepository:
    """
    Repository for quick replies.
    """

    def __init__(self, store: ChatStore):
        self.store = store

    def list(self) -> list[QuickReply]:
        with self.store.read() as conn:
            rows = conn.execute(
                "SELECT id, text, created_at FROM quick_replies ORDER BY id"
            ).fetchall()
        return [QuickReply.from_db_row(dict(row)) for row in rows]

    def get(self, reply_id: int) -> QuickReply | None:
        with self.store.read() as conn:
            row = conn.execute(
                "SELECT id, text, created_at FROM quick_replies WHERE id = ?", (reply_id,)
            ).fetchone()
        return QuickReply.from_db_row(dict(row)) if row else None

    def create(self, text: str) -> QuickReply:
        """
        Store a new quick reply.

        Side Effects:
            - Inserts row into quick_replies table
            - Commits and flushes the store
        """
        with self.store.transaction() as conn:
            cursor = conn.execute("INSERT INTO quick_replies (text) VALUES (?)", (text,))
            reply_id = cursor.lastrowid

        reply = self.get(reply_id)
        assert reply is not None
        return reply

    def update(self, reply_id: int, text: str) -> QuickReply:
        """
        Raises:
            NotFoundError: quick reply does not exist
        """
        if self.get(reply_id) is None:
            raise NotFoundError("not found")

        with self.store.transaction() as conn:
            conn.execute("UPDATE quick_replies SET text = ? WHERE id = ?", (text, reply_id))

        reply = self.get(reply_id)
        assert reply is not None
        return reply

    def delete(self, reply_id: int) -> None:
        """
        Raises:
            NotFoundError: quick reply does not exist
        """
        if self.get(reply_id) is None:
            raise NotFoundError("not found")

        with self.store.transaction() as conn:
            conn.execute("DELETE FROM quick_replies WHERE id = ?", (reply_id,))

    def import_items(self, items: list[Any], replace: bool = False) -> list[QuickReply]:
        """
        Bulk-insert quick replies.

        Items are ``{"text": ...}`` objects (plain strings are accepted too);
        items without text are skipped.

        Returns:
            Every quick reply after the import

        Raises:
            InvalidRequestError: If ``items`` is empty

        Side Effects:
            - With ``replace``: deletes every quick reply first
            - Commits and flushes the store once
        """
        if not items:
            raise InvalidRequestError("items required")

        inserted = 0
        with self.store.transaction() as conn:
            if replace:
                conn.execute("DELETE FROM quick_replies")
            for item in items:
                text = _item_text(item)
                if not text:
                    continue
                conn.execute("INSERT INTO quick_replies (text) VALUES (?)", (text,))
                inserted += 1

        logger.info("Imported %d of %d quick replies (replace=%s)", inserted, len(items), replace)
        return self.list()

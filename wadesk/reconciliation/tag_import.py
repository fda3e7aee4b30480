"""
Tag import - merge exported tags and assignments into the store.

Imported tags always get fresh ids. Assignments in the payload still refer to
the ids (or names) the tags had where they were exported, so they are
remapped through two lookups built while inserting the tags:

    old id  -> new id
    name    -> new id

Chats are resolved from the chat id when present, otherwise from the phone
number: an existing assignment with the same phone recovers the real chat id,
failing that a direct-chat id is synthesized from the digits.

The whole batch runs in one store transaction and is flushed once. Each item
is fail-soft: a malformed or unresolvable item is counted as failed and the
rest of the batch continues.
"""

from __future__ import annotations

import sqlite3
from typing import Any

from pydantic import ValidationError

from wadesk.config import DEFAULT_IMPORT_TAG_COLOR, MAX_ROW_ID, SYSTEM_TAG_NAME
from wadesk.errors import InvalidRequestError
from wadesk.infrastructure.database import ChatStore
from wadesk.infrastructure.database_schema import ensure_system_tag
from wadesk.observability.logging import get_logger
from wadesk.observability.telemetry import counter, log_event, time_block
from wadesk.reconciliation.models import (
    AssignmentDescriptor,
    ImportOutcome,
    TagDescriptor,
    TagImportReport,
    TagImportRequest,
)
from wadesk.tags.repository import find_assignment, insert_assignment_if_missing
from wadesk.utils.phone import chat_id_from_phone, coerce_chat_id, extract_phone, normalize_phone

logger = get_logger(__name__)


def find_chat_for_phone(
    conn: sqlite3.Connection, phone: str, tables: tuple[str, ...] = ("tag_assignments",)
) -> str | None:
    """
    Recover a known chat id for a phone number.

    Args:
        phone: Normalized phone number; matched on digits, so a leading
            ``+`` on either side is ignored
        tables: Tables to search, in order; each must have chat_id and phone_number

    Returns:
        The first matching chat id, or None
    """
    for table in tables:
        if table not in ("tag_assignments", "notes"):
            raise ValueError(f"Cannot look up phones in {table}")
        row = conn.execute(
            f"SELECT chat_id FROM {table} WHERE ltrim(phone_number, '+') = ? LIMIT 1",
            (phone.lstrip("+"),),
        ).fetchone()
        if row and row[0]:
            return row[0]
    return None


class TagImporter:
    """
    Applies one tag import request to the store.
    """

    def __init__(self, store: ChatStore):
        self.store = store

    def run(self, request: TagImportRequest) -> TagImportReport:
        """
        Import tags and their assignments.

        Returns:
            Report with the number of tags imported and assignment outcome
            counts (``imported + skipped + failed == total``)

        Raises:
            InvalidRequestError: If the request carries no tags

        Side Effects:
            - With ``replace``: deletes every assignment and tag, then
              re-creates the system tag
            - Inserts tags and assignments
            - Commits and flushes the store once
        """
        if not request.tags:
            raise InvalidRequestError("tags required")

        report = TagImportReport()
        report.assignments.total = len(request.assignments)

        with time_block("reconciliation.tag_import"), self.store.transaction() as conn:
            if request.replace:
                conn.execute("DELETE FROM tag_assignments")
                conn.execute("DELETE FROM tags")
                ensure_system_tag(conn)
                logger.info("Replace import: cleared existing tags and assignments")

            id_map, name_map, report.imported = self._import_tags(conn, request.tags)

            for raw in request.assignments:
                outcome = self._import_assignment(conn, raw, id_map, name_map)
                if outcome is ImportOutcome.IMPORTED:
                    report.assignments.imported += 1
                elif outcome is ImportOutcome.SKIPPED:
                    report.assignments.skipped += 1
                else:
                    report.assignments.failed += 1

        counter("reconciliation.tag_imports")
        log_event(
            "tags.imported",
            tags=report.imported,
            replace=request.replace,
            total=report.assignments.total,
            imported=report.assignments.imported,
            skipped=report.assignments.skipped,
            failed=report.assignments.failed,
        )
        return report

    def _import_tags(
        self, conn: sqlite3.Connection, items: list[Any]
    ) -> tuple[dict[str, int], dict[str, int], int]:
        id_map: dict[str, int] = {}
        name_map: dict[str, int] = {}
        imported = 0

        for raw in items:
            try:
                descriptor = TagDescriptor.model_validate(raw)
            except ValidationError as e:
                logger.warning("Skipping malformed tag descriptor: %s", e.error_count())
                continue
            if not descriptor.name:
                continue

            try:
                new_id = self._insert_tag(conn, descriptor)
            except sqlite3.Error as e:
                logger.error("Failed to import tag: %s", e)
                continue

            if descriptor.old_id_key is not None:
                id_map[descriptor.old_id_key] = new_id
            name_map[descriptor.name] = new_id
            imported += 1

        return id_map, name_map, imported

    def _insert_tag(self, conn: sqlite3.Connection, descriptor: TagDescriptor) -> int:
        # The system tag is unique; an exported copy maps onto the local one
        if descriptor.is_system or descriptor.name == SYSTEM_TAG_NAME:
            return ensure_system_tag(conn)

        cursor = conn.execute(
            "INSERT INTO tags (name, color) VALUES (?, ?)",
            (descriptor.name, descriptor.color or DEFAULT_IMPORT_TAG_COLOR),
        )
        return cursor.lastrowid

    def _import_assignment(
        self,
        conn: sqlite3.Connection,
        raw: Any,
        id_map: dict[str, int],
        name_map: dict[str, int],
    ) -> ImportOutcome:
        try:
            descriptor = AssignmentDescriptor.model_validate(raw)
        except ValidationError:
            return ImportOutcome.FAILED

        try:
            tag_id = self._resolve_tag_id(conn, descriptor, id_map, name_map)
            if tag_id is None:
                return ImportOutcome.FAILED

            chat_id, phone = self._resolve_chat(conn, descriptor)
            if chat_id is None:
                return ImportOutcome.FAILED

            if find_assignment(conn, tag_id, chat_id) is not None:
                return ImportOutcome.SKIPPED

            insert_assignment_if_missing(conn, tag_id, chat_id, phone)
            return ImportOutcome.IMPORTED
        except (sqlite3.Error, OverflowError) as e:
            logger.error("Failed to import assignment: %s", e)
            return ImportOutcome.FAILED

    def _resolve_tag_id(
        self,
        conn: sqlite3.Connection,
        descriptor: AssignmentDescriptor,
        id_map: dict[str, int],
        name_map: dict[str, int],
    ) -> int | None:
        if descriptor.tag_id is not None and str(descriptor.tag_id) in id_map:
            return id_map[str(descriptor.tag_id)]
        if descriptor.tag_name is not None and descriptor.tag_name in name_map:
            return name_map[descriptor.tag_name]
        if descriptor.tag_id is None:
            return None

        # Unmapped raw id: accept it only when that tag already exists here
        try:
            raw_id = int(descriptor.tag_id)
        except ValueError:
            return None
        if not 0 < raw_id <= MAX_ROW_ID:
            return None
        row = conn.execute("SELECT id FROM tags WHERE id = ?", (raw_id,)).fetchone()
        return row[0] if row else None

    def _resolve_chat(
        self, conn: sqlite3.Connection, descriptor: AssignmentDescriptor
    ) -> tuple[str | None, str | None]:
        if descriptor.chat_id is not None:
            chat_id = coerce_chat_id(descriptor.chat_id)
            return chat_id, extract_phone(chat_id)

        if descriptor.phone_number is not None:
            phone = normalize_phone(descriptor.phone_number)
            if phone is None:
                return None, None
            chat_id = find_chat_for_phone(conn, phone) or chat_id_from_phone(phone)
            return chat_id, phone

        return None, None


def import_tags(store: ChatStore, request: TagImportRequest) -> TagImportReport:
    """Convenience wrapper around ``TagImporter(store).run(request)``."""
    return TagImporter(store).run(request)

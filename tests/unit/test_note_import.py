"""
Tests for notes import reconciliation.

Validates:
1. Phone-only notes resolve via tag assignments, then notes, then a synthesized id
2. Duplicate (chat, text) pairs are skipped
3. Empty text and unresolvable chats are counted as failed
4. Replace and createdAt handling
"""

from __future__ import annotations

import pytest

from wadesk.errors import InvalidRequestError
from wadesk.reconciliation.models import NoteImportRequest
from wadesk.reconciliation.note_import import import_notes


def _notes(store) -> list[tuple[str, str | None, str]]:
    with store.read() as conn:
        rows = conn.execute("SELECT chat_id, phone_number, text FROM notes ORDER BY id").fetchall()
    return [(r[0], r[1], r[2]) for r in rows]


def _run(store, notes, replace=False):
    return import_notes(store, NoteImportRequest(notes=notes, replace=replace))


class TestChatResolution:
    def test_chat_id_used_verbatim(self, store):
        _run(store, [{"chatId": "42@c.us", "text": "prefers mornings"}])

        assert _notes(store) == [("42@c.us", "42", "prefers mornings")]

    def test_phone_resolves_via_tag_assignment(self, store):
        with store.transaction() as conn:
            conn.execute(
                "INSERT INTO tag_assignments (tag_id, chat_id, phone_number) VALUES (1, ?, ?)",
                ("lid-77@c.us", "15557770000"),
            )

        _run(store, [{"phoneNumber": "1-555-777-0000", "text": "VIP customer"}])

        assert _notes(store) == [("lid-77@c.us", "15557770000", "VIP customer")]

    def test_phone_resolves_via_existing_note(self, store):
        with store.transaction() as conn:
            conn.execute(
                "INSERT INTO notes (chat_id, phone_number, text) VALUES (?, ?, ?)",
                ("lid-88@c.us", "15558880000", "first"),
            )

        _run(store, [{"phone": "15558880000", "text": "second"}])

        assert _notes(store)[-1] == ("lid-88@c.us", "15558880000", "second")

    @pytest.mark.parametrize(
        "stored, incoming",
        [
            ("15551234567", "+1 555 123 4567"),
            ("+15551234567", "15551234567"),
        ],
    )
    def test_phone_match_ignores_leading_plus(self, store, stored, incoming):
        with store.transaction() as conn:
            conn.execute(
                "INSERT INTO tag_assignments (tag_id, chat_id, phone_number) VALUES (1, ?, ?)",
                ("15551234567@c.us", stored),
            )

        _run(store, [{"phoneNumber": incoming, "text": "imported"}])

        assert [n[0] for n in _notes(store)] == ["15551234567@c.us"]

    def test_plus_phone_synthesizes_bare_chat_id(self, store):
        _run(store, [{"phoneNumber": "+1 555 222 3333", "text": "new"}])

        assert _notes(store) == [("15552223333@c.us", "+15552223333", "new")]

    def test_assignment_wins_over_note(self, store):
        with store.transaction() as conn:
            conn.execute(
                "INSERT INTO notes (chat_id, phone_number, text) VALUES ('from-note', '999', 'x')"
            )
            conn.execute(
                "INSERT INTO tag_assignments (tag_id, chat_id, phone_number)"
                " VALUES (1, 'from-tag', '999')"
            )

        _run(store, [{"phone_number": "999", "text": "y"}])

        assert _notes(store)[-1] == ("from-tag", "999", "y")

    def test_unknown_phone_is_synthesized(self, store):
        _run(store, [{"phoneNumber": "555 0100", "text": "new lead"}])

        assert _notes(store) == [("5550100@c.us", "5550100", "new lead")]

    def test_no_chat_and_no_phone_fails(self, store):
        report = _run(store, [{"text": "orphan"}, {"phoneNumber": "none", "text": "orphan"}])

        assert report.failed == 2
        assert _notes(store) == []


class TestDeduplication:
    def test_same_chat_and_text_is_skipped(self, store):
        notes = [
            {"chatId": "1@c.us", "text": "hello"},
            {"chatId": "1@c.us", "text": "hello"},
            {"chatId": "1@c.us", "text": "Hello"},
        ]

        report = _run(store, notes)

        assert (report.imported, report.skipped, report.failed) == (2, 1, 0)

    def test_reimport_skips_everything(self, store):
        notes = [{"chatId": "1@c.us", "text": "a"}, {"phoneNumber": "2", "text": "b"}]
        _run(store, notes)

        second = _run(store, notes)

        assert (second.imported, second.skipped) == (0, 2)


class TestReportAndOptions:
    def test_totals_always_add_up(self, store):
        notes = [
            {"chatId": "1@c.us", "text": "ok"},
            {"chatId": "1@c.us", "text": "ok"},
            {"chatId": "1@c.us", "text": ""},
            {"chatId": "1@c.us", "text": "   "},
            {"text": "no chat"},
            "garbage",
            {"chatId": "1@c.us", "text": 12345},
        ]

        report = _run(store, notes)

        assert report.total == 7
        assert report.imported + report.skipped + report.failed == report.total
        assert (report.imported, report.skipped, report.failed) == (2, 1, 4)

    def test_created_at_preserved(self, store):
        _run(store, [{"chatId": "1@c.us", "text": "old", "createdAt": "2023-05-01 10:00:00"}])

        with store.read() as conn:
            created = conn.execute("SELECT created_at FROM notes").fetchone()[0]
        assert created == "2023-05-01 10:00:00"

    def test_replace_deletes_existing_notes(self, store):
        _run(store, [{"chatId": "1@c.us", "text": "old"}])

        report = _run(store, [{"chatId": "2@c.us", "text": "new"}], replace=True)

        assert report.imported == 1
        assert _notes(store) == [("2@c.us", "2", "new")]

    def test_no_notes_is_rejected(self, store):
        with pytest.raises(InvalidRequestError, match="notes required"):
            _run(store, [])

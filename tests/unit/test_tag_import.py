"""
Tests for tag import reconciliation.

Validates:
1. Exported ids are remapped to fresh ids, with a name fallback
2. Unmapped raw ids are only trusted when that tag exists locally
3. Chats resolve from chat ids, then phone lookups, then synthesized ids
4. Duplicates are skipped and report totals always add up
5. Replace clears tags but keeps exactly one system tag
"""

from __future__ import annotations

import pytest

from wadesk.errors import InvalidRequestError
from wadesk.reconciliation.models import TagImportRequest
from wadesk.reconciliation.tag_import import find_chat_for_phone, import_tags


def _assignments(store) -> list[tuple[str, str, str | None]]:
    with store.read() as conn:
        rows = conn.execute(
            """
            SELECT t.name, a.chat_id, a.phone_number
            FROM tag_assignments a JOIN tags t ON t.id = a.tag_id
            ORDER BY a.id
            """
        ).fetchall()
    return [(r[0], r[1], r[2]) for r in rows]


def _tag_id(store, name: str) -> int:
    with store.read() as conn:
        return conn.execute("SELECT id FROM tags WHERE name = ?", (name,)).fetchone()[0]


def _run(store, **body):
    return import_tags(store, TagImportRequest(**body))


class TestIdRemapping:
    def test_duplicate_assignment_in_batch_is_skipped(self, store):
        report = _run(
            store,
            tags=[{"id": 999, "name": "X", "color": "#000"}],
            assignments=[
                {"tag_id": 999, "chat_id": "9@c.us"},
                {"tag_id": 999, "chat_id": "9@c.us"},
            ],
        )

        assert report.imported == 1
        assert report.assignments.total == 2
        assert report.assignments.imported == 1
        assert report.assignments.skipped == 1
        assert report.assignments.failed == 0
        assert _assignments(store) == [("X", "9@c.us", "9")]

    def test_old_ids_map_to_fresh_ids(self, store):
        _run(
            store,
            tags=[
                {"id": 7, "name": "Lead", "color": "#00f"},
                {"id": 8, "name": "Paid", "color": "#0f0"},
            ],
            assignments=[
                {"tagId": 8, "chatId": "100@c.us"},
                {"tagId": "7", "chatId": "200@c.us"},
            ],
        )

        assert _assignments(store) == [
            ("Paid", "100@c.us", "100"),
            ("Lead", "200@c.us", "200"),
        ]
        assert _tag_id(store, "Lead") != 7

    def test_name_fallback(self, store):
        report = _run(
            store,
            tags=[{"name": "Support", "color": "#123"}],
            assignments=[{"tagName": "Support", "chatId": "300@c.us"}],
        )

        assert report.assignments.imported == 1
        assert _assignments(store) == [("Support", "300@c.us", "300")]

    def test_missing_color_gets_default(self, store):
        _run(store, tags=[{"name": "Plain"}])

        with store.read() as conn:
            color = conn.execute("SELECT color FROM tags WHERE name = 'Plain'").fetchone()[0]
        assert color == "#AAAAAA"


class TestRawIdFallback:
    def test_unknown_raw_id_fails(self, store):
        report = _run(
            store,
            tags=[{"id": 1, "name": "A"}],
            assignments=[{"tag_id": 4242, "chat_id": "9@c.us"}],
        )

        assert report.assignments.failed == 1
        assert _assignments(store) == []

    def test_raw_id_of_existing_tag_is_accepted(self, store):
        with store.transaction() as conn:
            local_id = conn.execute(
                "INSERT INTO tags (name, color) VALUES ('Local', '#fff')"
            ).lastrowid

        report = _run(
            store,
            tags=[{"name": "Other"}],
            assignments=[{"tag_id": local_id, "chat_id": "9@c.us"}],
        )

        assert report.assignments.imported == 1
        assert _assignments(store) == [("Local", "9@c.us", "9")]


    def test_out_of_range_raw_id_fails_without_aborting_batch(self, store):
        report = _run(
            store,
            tags=[{"id": 1, "name": "A"}],
            assignments=[
                {"tag_id": 10**30, "chat_id": "9@c.us"},
                {"tag_id": -5, "chat_id": "9@c.us"},
                {"tag_id": 1, "chat_id": "2@c.us"},
            ],
        )

        assert (report.assignments.imported, report.assignments.failed) == (1, 2)
        assert _assignments(store) == [("A", "2@c.us", "2")]


class TestChatResolution:
    def test_bare_digits_promoted_to_chat_id(self, store):
        _run(store, tags=[{"id": 1, "name": "A"}], assignments=[{"tag_id": 1, "chat_id": "555"}])

        assert _assignments(store) == [("A", "555@c.us", "555")]

    def test_group_chat_kept_without_phone(self, store):
        _run(
            store,
            tags=[{"id": 1, "name": "A"}],
            assignments=[{"tag_id": 1, "chat_id": "120363@g.us"}],
        )

        assert _assignments(store) == [("A", "120363@g.us", None)]

    def test_phone_resolves_to_known_chat(self, store):
        # A chat first seen under a non-phone id keeps that id on re-import
        with store.transaction() as conn:
            tag = conn.execute("INSERT INTO tags (name, color) VALUES ('Old', '#fff')").lastrowid
            conn.execute(
                "INSERT INTO tag_assignments (tag_id, chat_id, phone_number) VALUES (?, ?, ?)",
                (tag, "lid-abc@c.us", "15550001111"),
            )

        report = _run(
            store,
            tags=[{"id": 5, "name": "New"}],
            assignments=[{"tag_id": 5, "phoneNumber": "1 555 000 1111"}],
        )

        assert report.assignments.imported == 1
        rows = [r for r in _assignments(store) if r[0] == "New"]
        assert rows == [("New", "lid-abc@c.us", "15550001111")]

    @pytest.mark.parametrize(
        "stored, incoming",
        [
            ("15550001111", "+1 555 000 1111"),
            ("+15550001111", "1 555 000 1111"),
            ("+15550001111", "+15550001111"),
        ],
    )
    def test_phone_match_ignores_leading_plus(self, store, stored, incoming):
        with store.transaction() as conn:
            tag = conn.execute("INSERT INTO tags (name, color) VALUES ('Old', '#fff')").lastrowid
            conn.execute(
                "INSERT INTO tag_assignments (tag_id, chat_id, phone_number) VALUES (?, ?, ?)",
                (tag, "lid-abc@c.us", stored),
            )

        _run(store, tags=[{"id": 5, "name": "New"}], assignments=[{"tag_id": 5, "phone": incoming}])

        rows = [r for r in _assignments(store) if r[0] == "New"]
        assert [r[1] for r in rows] == ["lid-abc@c.us"]

    def test_plus_phone_synthesizes_bare_chat_id(self, store):
        _run(
            store,
            tags=[{"id": 5, "name": "New"}],
            assignments=[{"tag_id": 5, "phone": "+44 20 7946 0958"}],
        )

        assert _assignments(store) == [("New", "442079460958@c.us", "+442079460958")]

    def test_phone_without_known_chat_is_synthesized(self, store):
        _run(
            store,
            tags=[{"id": 5, "name": "New"}],
            assignments=[{"tag_id": 5, "phone": "(555) 010-2030"}],
        )

        assert _assignments(store) == [("New", "5550102030@c.us", "5550102030")]

    def test_neither_chat_nor_phone_fails(self, store):
        report = _run(
            store,
            tags=[{"id": 5, "name": "New"}],
            assignments=[{"tag_id": 5}, {"tag_id": 5, "phone_number": "n/a"}],
        )

        assert report.assignments.failed == 2

    def test_find_chat_for_phone_rejects_unknown_tables(self, store):
        with store.read() as conn:
            with pytest.raises(ValueError):
                find_chat_for_phone(conn, "123", ("quick_replies",))


class TestReplace:
    def test_replace_clears_existing_tags(self, store):
        _run(store, tags=[{"id": 1, "name": "Old"}], assignments=[{"tag_id": 1, "chat_id": "1"}])

        _run(
            store,
            tags=[{"id": 1, "name": "Fresh"}],
            assignments=[{"tag_id": 1, "chat_id": "2"}],
            replace=True,
        )

        with store.read() as conn:
            names = sorted(r[0] for r in conn.execute("SELECT name FROM tags"))
        assert names == ["Archived", "Fresh"]
        assert _assignments(store) == [("Fresh", "2@c.us", "2")]

    def test_exported_system_tag_maps_onto_local_one(self, store):
        report = _run(
            store,
            tags=[{"id": 40, "name": "Archived", "color": "#808080", "is_system": 1}],
            assignments=[{"tag_id": 40, "chat_id": "9@c.us"}],
            replace=True,
        )

        with store.read() as conn:
            system_rows = conn.execute("SELECT id FROM tags WHERE is_system = 1").fetchall()
        assert len(system_rows) == 1
        assert report.imported == 1
        assert _assignments(store) == [("Archived", "9@c.us", "9")]
        assert system_rows[0][0] == store.system_tag_id()


class TestReportContract:
    def test_totals_always_add_up(self, store):
        report = _run(
            store,
            tags=[{"id": 1, "name": "A"}, "not a tag", {"name": ""}],
            assignments=[
                {"tag_id": 1, "chat_id": "1"},
                {"tag_id": 1, "chat_id": "1@c.us"},
                {"tag_id": 77, "chat_id": "1"},
                {"tag_id": 1},
                "garbage",
                {"tag_id": True, "chat_id": ["x"]},
            ],
        )

        a = report.assignments
        assert a.total == 6
        assert a.imported + a.skipped + a.failed == a.total
        assert (a.imported, a.skipped) == (1, 1)
        assert report.imported == 1

    def test_no_tags_is_rejected(self, store):
        with pytest.raises(InvalidRequestError, match="tags required"):
            _run(store, tags=[], assignments=[{"tag_id": 1, "chat_id": "1"}])

    def test_reimport_is_idempotent(self, store):
        body = {
            "tags": [{"id": 1, "name": "A"}],
            "assignments": [{"tagName": "A", "chatId": "1@c.us"}],
        }
        _run(store, **body)
        second = _run(store, **body)

        # Tags get fresh ids again, so the assignment lands on the new copy
        assert second.assignments.imported + second.assignments.skipped == 1
        assert second.assignments.failed == 0

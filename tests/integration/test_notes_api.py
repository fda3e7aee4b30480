"""Integration tests for the notes API (camelCase on the wire)"""

from __future__ import annotations


def _create(client, chat_id="123@c.us", text="prefers mornings") -> dict:
    response = client.post("/api/notes", json={"chatId": chat_id, "text": text})
    assert response.status_code == 201
    return response.json()


class TestNotesCrud:
    def test_create_derives_phone(self, client):
        note = _create(client)

        assert note["chatId"] == "123@c.us"
        assert note["phoneNumber"] == "123"
        assert note["text"] == "prefers mornings"
        assert note["createdAt"]
        assert note["updatedAt"] is None

    def test_group_note_has_no_phone(self, client):
        note = _create(client, chat_id="120363@g.us")
        assert note["phoneNumber"] is None

    def test_list_newest_first(self, client):
        first = _create(client, text="first")
        second = _create(client, text="second")
        _create(client, chat_id="456@c.us", text="elsewhere")

        notes = client.get("/api/notes", params={"chatId": "123@c.us"}).json()

        assert [n["id"] for n in notes] == [second["id"], first["id"]]

    def test_list_requires_chat_id(self, client):
        response = client.get("/api/notes")
        assert response.status_code == 400
        assert response.json()["detail"] == "chatId required"

    def test_update_stamps_updated_at(self, client):
        note = _create(client)

        response = client.put(f"/api/notes/{note['id']}", json={"text": "prefers evenings"})

        assert response.status_code == 200
        updated = response.json()
        assert updated["text"] == "prefers evenings"
        assert updated["updatedAt"]
        assert updated["chatId"] == "123@c.us"

    def test_delete(self, client):
        note = _create(client)

        assert client.delete(f"/api/notes/{note['id']}").json() == {"ok": True}
        assert client.get("/api/notes", params={"chatId": "123@c.us"}).json() == []

    def test_unknown_note(self, client):
        assert client.put("/api/notes/999", json={"text": "x"}).status_code == 404
        assert client.delete("/api/notes/999").status_code == 404

    def test_out_of_range_id_rejected(self, client):
        assert client.put(f"/api/notes/{10**30}", json={"text": "x"}).status_code == 400
        assert client.delete(f"/api/notes/{10**30}").status_code == 400

    def test_blank_text_rejected(self, client):
        response = client.post("/api/notes", json={"chatId": "1@c.us", "text": "  "})
        assert response.status_code == 400


class TestCountsAndExport:
    def test_counts_per_chat(self, client):
        _create(client, chat_id="1@c.us", text="a")
        _create(client, chat_id="1@c.us", text="b")
        _create(client, chat_id="2@c.us", text="c")

        counts = {c["chatId"]: c["count"] for c in client.get("/api/notes/counts").json()}

        assert counts == {"1@c.us": 2, "2@c.us": 1}

    def test_export_oldest_first_and_filtered(self, client):
        _create(client, chat_id="1@c.us", text="a")
        _create(client, chat_id="2@c.us", text="b")
        _create(client, chat_id="1@c.us", text="c")

        everything = client.get("/api/notes/export").json()
        only_one = client.get("/api/notes/export", params={"chatId": "1@c.us"}).json()

        assert [n["text"] for n in everything] == ["a", "b", "c"]
        assert [n["text"] for n in only_one] == ["a", "c"]


class TestImport:
    def test_phone_only_note_follows_existing_assignment(self, client):
        tag = client.post("/api/tags", json={"name": "VIP", "color": "#ffcc00"}).json()
        client.post("/api/tags/assign", json={"tagId": tag["id"], "chatId": "15551234567@c.us"})

        response = client.post(
            "/api/notes/import",
            json={"notes": [{"phoneNumber": "+1 555 123 4567", "text": "imported"}]},
        )

        assert response.json() == {"ok": True, "imported": 1, "skipped": 0, "failed": 0, "total": 1}
        notes = client.get("/api/notes", params={"chatId": "15551234567@c.us"}).json()
        assert [n["text"] for n in notes] == ["imported"]

    def test_export_reimport_is_idempotent(self, client):
        _create(client, text="a")
        _create(client, text="b")
        exported = client.get("/api/notes/export").json()

        report = client.post("/api/notes/import", json={"notes": exported}).json()

        assert (report["imported"], report["skipped"], report["failed"]) == (0, 2, 0)

    def test_empty_import_rejected(self, client):
        response = client.post("/api/notes/import", json={"notes": []})
        assert response.status_code == 400
        assert response.json()["detail"] == "notes required"

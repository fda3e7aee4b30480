"""Integration tests for the quick replies API"""

from __future__ import annotations


class TestQuickReplies:
    def test_crud(self, client):
        response = client.post("/api/quick-replies", json={"text": "Thanks!"})
        assert response.status_code == 201
        reply = response.json()

        response = client.put(f"/api/quick-replies/{reply['id']}", json={"text": "Thank you!"})
        assert response.json()["text"] == "Thank you!"

        assert [r["text"] for r in client.get("/api/quick-replies").json()] == ["Thank you!"]

        assert client.delete(f"/api/quick-replies/{reply['id']}").json() == {"ok": True}
        assert client.get("/api/quick-replies").json() == []

    def test_unknown_reply(self, client):
        assert client.put("/api/quick-replies/42", json={"text": "x"}).status_code == 404
        assert client.delete("/api/quick-replies/42").status_code == 404

    def test_out_of_range_id_rejected(self, client):
        response = client.put(f"/api/quick-replies/{10**30}", json={"text": "x"})
        assert response.status_code == 400
        assert client.delete(f"/api/quick-replies/{10**30}").status_code == 400

    def test_text_required(self, client):
        assert client.post("/api/quick-replies", json={}).status_code == 400
        assert client.post("/api/quick-replies", json={"text": ""}).status_code == 400

    def test_import_accepts_objects_and_strings(self, client):
        client.post("/api/quick-replies", json={"text": "existing"})

        response = client.post(
            "/api/quick-replies/import",
            json={"items": [{"text": "On my way"}, "See you soon", {"text": ""}, {"other": 1}]},
        )

        result = response.json()
        assert result["ok"] is True
        assert result["count"] == 3
        assert [r["text"] for r in result["rows"]] == ["existing", "On my way", "See you soon"]

    def test_import_replace(self, client):
        client.post("/api/quick-replies", json={"text": "old"})

        result = client.post(
            "/api/quick-replies/import", json={"items": ["new"], "replace": True}
        ).json()

        assert [r["text"] for r in result["rows"]] == ["new"]

    def test_import_requires_items(self, client):
        response = client.post("/api/quick-replies/import", json={"items": []})
        assert response.status_code == 400
        assert response.json()["detail"] == "items required"

    def test_export_matches_list(self, client):
        client.post("/api/quick-replies", json={"text": "a"})
        assert client.get("/api/quick-replies/export").json() == client.get(
            "/api/quick-replies"
        ).json()

"""
Integration tests for the realtime WebSocket.

Frames are ``{"event", "data"}`` JSON objects in both directions.
"""

from __future__ import annotations


def _expect(ws, event: str):
    message = ws.receive_json()
    assert message["event"] == event, message
    return message["data"]


def _registered(ws):
    """Round-trip once so the server has registered the socket for broadcasts"""
    ws.send_json({"event": "requestMessages"})
    _expect(ws, "messages")
    return ws


class TestRequests:
    def test_request_messages(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "requestMessages"})
            feed = _expect(ws, "messages")

        assert len(feed) == 4
        timestamps = [m["timestamp"] for m in feed]
        assert timestamps == sorted(timestamps, reverse=True)

    def test_get_full_chat(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "getFullChat", "data": "111@c.us"})
            chat = _expect(ws, "full_chat")

        assert chat["chatId"] == "111@c.us"
        assert [m["body"] for m in chat["messages"]] == ["message 0", "message 1"]

    def test_send_preset(self, client, mock_client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "sendPreset", "data": {"chatId": "111@c.us", "text": "Hi"}})
            chats = _expect(ws, "chats")
            sent = _expect(ws, "sent")

        assert sent == {"chatId": "111@c.us", "text": "Hi"}
        assert mock_client.sent == [("111@c.us", "Hi")]
        alice = next(c for c in chats if c["chatId"] == "111@c.us")
        assert alice["unreadCount"] == 0
        assert alice["history"][-1]["body"] == "Hi"

    def test_archive_flow(self, client, mock_client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "archiveChat", "data": {"chatId": "111@c.us"}})
            _expect(ws, "tags_updated")
            assert _expect(ws, "archive_success") == {"chatId": "111@c.us"}
            _expect(ws, "chats")

        assert mock_client.chats[0].archived
        system = next(t for t in client.get("/api/tags").json() if t["is_system"])
        assert client.get(f"/api/tags/{system['id']}/count").json()["count"] == 2

    def test_archive_unknown_chat(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "archiveChat", "data": {"chatId": "nobody@c.us"}})
            error = _expect(ws, "archive_error")

        assert error == {"chatId": "nobody@c.us", "error": "Chat not found"}


class TestProtocolErrors:
    def test_unknown_event(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "selfDestruct"})
            assert _expect(ws, "error") == {"message": "Unknown event: selfDestruct"}

    def test_invalid_frame(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_text("not json")
            assert _expect(ws, "error") == {"message": "Invalid frame"}
            ws.send_json(["event", "requestMessages"])
            assert _expect(ws, "error") == {"message": "Invalid frame"}


class TestBroadcasts:
    def test_rest_mutations_reach_sockets(self, client):
        with client.websocket_connect("/ws") as ws:
            _registered(ws)
            client.post("/api/quick-replies", json={"text": "hello"})
            _expect(ws, "quick_replies_updated")

            client.post("/api/notes", json={"chatId": "111@c.us", "text": "n"})
            assert _expect(ws, "notes_updated") == {"chatId": "111@c.us"}

            client.post("/api/tags", json={"name": "VIP", "color": "#ffcc00"})
            _expect(ws, "tags_updated")

    def test_every_socket_receives_broadcasts(self, client):
        with client.websocket_connect("/ws") as first, client.websocket_connect("/ws") as second:
            _registered(first)
            _registered(second)
            assert client.get("/health").json()["realtime"]["connections"] == 2
            client.post("/api/quick-replies", json={"text": "hello"})
            _expect(first, "quick_replies_updated")
            _expect(second, "quick_replies_updated")

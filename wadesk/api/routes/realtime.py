"""
Realtime WebSocket endpoint.

Frames are JSON objects ``{"event": <name>, "data": <payload>}`` in both
directions. Client events:

- ``requestMessages``                      -> ``messages`` (or ``not_ready`` + ``messages``)
- ``sendPreset``    ``{chatId, text}``     -> ``sent`` / ``error``
- ``getFullChat``   ``chatId``             -> ``full_chat``
- ``archiveChat``   ``{chatId}``           -> ``archive_success`` / ``archive_error``
- ``unarchiveChat`` ``{chatId}``           -> ``unarchive_success`` / ``unarchive_error``

Invalidation events (``chats``, ``tags_updated``, ...) reach every socket
through the event bus.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from wadesk.chats.service import ChatService, Reply
from wadesk.observability.logging import get_logger
from wadesk.observability.telemetry import counter
from wadesk.realtime import events

router = APIRouter(tags=["realtime"])
logger = get_logger(__name__)


def _chat_id_from(data: Any) -> str | None:
    # getFullChat sends a bare id; the archive events send {chatId}
    if isinstance(data, dict):
        data = data.get("chatId")
    if data is None:
        return None
    return str(data) or None


async def dispatch(chat_service: ChatService, event: str, data: Any, reply: Reply) -> None:
    """Route one client event to the chat service."""
    if event == events.REQUEST_MESSAGES:
        await chat_service.request_messages(reply)
    elif event == events.SEND_PRESET:
        payload = data if isinstance(data, dict) else {}
        await chat_service.send_preset(payload.get("chatId"), payload.get("text"), reply)
    elif event == events.GET_FULL_CHAT:
        await chat_service.get_full_chat(_chat_id_from(data), reply)
    elif event == events.ARCHIVE_CHAT:
        await chat_service.archive_chat(_chat_id_from(data), reply)
    elif event == events.UNARCHIVE_CHAT:
        await chat_service.unarchive_chat(_chat_id_from(data), reply)
    else:
        counter("realtime.unknown_events")
        await reply(events.ERROR, {"message": f"Unknown event: {event}"})


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket) -> None:
    state = websocket.app.state
    manager = state.connections
    chat_service: ChatService = state.chat_service

    await websocket.accept()
    manager.connect(websocket)

    async def reply(event: str, data: Any = None) -> None:
        await manager.send(websocket, event, data)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                await reply(events.ERROR, {"message": "Invalid frame"})
                continue
            if not isinstance(message, dict) or not isinstance(message.get("event"), str):
                await reply(events.ERROR, {"message": "Invalid frame"})
                continue

            await dispatch(chat_service, message["event"], message.get("data"), reply)
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(websocket)

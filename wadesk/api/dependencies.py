"""
FastAPI dependencies.

Every long-lived object (store, event bus, services, automation client) is
built once in ``create_app()`` and kept on ``app.state``; handlers receive
them through these accessors instead of module-level singletons.
"""

from __future__ import annotations

from starlette.requests import HTTPConnection

from wadesk.chats.service import ChatService
from wadesk.infrastructure.database import ChatStore
from wadesk.notes.service import NoteService
from wadesk.quick_replies.service import QuickReplyService
from wadesk.realtime.connection_manager import ConnectionManager
from wadesk.tags.service import TagService


def get_store(conn: HTTPConnection) -> ChatStore:
    return conn.app.state.store


def get_tag_service(conn: HTTPConnection) -> TagService:
    return conn.app.state.tag_service


def get_note_service(conn: HTTPConnection) -> NoteService:
    return conn.app.state.note_service


def get_quick_reply_service(conn: HTTPConnection) -> QuickReplyService:
    return conn.app.state.quick_reply_service


def get_chat_service(conn: HTTPConnection) -> ChatService:
    return conn.app.state.chat_service


def get_connection_manager(conn: HTTPConnection) -> ConnectionManager:
    return conn.app.state.connections

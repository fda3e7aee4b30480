"""Health check endpoint for the wadesk API.

Provides a liveness check reporting store and automation client readiness.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends

from wadesk.api.dependencies import get_chat_service, get_connection_manager, get_store
from wadesk.chats.service import ChatService
from wadesk.config import APP_VERSION
from wadesk.infrastructure.database import ChatStore
from wadesk.realtime.connection_manager import ConnectionManager

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(
    store: ChatStore = Depends(get_store),
    chat_service: ChatService = Depends(get_chat_service),
    connections: ConnectionManager = Depends(get_connection_manager),
) -> dict[str, Any]:
    """Health check endpoint.

    Always answers 200 while the process is up; ``store.ready`` and
    ``whatsapp.ready`` tell whether requests will actually be served.
    """
    return {
        "status": "healthy" if store.ready else "starting",
        "service": "wadesk",
        "version": APP_VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
        "store": {"ready": store.ready},
        "whatsapp": {"ready": chat_service.ready},
        "realtime": {"connections": len(connections)},
    }

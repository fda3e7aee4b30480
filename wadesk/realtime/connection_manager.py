"""
WebSocket Connection Manager
Tracks connected dashboard sockets and fans realtime events out to them
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import WebSocket

from wadesk.observability.logging import get_logger
from wadesk.observability.telemetry import counter

logger = get_logger(__name__)


def frame(event: str, data: Any = None) -> dict[str, Any]:
    """Wire shape of every realtime frame, in both directions."""
    return {"event": event, "data": data}


class ConnectionManager:
    """
    Registry of accepted WebSocket connections.

    Every dashboard sees the same state, so there is no per-user partitioning:
    ``broadcast`` reaches every socket. Sockets whose send fails are dropped.
    """

    def __init__(self):
        self.active_connections: set[WebSocket] = set()
        self.connected_at: dict[WebSocket, datetime] = {}

    def __len__(self) -> int:
        return len(self.active_connections)

    def connect(self, websocket: WebSocket) -> None:
        """
        Register a connection.

        Note: WebSocket must already be accepted before calling this method.
        """
        self.active_connections.add(websocket)
        self.connected_at[websocket] = datetime.now(timezone.utc)
        logger.info("UI connected, total_connections=%d", len(self.active_connections))

    def disconnect(self, websocket: WebSocket) -> None:
        self.active_connections.discard(websocket)
        self.connected_at.pop(websocket, None)
        logger.info("UI disconnected, remaining_connections=%d", len(self.active_connections))

    async def send(self, websocket: WebSocket, event: str, data: Any = None) -> None:
        """Send one event to a single connection."""
        try:
            await websocket.send_json(frame(event, data))
        except Exception as e:
            logger.error("Failed to send %s to connection: %s", event, e)
            self.disconnect(websocket)

    async def broadcast(self, event: str, data: Any = None) -> None:
        """
        Send an event to every connection.

        Signature matches ``EventBus`` subscribers so the manager can be
        subscribed directly.
        """
        message = frame(event, data)
        failed = []
        for connection in list(self.active_connections):
            try:
                await connection.send_json(message)
            except Exception as e:
                logger.error("Failed to broadcast %s to connection: %s", event, e)
                failed.append(connection)

        for connection in failed:
            counter("realtime.broadcast_failures")
            self.disconnect(connection)

        logger.debug(
            "Broadcast %s: sent=%d, failed=%d",
            event,
            len(self.active_connections),
            len(failed),
        )

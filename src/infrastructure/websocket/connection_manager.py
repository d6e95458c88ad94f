from __future__ import annotations

import logging
from uuid import UUID

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages WebSocket connections listening for board invalidations."""

    def __init__(self) -> None:
        # Key: organization_id -> list of WebSocket connections
        self.active_connections: dict[UUID, list[WebSocket]] = {}

    async def connect(self, organization_id: UUID, websocket: WebSocket) -> None:
        """Accept and register a new WebSocket connection."""
        await websocket.accept()
        conns = self.active_connections.setdefault(organization_id, [])
        conns.append(websocket)
        logger.info(f"WebSocket connected: organization={organization_id} total={len(conns)}")

    def disconnect(self, organization_id: UUID, websocket: WebSocket | None = None) -> None:
        """Remove a WebSocket connection. If `websocket` is provided, remove only that one."""
        conns_all = self.active_connections.get(organization_id)
        if conns_all is None:
            return
        if websocket is not None:
            conns = [
                ws
                for ws in conns_all
                if ws is not websocket and ws.client_state.name != "DISCONNECTED"
            ]
        else:
            # Clean up closed websockets
            conns = [ws for ws in conns_all if ws.client_state.name != "DISCONNECTED"]
        if conns:
            self.active_connections[organization_id] = conns
        else:
            del self.active_connections[organization_id]
        logger.info(
            f"WebSocket disconnected: organization={organization_id} remaining={len(conns)}"
        )

    async def broadcast(self, organization_id: UUID, message: str) -> int:
        """
        Send a message to every connection of an organization.
        Returns the number of connections that received it.
        """
        conns = self.active_connections.get(organization_id)
        if not conns:
            logger.debug(f"No listeners: organization={organization_id}")
            return 0

        alive: list[WebSocket] = []
        for ws in conns:
            try:
                await ws.send_text(message)
                alive.append(ws)
            except Exception as e:
                logger.warning(
                    f"Error sending to one connection organization={organization_id}: {e}"
                )
        # Drop broken connections
        if alive:
            self.active_connections[organization_id] = alive
        else:
            self.active_connections.pop(organization_id, None)
        return len(alive)

    def is_connected(self, organization_id: UUID) -> bool:
        return bool(self.active_connections.get(organization_id))

    def get_connection_count(self) -> int:
        """Get the total number of active connections."""
        return sum(len(v) for v in self.active_connections.values())


board_connections = ConnectionManager()

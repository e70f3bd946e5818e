"""
WebSocket connection pool for the queue panel.

Every connected panel gets every event; there is only one queue.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fastapi import WebSocket

log = logging.getLogger("promptqueue.server")


class ConnectionManager:
    def __init__(self) -> None:
        self._connections: list["WebSocket"] = []

    async def connect(self, ws: "WebSocket") -> None:
        await ws.accept()
        self._connections.append(ws)
        log.debug("WS connected  total=%d", len(self._connections))

    def disconnect(self, ws: "WebSocket") -> None:
        if ws in self._connections:
            self._connections.remove(ws)
        log.debug("WS disconnected  total=%d", len(self._connections))

    async def broadcast(self, data: dict) -> None:
        """Send to all connected panels, dropping any that fail."""
        for ws in list(self._connections):
            try:
                await ws.send_json(data)
            except Exception:
                self.disconnect(ws)

    def __len__(self) -> int:
        return len(self._connections)


# Module-level singleton
_manager: ConnectionManager | None = None


def get_connection_manager() -> ConnectionManager:
    global _manager
    if _manager is None:
        _manager = ConnectionManager()
    return _manager

import logging

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Fan-out of table change events to subscribed websockets."""

    def __init__(self):
        self.active_connections: dict[str, list[WebSocket]] = {}

    async def connect(self, table: str, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.setdefault(table, []).append(websocket)

    async def disconnect(self, table: str, websocket: WebSocket):
        connections = self.active_connections.get(table, [])
        if websocket in connections:
            connections.remove(websocket)
        if not connections:
            self.active_connections.pop(table, None)

    def subscribers(self, table: str) -> int:
        return len(self.active_connections.get(table, []))

    async def broadcast(self, table: str, payload: dict):
        for ws in list(self.active_connections.get(table, [])):
            try:
                await ws.send_json(payload)
            except (RuntimeError, ConnectionError) as e:
                # peer went away between receive loops
                logger.info(f"Dropping stale subscriber on {table}: {e!r}")
                await self.disconnect(table, ws)


manager = ConnectionManager()

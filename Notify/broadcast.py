# backend/Notify/broadcast.py
import asyncio
import logging
from typing import Any

from fastapi import WebSocket
from starlette.websockets import WebSocketState

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Live WebSocket subscribers for this process.

    Created once in the app lifespan and kept on ``app.state.manager``.
    Pushes are live only: a socket that connects after a broadcast never
    sees that message.
    """

    def __init__(self) -> None:
        self._connections: set[WebSocket] = set()
        self._lock = asyncio.Lock()

    @property
    def count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections.add(websocket)
        logger.info("Subscriber connected (%d live)", self.count)

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._connections.discard(websocket)
        logger.info("Subscriber disconnected (%d live)", self.count)

    async def broadcast(self, message: dict[str, Any]) -> int:
        """Send ``message`` as one JSON frame to every open socket; returns how many got it."""
        async with self._lock:
            targets = list(self._connections)

        sent = 0
        dead = []
        for ws in targets:
            if ws.client_state != WebSocketState.CONNECTED or ws.application_state != WebSocketState.CONNECTED:
                dead.append(ws)
                continue
            try:
                await ws.send_json(message)
                sent += 1
            except Exception:
                logger.warning("Dropping subscriber after failed send", exc_info=True)
                dead.append(ws)

        if dead:
            async with self._lock:
                self._connections.difference_update(dead)
        logger.info("Broadcast delivered to %d of %d subscribers", sent, len(targets))
        return sent

    async def close_all(self) -> None:
        async with self._lock:
            targets = list(self._connections)
            self._connections.clear()
        for ws in targets:
            if ws.application_state == WebSocketState.CONNECTED:
                try:
                    await ws.close()
                except Exception:
                    logger.debug("Socket already gone on shutdown", exc_info=True)

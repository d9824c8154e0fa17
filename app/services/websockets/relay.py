# app/services/websockets/relay.py
"""
Fan-out of stock mutations to every connected client.

The relay owns the set of open channels. It keeps nothing else: no history,
no acknowledgements. A message is serialized once and written to each open
channel except the one it came from. A channel that fails a write is dropped
so it cannot stall later broadcasts.
"""

import json
import logging
from typing import Any, Dict, Optional, Union

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from app.core.enums import KeepAliveType
from app.schemas.sync import PONG_FRAME, SyncMessage, is_keepalive

logger = logging.getLogger(__name__)


def _is_open(websocket: WebSocket) -> bool:
    return (
        websocket.client_state == WebSocketState.CONNECTED
        and websocket.application_state == WebSocketState.CONNECTED
    )


class SyncRelay:
    def __init__(self):
        # Insertion-ordered set: first registered, first sent
        self.active_connections: Dict[WebSocket, None] = {}

    @property
    def connection_count(self) -> int:
        return len(self.active_connections)

    async def register(self, websocket: WebSocket, accept: bool = True):
        # Tracked before the handshake completes; broadcast skips it until open
        self.active_connections[websocket] = None
        if accept:
            await websocket.accept()
        logger.info(f"WebSocket connected. Total connections: {self.connection_count}")

    def unregister(self, websocket: WebSocket):
        if self.active_connections.pop(websocket, False) is None:
            logger.info(f"WebSocket disconnected. Total connections: {self.connection_count}")

    async def send_personal_message(self, message: Dict[str, Any], websocket: WebSocket):
        await websocket.send_text(json.dumps(message))

    async def broadcast(
        self,
        message: Union[SyncMessage, Dict[str, Any]],
        exclude: Optional[WebSocket] = None
    ) -> int:
        """
        Broadcast a message to all connected clients but `exclude`.

        Returns:
            Number of channels the message was written to
        """
        if isinstance(message, SyncMessage):
            json_message = message.to_json()
        else:
            json_message = json.dumps(message)

        delivered = 0
        disconnected = []

        for connection in list(self.active_connections):
            if connection is exclude:
                continue
            if not _is_open(connection):
                continue
            try:
                await connection.send_text(json_message)
                delivered += 1
            except Exception as e:
                logger.error(f"Error sending to WebSocket: {e}")
                disconnected.append(connection)

        # Clean up failed clients
        for connection in disconnected:
            self.unregister(connection)

        return delivered

    async def handle_message(self, websocket: WebSocket, data: str):
        """
        Process one frame received from `websocket`.

        Pings are answered on the same channel, anything else that parses as
        a JSON object is passed on verbatim to every other channel. Malformed
        frames are logged and dropped.
        """
        try:
            message = json.loads(data)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid WebSocket message discarded: {e}")
            return
        if not isinstance(message, dict):
            logger.warning("WebSocket message discarded: expected a JSON object")
            return

        if is_keepalive(message, KeepAliveType.PING):
            await self.send_personal_message(PONG_FRAME, websocket)
            return
        if is_keepalive(message, KeepAliveType.PONG):
            return

        await self.broadcast(message, exclude=websocket)

    async def close_all(self):
        """Close every channel; used on application shutdown."""
        for connection in list(self.active_connections):
            try:
                if _is_open(connection):
                    await connection.close()
            except Exception as e:
                logger.warning(f"Error closing WebSocket: {e}")
            finally:
                self.unregister(connection)


# Global relay instance
relay = SyncRelay()

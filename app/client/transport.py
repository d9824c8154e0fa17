# app/client/transport.py
"""
aiohttp websocket wrapped in the small channel surface ConnectionManager
talks to: send_text / receive_text / close / closed.
"""

import logging
from typing import Awaitable, Callable, Optional

import aiohttp

logger = logging.getLogger(__name__)


class AiohttpChannel:
    def __init__(self, ws: aiohttp.ClientWebSocketResponse, session: Optional[aiohttp.ClientSession] = None):
        self._ws = ws
        # Only set when the channel created the session and must close it
        self._session = session

    @property
    def closed(self) -> bool:
        return self._ws.closed

    async def send_text(self, data: str):
        await self._ws.send_str(data)

    async def receive_text(self) -> Optional[str]:
        """Next text frame, or None once the channel is closed."""
        while True:
            msg = await self._ws.receive()
            if msg.type == aiohttp.WSMsgType.TEXT:
                return msg.data
            if msg.type in (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSING,
                            aiohttp.WSMsgType.CLOSED, aiohttp.WSMsgType.ERROR):
                if msg.type == aiohttp.WSMsgType.ERROR:
                    logger.warning(f"WebSocket error frame: {self._ws.exception()}")
                return None
            logger.debug(f"Ignoring non-text frame of type {msg.type}")

    async def close(self):
        try:
            await self._ws.close()
        finally:
            if self._session is not None:
                await self._session.close()
                self._session = None


Connector = Callable[[str], Awaitable[AiohttpChannel]]


def aiohttp_connector(session: Optional[aiohttp.ClientSession] = None) -> Connector:
    """Build a connector opening channels with aiohttp's ws_connect."""

    async def connect(url: str) -> AiohttpChannel:
        owns_session = session is None
        client = session or aiohttp.ClientSession()
        try:
            ws = await client.ws_connect(url)
        except Exception:
            if owns_session:
                await client.close()
            raise
        return AiohttpChannel(ws, session=client if owns_session else None)

    return connect

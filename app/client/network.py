# app/client/network.py
"""
Network presence for the sync client.

Browsers hand the page online/offline events; a Python client has to make
its own. NetworkMonitor holds the current flag and notifies listeners on
transitions only. probe() polls the server's health endpoint with aiohttp and
drives the flag from the result.
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Union

import aiohttp

logger = logging.getLogger(__name__)

Listener = Callable[[bool], Union[None, Awaitable[None]]]


class NetworkMonitor:
    def __init__(self, online: bool = True):
        self._online = online
        self._listeners: List[Listener] = []

    @property
    def online(self) -> bool:
        return self._online

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def set_online(self, online: bool):
        if online == self._online:
            return
        self._online = online
        logger.info(f"Network is now {'online' if online else 'offline'}")
        for listener in list(self._listeners):
            try:
                result = listener(online)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Network listener failed: {e}")

    async def check(self, session: aiohttp.ClientSession, url: str, timeout: float = 3.0) -> bool:
        """One health probe. Any transport error counts as offline."""
        try:
            async with session.get(url, timeout=aiohttp.ClientTimeout(total=timeout)) as response:
                reachable = response.status < 500
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"Health probe to {url} failed: {e}")
            reachable = False
        await self.set_online(reachable)
        return reachable

    async def probe(self, url: str, interval: float = 5.0, session: Optional[aiohttp.ClientSession] = None):
        """Poll `url` forever; cancel the task to stop."""
        owns_session = session is None
        session = session or aiohttp.ClientSession()
        try:
            while True:
                await self.check(session, url)
                await asyncio.sleep(interval)
        finally:
            if owns_session:
                await session.close()

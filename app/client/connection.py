# app/client/connection.py
"""
Client side of the sync relay.

ConnectionManager keeps exactly one logical channel to the relay open while
the network is up:

    disconnected -> connecting -> connected -> disconnected -> ...

- A dropped channel schedules a single reconnect after a flat delay; a newer
  schedule always replaces the older one.
- The network coming back triggers an immediate connect; the network going
  away forces the state to disconnected at once, without waiting for the
  socket to notice.
- While connected a ping goes out every keepalive_interval seconds so that
  half-open connections surface as send failures.
- Events sent while not connected are parked in the OfflineQueue and flushed,
  in order, as soon as the next channel opens.

Incoming events are handed to every subscriber. last_message keeps the most
recent one for callers that only care about the latest state.
"""

import asyncio
import inspect
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from pydantic import ValidationError

from app.client.network import NetworkMonitor
from app.client.offline_queue import OfflineQueue
from app.client.transport import Connector, aiohttp_connector
from app.core.enums import ConnectionState
from app.core.exceptions import ChannelClosedError
from app.schemas.sync import PING_FRAME, SyncMessage, is_keepalive

logger = logging.getLogger(__name__)

Subscriber = Callable[[SyncMessage], Union[None, Awaitable[None]]]


class ConnectionManager:
    def __init__(
        self,
        url: str,
        queue: Optional[OfflineQueue] = None,
        network: Optional[NetworkMonitor] = None,
        connector: Optional[Connector] = None,
        reconnect_delay: float = 3.0,
        keepalive_interval: float = 25.0,
    ):
        self.url = url
        self.queue = queue if queue is not None else OfflineQueue()
        self.network = network if network is not None else NetworkMonitor()
        self.reconnect_delay = reconnect_delay
        self.keepalive_interval = keepalive_interval

        self.state = ConnectionState.DISCONNECTED
        self.last_message: Optional[SyncMessage] = None

        self._connector = connector or aiohttp_connector()
        self._channel = None
        self._reader_task: Optional[asyncio.Task] = None
        self._keepalive_task: Optional[asyncio.Task] = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._subscribers: List[Subscriber] = []
        self._remove_network_listener: Optional[Callable[[], None]] = None
        self._closed = False

    # ------------------------------------------------------------------ status

    @property
    def is_connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED

    @property
    def is_online(self) -> bool:
        return self.network.online

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    def status(self) -> Dict[str, Any]:
        """Connectivity indicator for the UI / CLI."""
        return {
            "state": self.state.value,
            "online": self.is_online,
            "pending": len(self.queue),
        }

    # ------------------------------------------------------------- lifecycle

    async def start(self):
        """Listen for network transitions and connect if the network is up."""
        self._closed = False
        if self._remove_network_listener is None:
            self._remove_network_listener = self.network.add_listener(self._on_network_change)
        if self.network.online:
            await self.connect()

    async def connect(self):
        """
        Open a channel unless one is already opening or open.

        A failed attempt leaves the manager disconnected with a reconnect
        scheduled.
        """
        if self._closed or not self.network.online:
            return
        if self.state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
            return

        self._cancel_reconnect()
        self.state = ConnectionState.CONNECTING
        logger.info(f"Connecting to {self.url}")

        try:
            channel = await self._connector(self.url)
        except Exception as e:
            logger.warning(f"Connection to {self.url} failed: {e}")
            if self.state == ConnectionState.CONNECTING:
                self.state = ConnectionState.DISCONNECTED
                self._schedule_reconnect()
            return

        # Went offline or was closed while the handshake was in flight
        if self.state != ConnectionState.CONNECTING or self._closed:
            await self._close_channel(channel)
            return

        self._channel = channel
        self.state = ConnectionState.CONNECTED
        logger.info(f"Connected to {self.url}")

        self._start_keepalive(channel)
        self._reader_task = asyncio.create_task(self._read_loop(channel))
        await self._flush_queue()

    async def close(self):
        """Cancel every timer and close the channel. Safe to call repeatedly."""
        self._closed = True
        if self._remove_network_listener is not None:
            self._remove_network_listener()
            self._remove_network_listener = None

        self._cancel_reconnect()
        await self._drop_channel()

    # ------------------------------------------------------------ messaging

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback for every incoming sync event.

        Returns:
            A function that removes the callback
        """
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def send(self, event: SyncMessage) -> bool:
        """
        Transmit now if connected with nothing queued, otherwise queue.

        Returns:
            True if the event went out immediately
        """
        if self.is_connected and not self.queue and not self.queue.is_flushing:
            channel = self._channel
            try:
                await self._transmit(event)
                return True
            except Exception as e:
                logger.warning(f"Send failed, queueing {event.type.value} event: {e}")
                self.queue.enqueue(event)
                await self._handle_channel_lost(channel)
                return False

        # Behind a backlog (or a flush in progress) to keep send order
        self.queue.enqueue(event)
        if self.is_connected and not self.queue.is_flushing:
            await self._flush_queue()
        return False

    async def _transmit(self, event: SyncMessage):
        channel = self._channel
        if not self.is_connected or channel is None:
            raise ChannelClosedError("No open channel to the relay")
        await channel.send_text(event.to_json())

    async def _flush_queue(self):
        channel = self._channel
        try:
            await self.queue.flush(self._transmit)
        except Exception as e:
            logger.warning(f"Flush interrupted, {len(self.queue)} event(s) kept for later: {e}")
            await self._handle_channel_lost(channel)

    async def _dispatch(self, raw: str):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse WebSocket message: {e}")
            return

        if isinstance(data, dict) and is_keepalive(data):
            return

        try:
            message = SyncMessage.model_validate(data)
        except ValidationError as e:
            logger.error(f"Discarding malformed sync event: {e}")
            return

        self.last_message = message
        for callback in list(self._subscribers):
            try:
                result = callback(message)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Sync subscriber failed on {message.type.value}: {e}")

    # ------------------------------------------------------ channel handling

    async def _read_loop(self, channel):
        try:
            while True:
                raw = await channel.receive_text()
                if raw is None:
                    logger.info("Relay closed the channel")
                    break
                await self._dispatch(raw)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Channel read failed: {e}")
        await self._handle_channel_lost(channel)

    async def _keepalive_loop(self, channel):
        frame = json.dumps(PING_FRAME)
        while True:
            await asyncio.sleep(self.keepalive_interval)
            try:
                await channel.send_text(frame)
            except Exception as e:
                logger.warning(f"Keep-alive failed: {e}")
                await self._handle_channel_lost(channel)
                return

    def _start_keepalive(self, channel):
        self._cancel_task(self._keepalive_task)
        self._keepalive_task = asyncio.create_task(self._keepalive_loop(channel))

    async def _handle_channel_lost(self, channel):
        """Closed or errored channel: go disconnected and retry after the delay."""
        if channel is None or channel is not self._channel:
            return
        await self._drop_channel()
        logger.info(f"Disconnected; reconnecting in {self.reconnect_delay}s")
        self._schedule_reconnect()

    async def _drop_channel(self):
        channel = self._channel
        self._channel = None
        self.state = ConnectionState.DISCONNECTED

        self._cancel_task(self._keepalive_task)
        self._keepalive_task = None
        self._cancel_task(self._reader_task)
        self._reader_task = None

        if channel is not None:
            await self._close_channel(channel)

    async def _close_channel(self, channel):
        try:
            await channel.close()
        except Exception as e:
            logger.debug(f"Error closing channel: {e}")

    # ------------------------------------------------------------ reconnect

    def _schedule_reconnect(self):
        if self._closed:
            return
        self._cancel_reconnect()
        self._reconnect_task = asyncio.create_task(self._reconnect_after_delay())

    async def _reconnect_after_delay(self):
        await asyncio.sleep(self.reconnect_delay)
        self._reconnect_task = None
        await self.connect()

    def _cancel_reconnect(self):
        self._cancel_task(self._reconnect_task)
        self._reconnect_task = None

    @staticmethod
    def _cancel_task(task: Optional[asyncio.Task]):
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _on_network_change(self, online: bool):
        if online:
            self._cancel_reconnect()
            await self.connect()
        else:
            self._cancel_reconnect()
            if self.state != ConnectionState.DISCONNECTED:
                logger.info("Network offline; dropping channel")
            await self._drop_channel()

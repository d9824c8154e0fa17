# app/client/offline_queue.py
"""
Outgoing sync events produced while the client had no channel.

Events are kept in the order they were produced and replayed in that order
once the connection manager reports a live channel. The queue only holds
outgoing notifications; it is not a copy of the stock list.
"""

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, List, Optional

from app.schemas.sync import SyncMessage

logger = logging.getLogger(__name__)

SendFn = Callable[[SyncMessage], Awaitable[None]]


class OfflineQueue:
    def __init__(self, max_size: Optional[int] = None):
        # max_size=None keeps every event; a bound drops the oldest waiting event
        self.max_size = max_size
        self._items: deque = deque()
        self._flush_lock = asyncio.Lock()
        # Head event currently being handed to send(); never dropped
        self._in_flight: Optional[SyncMessage] = None

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    @property
    def is_flushing(self) -> bool:
        return self._flush_lock.locked()

    def pending(self) -> List[SyncMessage]:
        """Snapshot of queued events, oldest first."""
        return list(self._items)

    def _head_in_flight(self) -> bool:
        return self._in_flight is not None and bool(self._items) and self._items[0] is self._in_flight

    def enqueue(self, event: SyncMessage):
        if self.max_size is not None:
            # The bound applies to events still waiting; an in-flight head is exempt
            first_waiting = 1 if self._head_in_flight() else 0
            if len(self._items) - first_waiting >= self.max_size and len(self._items) > first_waiting:
                dropped = self._items[first_waiting]
                del self._items[first_waiting]
                logger.warning(
                    f"Offline queue full ({self.max_size}); dropping oldest unsent {dropped.type.value} event"
                )
        self._items.append(event)
        logger.debug(f"Queued {event.type.value} event while offline ({len(self._items)} pending)")

    def clear(self):
        self._items.clear()

    async def flush(self, send: SendFn) -> int:
        """
        Send every queued event in order.

        An event leaves the queue only after `send` returned for it. If
        `send` raises, that event and everything behind it stay queued and
        the error propagates, so a later flush resumes where this one
        stopped. Events enqueued during the flush are sent by it too.

        Returns:
            Number of events sent
        """
        async with self._flush_lock:
            sent = 0
            while self._items:
                event = self._items[0]
                self._in_flight = event
                try:
                    await send(event)
                finally:
                    self._in_flight = None
                # Remove by identity: clear() may have emptied the queue meanwhile
                if self._items and self._items[0] is event:
                    self._items.popleft()
                sent += 1
            if sent:
                logger.info(f"Flushed {sent} queued event(s)")
            return sent

# app/client/cache.py
"""
Local copy of the stock list kept current from relay events.

record-created / record-updated / arrival-applied carry canonical records
and are applied in place. record-deleted removes by id. full-resync replaces
the whole list with its payload. import-applied carries only a summary, so
the cache re-fetches the list from the API.
"""

import logging
from typing import Awaitable, Callable, Dict, List, Optional

import aiohttp

from app.core.enums import SyncEventType
from app.schemas.stock import StockItemRead
from app.schemas.sync import SyncMessage

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[List[dict]]]


def aiohttp_fetcher(url: str, session: Optional[aiohttp.ClientSession] = None) -> Fetcher:
    """GET the full stock list from `url` (the /api/stock endpoint)."""

    async def fetch() -> List[dict]:
        if session is not None:
            async with session.get(url) as response:
                response.raise_for_status()
                return await response.json()
        async with aiohttp.ClientSession() as own_session:
            async with own_session.get(url) as response:
                response.raise_for_status()
                return await response.json()

    return fetch


class StockCache:
    def __init__(self, fetcher: Optional[Fetcher] = None):
        self._fetcher = fetcher
        self.items: Dict[str, StockItemRead] = {}

    def __len__(self) -> int:
        return len(self.items)

    def get(self, item_id: str) -> Optional[StockItemRead]:
        return self.items.get(item_id)

    def all(self) -> List[StockItemRead]:
        return sorted(self.items.values(), key=lambda item: item.name.lower())

    def replace(self, records: List[dict]):
        parsed = [StockItemRead.model_validate(record) for record in records]
        self.items = {item.id: item for item in parsed}

    def upsert(self, record: dict) -> StockItemRead:
        item = StockItemRead.model_validate(record)
        self.items[item.id] = item
        return item

    async def refresh(self):
        if self._fetcher is None:
            logger.warning("No fetcher configured; cannot refresh stock cache")
            return
        try:
            self.replace(await self._fetcher())
        except aiohttp.ClientError as e:
            logger.error(f"Refreshing stock cache failed: {e}")
            return
        logger.info(f"Stock cache refreshed ({len(self.items)} items)")

    async def apply(self, message: SyncMessage):
        """Subscriber entry point for ConnectionManager.subscribe."""
        kind = message.type
        payload = message.payload

        if kind in (SyncEventType.RECORD_CREATED, SyncEventType.RECORD_UPDATED):
            self.upsert(payload)
        elif kind == SyncEventType.RECORD_DELETED:
            self.items.pop(str(payload.get("id")), None)
        elif kind == SyncEventType.ARRIVAL_APPLIED:
            for record in payload or []:
                self.upsert(record)
        elif kind == SyncEventType.FULL_RESYNC:
            self.replace(payload or [])
        elif kind == SyncEventType.IMPORT_APPLIED:
            await self.refresh()

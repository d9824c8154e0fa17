"""
Purpose: The record store for the shared stock list.

Role: The sole writer of authoritative stock state. Routes call it first and
only broadcast the returned canonical records once it has committed, so a
peer that re-fetches after a notification always sees the write.

Besides plain CRUD this service owns the two batch transitions:
- apply_arrivals: receive physical stock against pending quantities
- import_items: bulk upsert keyed on a case-insensitive reference match
"""

import logging
from typing import Any, Dict, Iterable, List

from pydantic import ValidationError
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import OfflineUpdateType
from app.core.exceptions import StockItemNotFoundError, StockValidationError
from app.core.utils import model_to_schema, models_to_schemas, utc_now, iso_timestamp
from app.models.stock_item import StockItem, new_item_id
from app.schemas.stock import (
    ArrivalLine,
    BackupData,
    ImportResult,
    ImportRow,
    OfflineUpdate,
    StockItemCreate,
    StockItemRead,
    StockItemUpdate,
)

logger = logging.getLogger(__name__)


# Columns that may be cleared; a null for any other field means "leave as is"
NULLABLE_FIELDS = ("location", "supplier")


def _reference_key(reference: str) -> str:
    return (reference or "").lower()


def _apply_changes(item: StockItem, changes: Dict[str, Any]):
    for key, value in changes.items():
        if value is None and key not in NULLABLE_FIELDS:
            continue
        setattr(item, key, value)


class StockService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_model(self, item_id: str) -> StockItem:
        item = await self.db.get(StockItem, item_id)
        if item is None:
            raise StockItemNotFoundError(item_id)
        return item

    async def _all_models(self) -> List[StockItem]:
        result = await self.db.execute(
            select(StockItem).order_by(func.lower(StockItem.name), StockItem.id)
        )
        return list(result.scalars().all())

    async def list_items(self) -> List[StockItemRead]:
        """All records sorted by name."""
        return await models_to_schemas(await self._all_models(), StockItemRead)

    async def get_item(self, item_id: str) -> StockItemRead:
        """
        Retrieves a stock item by ID.

        Raises:
            StockItemNotFoundError: If no item has that ID
        """
        return await model_to_schema(await self._get_model(item_id), StockItemRead)

    async def create_item(self, data: StockItemCreate) -> StockItemRead:
        item = StockItem(
            id=new_item_id(),
            last_updated=utc_now(),
            **data.model_dump()
        )
        self.db.add(item)
        await self.db.commit()
        logger.info(f"Created stock item {item.id} ({item.reference})")
        return await model_to_schema(item, StockItemRead)

    async def update_item(self, item_id: str, data: StockItemUpdate) -> StockItemRead:
        """
        Applies only the fields that were explicitly sent (last write wins).

        Raises:
            StockItemNotFoundError: If no item has that ID
        """
        item = await self._get_model(item_id)
        changes = data.model_dump(exclude_unset=True)
        _apply_changes(item, changes)
        item.last_updated = utc_now()
        await self.db.commit()
        logger.info(f"Updated stock item {item_id}: {sorted(changes)}")
        return await model_to_schema(item, StockItemRead)

    async def delete_item(self, item_id: str) -> None:
        item = await self._get_model(item_id)
        await self.db.delete(item)
        await self.db.commit()
        logger.info(f"Deleted stock item {item_id}")

    async def apply_arrivals(self, arrivals: Iterable[ArrivalLine]) -> List[StockItemRead]:
        """
        Receives a batch of deliveries.

        For every line whose item exists, the received quantity moves onto the
        shelf and is taken off the pending arrival (never below zero). Lines
        for unknown items are skipped, so the result can be shorter than the
        input.

        Args:
            arrivals: (item_id, quantity) lines

        Returns:
            The records actually updated, in input order

        Raises:
            StockValidationError: If a quantity is negative
        """
        arrivals = list(arrivals)
        for line in arrivals:
            if line.quantity < 0:
                raise StockValidationError(
                    f"Received quantity for {line.item_id} cannot be negative"
                )

        updated: List[StockItem] = []
        now = utc_now()
        for line in arrivals:
            item = await self.db.get(StockItem, line.item_id)
            if item is None:
                logger.info(f"Arrival for unknown item {line.item_id} skipped")
                continue
            item.current_stock = item.current_stock + line.quantity
            item.pending_arrival = max(0, (item.pending_arrival or 0) - line.quantity)
            item.last_updated = now
            if item not in updated:
                updated.append(item)

        await self.db.commit()
        logger.info(f"Applied {len(arrivals)} arrival line(s), {len(updated)} item(s) updated")
        return await models_to_schemas(updated, StockItemRead)

    async def import_items(self, rows: Iterable[ImportRow]) -> ImportResult:
        """
        Bulk upsert matching on reference, case-insensitively.

        Matched rows overwrite the item's fields and keep its ID; unmatched
        rows create a new item. Rows created earlier in the same batch are
        matched by later rows with the same reference.

        Returns:
            Number of rows processed (creates and updates together)
        """
        index: Dict[str, StockItem] = {}
        for item in await self._all_models():
            index.setdefault(_reference_key(item.reference), item)

        imported = 0
        now = utc_now()
        for row in rows:
            key = _reference_key(row.reference)
            existing = index.get(key)
            if existing is not None:
                existing.name = row.name
                existing.current_stock = row.current_stock
                existing.pending_arrival = row.pending_arrival
                existing.threshold = row.threshold
                existing.unit = row.unit
                existing.location = row.location
                if row.supplier is not None:
                    existing.supplier = row.supplier
                existing.last_updated = now
            else:
                item = StockItem(id=new_item_id(), last_updated=now, **row.model_dump())
                self.db.add(item)
                index[key] = item
            imported += 1

        await self.db.commit()
        logger.info(f"Imported {imported} row(s)")
        return ImportResult(imported=imported)

    async def apply_offline_updates(self, updates: Iterable[OfflineUpdate]) -> int:
        """
        Replays edits a client made while it had no connection.

        Updates for items that no longer exist are skipped.

        Returns:
            Number of records written

        Raises:
            StockValidationError: If an entry's item does not validate
        """
        written = 0
        for update in updates:
            try:
                if update.type == OfflineUpdateType.CREATE:
                    data = StockItemCreate.model_validate(update.item)
                    self.db.add(StockItem(id=new_item_id(), last_updated=utc_now(), **data.model_dump()))
                    written += 1
                    continue

                item_id = update.item.get("id")
                item = await self.db.get(StockItem, str(item_id)) if item_id is not None else None
                if item is None:
                    logger.info(f"Offline update for unknown item {item_id} skipped")
                    continue
                changes = StockItemUpdate.model_validate(update.item).model_dump(exclude_unset=True)
                _apply_changes(item, changes)
                item.last_updated = utc_now()
                written += 1
            except ValidationError as e:
                await self.db.rollback()
                raise StockValidationError(f"Invalid offline update: {e}") from e

        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise StockValidationError(f"Offline updates rejected by the store: {e.orig}") from e
        logger.info(f"Replayed {written} offline update(s)")
        return written

    async def backup(self) -> BackupData:
        return BackupData(stock=await self.list_items(), timestamp=iso_timestamp())

    async def seed(self, items: Iterable[StockItemCreate]) -> int:
        """Insert sample items when the table is empty. Returns rows added."""
        existing = await self.db.scalar(select(func.count()).select_from(StockItem))
        if existing:
            return 0
        count = 0
        for data in items:
            self.db.add(StockItem(id=new_item_id(), last_updated=utc_now(), **data.model_dump()))
            count += 1
        await self.db.commit()
        logger.info(f"Seeded {count} sample stock item(s)")
        return count

# app/routes/stock.py
"""
Mutation endpoints for the shared stock list.

Each handler validates the request, writes through StockService (which
commits), and only then hands the canonical result to the relay. A request
that fails validation or hits a missing item is never broadcast.
"""

import logging
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import SyncEventType
from app.core.exceptions import StockItemNotFoundError, StockValidationError
from app.dependencies import get_db, get_relay
from app.schemas.stock import (
    ArrivalBatch,
    ImportBatch,
    ImportResult,
    OfflineSyncRequest,
    OfflineSyncResult,
    OrderList,
    StockItemCreate,
    StockItemRead,
    StockItemUpdate,
    StockSummary,
)
from app.schemas.sync import (
    arrival_event,
    full_resync_event,
    import_event,
    record_deleted_event,
    record_event,
)
from app.services.csv_handler import order_list_to_csv, stock_to_csv
from app.services.stock_levels import build_order_list, summarize
from app.services.stock_service import StockService
from app.services.websockets.relay import SyncRelay

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["stock"])


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


@router.get("/stock", response_model=List[StockItemRead])
async def list_stock(db: AsyncSession = Depends(get_db)):
    return await StockService(db).list_items()


@router.get("/stock/summary", response_model=StockSummary)
async def stock_summary(db: AsyncSession = Depends(get_db)):
    """Item counts per status band"""
    return summarize(await StockService(db).list_items())


@router.get("/stock/export.csv")
async def export_stock_csv(db: AsyncSession = Depends(get_db)):
    items = await StockService(db).list_items()
    return _csv_response(stock_to_csv(items), f"stock_{_today()}.csv")


@router.get("/stock/{item_id}", response_model=StockItemRead)
async def get_stock_item(item_id: str, db: AsyncSession = Depends(get_db)):
    try:
        return await StockService(db).get_item(item_id)
    except StockItemNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/stock", response_model=StockItemRead, status_code=status.HTTP_201_CREATED)
async def create_stock_item(
    payload: StockItemCreate,
    db: AsyncSession = Depends(get_db),
    relay: SyncRelay = Depends(get_relay)
):
    item = await StockService(db).create_item(payload)
    await relay.broadcast(record_event(SyncEventType.RECORD_CREATED, item))
    return item


@router.put("/stock/{item_id}", response_model=StockItemRead)
async def update_stock_item(
    item_id: str,
    payload: StockItemUpdate,
    db: AsyncSession = Depends(get_db),
    relay: SyncRelay = Depends(get_relay)
):
    try:
        item = await StockService(db).update_item(item_id, payload)
    except StockItemNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    await relay.broadcast(record_event(SyncEventType.RECORD_UPDATED, item))
    return item


@router.delete("/stock/{item_id}")
async def delete_stock_item(
    item_id: str,
    db: AsyncSession = Depends(get_db),
    relay: SyncRelay = Depends(get_relay)
):
    try:
        await StockService(db).delete_item(item_id)
    except StockItemNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    await relay.broadcast(record_deleted_event(item_id))
    return {"success": True}


@router.post("/stock/arrivals", response_model=List[StockItemRead])
async def apply_arrivals(
    payload: ArrivalBatch,
    db: AsyncSession = Depends(get_db),
    relay: SyncRelay = Depends(get_relay)
):
    """Receive a delivery; one arrival-applied event covers the whole batch"""
    if not payload.arrivals:
        raise HTTPException(status_code=400, detail="At least one arrival line is required")

    try:
        updated = await StockService(db).apply_arrivals(payload.arrivals)
    except StockValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    await relay.broadcast(arrival_event(updated))
    return updated


@router.post("/stock/import", response_model=ImportResult)
async def import_stock(
    payload: ImportBatch,
    db: AsyncSession = Depends(get_db),
    relay: SyncRelay = Depends(get_relay)
):
    if not payload.items:
        raise HTTPException(status_code=400, detail="At least one item is required")

    result = await StockService(db).import_items(payload.items)
    await relay.broadcast(import_event(result))
    return result


@router.post("/sync", response_model=OfflineSyncResult)
async def sync_offline_updates(
    payload: OfflineSyncRequest,
    db: AsyncSession = Depends(get_db),
    relay: SyncRelay = Depends(get_relay)
):
    """
    Replay edits a client collected while offline, then push the full
    record set to everybody.
    """
    service = StockService(db)
    try:
        written = await service.apply_offline_updates(payload.updates)
    except StockValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    await relay.broadcast(full_resync_event(await service.list_items()))
    return OfflineSyncResult(updated=written)


@router.get("/backup")
async def download_backup(db: AsyncSession = Depends(get_db)):
    backup = await StockService(db).backup()
    return JSONResponse(
        content=backup.to_wire(),
        headers={"Content-Disposition": f"attachment; filename=backup_stock_{_today()}.json"}
    )


@router.get("/orders", response_model=OrderList)
async def order_list(db: AsyncSession = Depends(get_db)):
    """What to reorder, grouped by supplier"""
    return build_order_list(await StockService(db).list_items())


@router.get("/orders/export.csv")
async def export_order_list_csv(db: AsyncSession = Depends(get_db)):
    orders = build_order_list(await StockService(db).list_items())
    return _csv_response(order_list_to_csv(orders), f"order_list_{_today()}.csv")

"""
Derived stock figures: status band, quantity to reorder, and the order list.

Nothing here is stored. Every function accepts either a StockItem model or a
StockItemRead schema (anything exposing current_stock, pending_arrival and
threshold).
"""

from collections import Counter
from typing import Dict, Iterable, List

from app.core.enums import NO_SUPPLIER, StockStatus
from app.schemas.stock import OrderLine, OrderList, StockSummary, SupplierGroup

# Fractions of threshold: at or below LOW_RATIO is low, above ADEQUATE_RATIO is high
LOW_RATIO = 0.75
ADEQUATE_RATIO = 1.5


def available_quantity(item) -> int:
    return (item.current_stock or 0) + (item.pending_arrival or 0)


def stock_status(item) -> StockStatus:
    available = available_quantity(item)
    threshold = item.threshold or 0

    if available <= 0:
        return StockStatus.CRITICAL
    if available <= threshold * LOW_RATIO:
        return StockStatus.LOW
    if available <= threshold * ADEQUATE_RATIO:
        return StockStatus.ADEQUATE
    return StockStatus.HIGH


def missing_quantity(item) -> int:
    return max(0, (item.threshold or 0) - available_quantity(item))


def build_order_list(items: Iterable) -> OrderList:
    """
    Items with something to reorder, grouped by supplier.

    Lines are sorted by missing quantity (largest first) inside each group.
    Named suppliers are sorted alphabetically; items without one are
    collected in a trailing group.
    """
    lines = [
        OrderLine(
            id=item.id,
            reference=item.reference,
            name=item.name,
            current_stock=item.current_stock,
            pending_arrival=item.pending_arrival,
            threshold=item.threshold,
            unit=item.unit,
            missing=missing_quantity(item),
            supplier=item.supplier,
        )
        for item in items
        if missing_quantity(item) > 0
    ]
    lines.sort(key=lambda line: line.missing, reverse=True)

    grouped: Dict[str, List[OrderLine]] = {}
    for line in lines:
        grouped.setdefault(line.supplier or NO_SUPPLIER, []).append(line)

    names = sorted((name for name in grouped if name != NO_SUPPLIER), key=str.lower)
    if NO_SUPPLIER in grouped:
        names.append(NO_SUPPLIER)

    groups = [
        SupplierGroup(
            supplier=name,
            items=grouped[name],
            total_missing=sum(line.missing for line in grouped[name]),
        )
        for name in names
    ]
    return OrderList(
        groups=groups,
        total_items=len(lines),
        total_missing=sum(line.missing for line in lines),
    )


def summarize(items: Iterable) -> StockSummary:
    items = list(items)
    counts = Counter(stock_status(item) for item in items)
    return StockSummary(
        total=len(items),
        by_status={status: counts.get(status, 0) for status in StockStatus},
    )

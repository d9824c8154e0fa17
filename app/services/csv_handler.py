# app/services/csv_handler.py
"""
CSV exports of the stock list and the order list.

Files are semicolon-separated with a UTF-8 BOM so spreadsheet tools open
them with the right encoding. Import parsing happens client-side; the import
endpoint receives already-parsed rows.
"""

from typing import Iterable

import pandas as pd

from app.schemas.stock import OrderList

CSV_SEPARATOR = ";"

STOCK_COLUMNS = ["Reference", "Name", "Stock", "Pending arrival", "Threshold", "Unit", "Location", "Supplier"]
ORDER_COLUMNS = ["Reference", "Name", "Stock", "Threshold", "Pending arrival", "Missing", "Supplier"]


def _to_csv(df: pd.DataFrame) -> str:
    return "\ufeff" + df.to_csv(sep=CSV_SEPARATOR, index=False)


def stock_to_csv(items: Iterable) -> str:
    """
    Render stock items as CSV.

    Args:
        items: StockItemRead (or model) instances

    Returns:
        str: CSV document, one row per item
    """
    rows = [
        [
            item.reference,
            item.name,
            item.current_stock,
            item.pending_arrival,
            item.threshold or 0,
            item.unit,
            item.location or "",
            item.supplier or "",
        ]
        for item in items
    ]
    return _to_csv(pd.DataFrame(rows, columns=STOCK_COLUMNS))


def order_list_to_csv(order_list: OrderList) -> str:
    """Render the order list as CSV, supplier groups in display order."""
    rows = [
        [
            line.reference,
            line.name,
            line.current_stock,
            line.threshold,
            line.pending_arrival,
            line.missing,
            group.supplier,
        ]
        for group in order_list.groups
        for line in group.items
    ]
    return _to_csv(pd.DataFrame(rows, columns=ORDER_COLUMNS))

from .stock import (
    StockItemCreate,
    StockItemUpdate,
    StockItemRead,
    ArrivalLine,
    ArrivalBatch,
    ImportRow,
    ImportBatch,
    ImportResult,
)
from .sync import SyncMessage

"""
Core module exports.
"""
from .enums import (
    StockStatus,
    SyncEventType,
    KeepAliveType,
    ConnectionState,
    OfflineUpdateType
)

from .exceptions import (
    BaseServiceError,
    StockServiceError,
    StockItemNotFoundError,
    StockValidationError,
    SyncError,
    ChannelClosedError
)

from .utils import (
    model_to_schema,
    models_to_schemas,
    utc_now,
    iso_timestamp
)

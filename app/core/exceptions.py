class BaseServiceError(Exception):
    """Base exception for all service-related errors."""
    pass

class StockServiceError(BaseServiceError):
    """Base exception for stock service errors."""
    pass

class StockItemNotFoundError(StockServiceError):
    """Raised when a stock item is not found."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Stock item with ID {item_id} not found")

class StockValidationError(StockServiceError):
    """Raised when stock data fails a domain rule (e.g. negative quantity)."""
    pass

class SyncError(BaseServiceError):
    """Base exception for real-time sync errors."""
    pass

class ChannelClosedError(SyncError):
    """Raised when a send is attempted on a channel that is no longer open."""
    pass

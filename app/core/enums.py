"""
Shared enums and constants used across the application.
"""

from enum import Enum


class StockStatus(str, Enum):
    """Stock level derived from available quantity versus threshold"""
    CRITICAL = "critical"
    LOW = "low"
    ADEQUATE = "adequate"
    HIGH = "high"


class SyncEventType(str, Enum):
    """Mutation notifications carried over the sync relay"""
    RECORD_UPDATED = "record-updated"
    RECORD_CREATED = "record-created"
    RECORD_DELETED = "record-deleted"
    FULL_RESYNC = "full-resync"
    ARRIVAL_APPLIED = "arrival-applied"
    IMPORT_APPLIED = "import-applied"


class KeepAliveType(str, Enum):
    """Keep-alive frames; never surfaced as sync events"""
    PING = "ping"
    PONG = "pong"


class ConnectionState(str, Enum):
    """Client-side state of the single logical channel to the relay"""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class OfflineUpdateType(str, Enum):
    """Entry kinds accepted by the offline sync endpoint"""
    UPDATE = "update"
    CREATE = "create"


DEFAULT_UNIT = "units"
NO_SUPPLIER = "No supplier"

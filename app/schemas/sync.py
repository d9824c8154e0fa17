"""
Wire format of the messages exchanged over the sync relay.

    {"type": "<kind>", "payload": <kind-dependent JSON>, "timestamp": "<ISO-8601>"}

Keep-alive frames are the bare {"type": "ping"} / {"type": "pong"} objects.
"""

import json
from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel, Field

from app.core.enums import KeepAliveType, SyncEventType
from app.core.utils import iso_timestamp
from app.schemas.base import BaseSchema


PING_FRAME = {"type": KeepAliveType.PING.value}
PONG_FRAME = {"type": KeepAliveType.PONG.value}


def is_keepalive(message: Dict[str, Any], kind: Optional[KeepAliveType] = None) -> bool:
    value = message.get("type") if isinstance(message, dict) else None
    if kind is not None:
        return value == kind.value
    return value in (KeepAliveType.PING.value, KeepAliveType.PONG.value)


class SyncMessage(BaseModel):
    """A single mutation notification"""
    type: SyncEventType
    payload: Any = None
    timestamp: str = Field(default_factory=iso_timestamp)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    def to_json(self) -> str:
        return json.dumps(self.to_wire())

    @classmethod
    def from_json(cls, raw: str) -> "SyncMessage":
        return cls.model_validate_json(raw)


def _wire(value: Any) -> Any:
    if isinstance(value, BaseSchema):
        return value.to_wire()
    return value


def record_event(kind: SyncEventType, record: Any) -> SyncMessage:
    """record-created / record-updated carry the full canonical record."""
    return SyncMessage(type=kind, payload=_wire(record))


def record_deleted_event(item_id: str) -> SyncMessage:
    return SyncMessage(type=SyncEventType.RECORD_DELETED, payload={"id": item_id})


def arrival_event(records: Iterable[Any]) -> SyncMessage:
    """One event for the whole receiving operation."""
    return SyncMessage(
        type=SyncEventType.ARRIVAL_APPLIED,
        payload=[_wire(r) for r in records]
    )


def import_event(summary: Any) -> SyncMessage:
    """Peers re-fetch on import instead of receiving the full diff."""
    return SyncMessage(type=SyncEventType.IMPORT_APPLIED, payload=_wire(summary))


def full_resync_event(records: Iterable[Any]) -> SyncMessage:
    return SyncMessage(
        type=SyncEventType.FULL_RESYNC,
        payload=[_wire(r) for r in records]
    )

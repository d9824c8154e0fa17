"""
Schemas for stock-related API endpoints.
"""

from datetime import datetime
from typing import Optional, List, Dict, Any

from pydantic import Field, field_validator

from app.core.enums import DEFAULT_UNIT, OfflineUpdateType, StockStatus
from app.schemas.base import BaseSchema


class StockItemBase(BaseSchema):
    """Fields shared by create, import and read"""
    reference: str = Field(min_length=1)
    name: str = Field(min_length=1)
    current_stock: int = Field(ge=0)
    pending_arrival: int = Field(default=0, ge=0)
    threshold: int = Field(default=0, ge=0)
    unit: str = DEFAULT_UNIT
    location: Optional[str] = None
    supplier: Optional[str] = None

    @field_validator('pending_arrival', 'threshold', mode='before')
    @classmethod
    def empty_quantity_is_zero(cls, v):
        if v is None or v == '':
            return 0
        return v

    @field_validator('unit', mode='before')
    @classmethod
    def default_unit(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_UNIT
        return v


class StockItemCreate(StockItemBase):
    pass


class StockItemUpdate(BaseSchema):
    """Partial update - only fields explicitly sent are applied"""
    reference: Optional[str] = Field(default=None, min_length=1)
    name: Optional[str] = Field(default=None, min_length=1)
    current_stock: Optional[int] = Field(default=None, ge=0)
    pending_arrival: Optional[int] = Field(default=None, ge=0)
    threshold: Optional[int] = Field(default=None, ge=0)
    unit: Optional[str] = None
    location: Optional[str] = None
    supplier: Optional[str] = None


class StockItemRead(StockItemBase):
    id: str
    last_updated: datetime


class ArrivalLine(BaseSchema):
    item_id: str
    quantity: int = Field(ge=1)
    notes: Optional[str] = None

    @field_validator('item_id', mode='before')
    @classmethod
    def coerce_item_id(cls, v):
        # Older clients send numeric ids
        if isinstance(v, int):
            return str(v)
        return v


class ArrivalBatch(BaseSchema):
    arrivals: List[ArrivalLine]
    date: Optional[str] = None


class ImportRow(StockItemBase):
    pass


class ImportBatch(BaseSchema):
    items: List[ImportRow]


class ImportResult(BaseSchema):
    imported: int


class OfflineUpdate(BaseSchema):
    type: OfflineUpdateType
    item: Dict[str, Any]


class OfflineSyncRequest(BaseSchema):
    updates: List[OfflineUpdate]


class OfflineSyncResult(BaseSchema):
    success: bool = True
    updated: int


class BackupData(BaseSchema):
    stock: List[StockItemRead]
    timestamp: str


class OrderLine(BaseSchema):
    id: str
    reference: str
    name: str
    current_stock: int
    pending_arrival: int
    threshold: int
    unit: str
    missing: int
    supplier: Optional[str] = None


class SupplierGroup(BaseSchema):
    supplier: str
    items: List[OrderLine]
    total_missing: int


class OrderList(BaseSchema):
    groups: List[SupplierGroup]
    total_items: int
    total_missing: int


class StockSummary(BaseSchema):
    total: int
    by_status: Dict[StockStatus, int]

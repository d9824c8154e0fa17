"""
Model for the shared stock list.

One row per tracked supply. Identifiers are uuid4 strings generated by the
application so that a deleted id is never handed out again.
"""

import uuid

from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint

from app.core.enums import DEFAULT_UNIT
from app.core.utils import utc_now
from app.database import Base


def new_item_id() -> str:
    return str(uuid.uuid4())


class StockItem(Base):
    __tablename__ = "stock_items"
    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="ck_stock_items_current_stock"),
        CheckConstraint("pending_arrival >= 0", name="ck_stock_items_pending_arrival"),
        CheckConstraint("threshold >= 0", name="ck_stock_items_threshold"),
    )

    id = Column(String(36), primary_key=True, default=new_item_id)

    # Core item information
    reference = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    unit = Column(String, nullable=False, default=DEFAULT_UNIT)
    location = Column(String, nullable=True)
    supplier = Column(String, nullable=True)

    # Quantities
    current_stock = Column(Integer, nullable=False, default=0)
    pending_arrival = Column(Integer, nullable=False, default=0)
    threshold = Column(Integer, nullable=False, default=0)

    last_updated = Column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False
    )

    @property
    def available(self) -> int:
        return (self.current_stock or 0) + (self.pending_arrival or 0)

    def __repr__(self):
        return (f"<StockItem(id={self.id}, reference='{self.reference}', "
                f"stock={self.current_stock}, pending={self.pending_arrival})>")

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON


class OrderEventType(str, Enum):
    ORDER_PLACED = "order_placed"
    GATEWAY_INITIATED = "gateway_initiated"
    PAYMENT_VERIFIED = "payment_verified"
    PAYMENT_FAILED = "payment_failed"
    STATUS_CHANGED = "status_changed"
    COD_SETTLED = "cod_settled"


class OrderEvent(SQLModel, table=True):
    """Timeline row for one order. Rows are only ever inserted."""

    __tablename__ = "order_event"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    order_id: str = Field(foreign_key="order.id", index=True)

    # plain string column so new event types need no migration
    event_type: str = Field(index=True)
    label: str
    meta: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_by: str = Field(default="system")  # operator email or webhook source
    created_at: datetime = Field(default_factory=datetime.utcnow)

from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, JSON
from typing import List, Optional
from datetime import datetime
from enum import Enum
from uuid import uuid4

from app.models.order_item import OrderItem


class PaymentMethod(str, Enum):
    COD = "COD"
    RAZORPAY = "RAZORPAY"
    STRIPE = "STRIPE"


class OrderStatus(str, Enum):
    ORDER_PLACED = "ORDER_PLACED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"


class Order(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(foreign_key="user.id", index=True)
    store_id: str = Field(foreign_key="store.id", index=True)
    address_id: str = Field(foreign_key="address.id")

    # rounded to cents at creation, never recomputed
    subtotal: float
    gst_amount: float
    shipping_charge: float
    total: float

    payment_method: PaymentMethod
    is_paid: bool = Field(default=False, index=True)
    is_coupon_used: bool = False
    coupon: dict = Field(default_factory=dict, sa_column=Column(JSON))

    status: OrderStatus = Field(default=OrderStatus.ORDER_PLACED)

    razorpay_order_id: Optional[str] = Field(default=None, index=True)
    payment_id: Optional[str] = None  # gateway payment reference
    stripe_session_id: Optional[str] = Field(default=None, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    items: List["OrderItem"] = Relationship(back_populates="order")

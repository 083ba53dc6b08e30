# app/schemas/checkout_schemas.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional

from app.models.order import PaymentMethod


class CartLineIn(BaseModel):
    id: str = Field(min_length=1)     # product id
    quantity: int = Field(gt=0)


class CheckoutBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    address_id: str = Field(alias="addressId", min_length=1)
    items: List[CartLineIn] = Field(min_length=1)
    coupon_code: Optional[str] = Field(default=None, alias="couponCode")

    @field_validator("coupon_code")
    @classmethod
    def blank_coupon_is_none(cls, v):
        if v is None or not v.strip():
            return None
        return v.strip()


class CheckoutRequest(CheckoutBase):
    payment_method: PaymentMethod = Field(alias="paymentMethod")


class RazorpayCheckoutRequest(CheckoutBase):
    pass


class RazorpayPaymentVerifySchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    razorpay_order_id: str = Field(min_length=1)
    razorpay_payment_id: str = Field(min_length=1)
    razorpay_signature: str = Field(min_length=1)
    order_ids: List[str] = Field(alias="orderIds", min_length=1)

from typing import Dict
from fastapi import APIRouter, Depends, Request
from sqlmodel import Session, select
from app.database import get_session
from app.models.order import Order, PaymentMethod
from app.models.store import Store
from app.schemas.checkout_schemas import CheckoutRequest
from app.services.checkout_service import place_order
from app.services.payment_gateways import PaymentSessionAdapter, get_payment_adapters
from app.utils.token import Identity, get_current_identity

router = APIRouter()


def serialize_order(order: Order, store: Store | None = None) -> dict:
    return {
        "id": order.id,
        "storeId": order.store_id,
        "store": (
            {"name": store.name, "username": store.username, "logo": store.logo}
            if store else None
        ),
        "addressId": order.address_id,
        "subtotal": order.subtotal,
        "gstAmount": order.gst_amount,
        "shippingCharge": order.shipping_charge,
        "total": order.total,
        "paymentMethod": order.payment_method,
        "isPaid": order.is_paid,
        "isCouponUsed": order.is_coupon_used,
        "coupon": order.coupon,
        "status": order.status,
        "createdAt": order.created_at,
        "orderItems": [
            {
                "productId": i.product_id,
                "quantity": i.quantity,
                "price": i.price,
                "gstPercent": i.gst_percent,
                "gstAmount": i.gst_amount,
            }
            for i in order.items
        ],
    }


# Place order (COD / Stripe / Razorpay)

@router.post("", status_code=201)
def create_orders(
    data: CheckoutRequest,
    request: Request,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
    adapters: Dict[PaymentMethod, PaymentSessionAdapter] = Depends(get_payment_adapters),
):
    result = place_order(
        session,
        identity,
        data,
        data.payment_method,
        adapters,
        origin=request.headers.get("origin"),
    )
    return result.body


# Buyer's paid orders

@router.get("")
def list_my_orders(
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    orders = session.exec(
        select(Order)
        .where(Order.user_id == identity.user_id, Order.is_paid == True)  # noqa: E712
        .order_by(Order.created_at.desc())
    ).all()

    return {
        "orders": [serialize_order(o, session.get(Store, o.store_id)) for o in orders]
    }

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.exceptions import PersistenceFailure
from app.models.order import Order
from app.models.order_event import OrderEventType
from app.services.order_builder import OrderSpec
from app.services.order_event_service import log_order_event

logger = logging.getLogger(__name__)


def persist_orders(session: Session, specs: Sequence[OrderSpec]) -> List[Order]:
    """
    Write every order and its items in one transaction.
    Any failure rolls back the whole batch.
    """
    orders = []
    try:
        for spec in specs:
            order = spec.to_order()
            session.add(order)
            for item in spec.to_items():
                session.add(item)
            orders.append(order)

        # orders first, so item foreign keys resolve
        session.flush()

        for order in orders:
            log_order_event(
                session,
                order_id=order.id,
                event_type=OrderEventType.ORDER_PLACED,
                label="Order placed",
                meta={"payment_method": order.payment_method.value, "total": order.total},
            )

        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Order persistence failed, rolled back {len(specs)} order(s): {e}")
        raise PersistenceFailure("Could not save your order. Nothing was charged.") from e

    for order in orders:
        session.refresh(order)
    return orders


def find_orders(session: Session, order_ids: Sequence[str]) -> List[Order]:
    if not order_ids:
        return []
    return session.exec(select(Order).where(Order.id.in_(list(order_ids)))).all()


def find_by_razorpay_order(session: Session, razorpay_order_id: str) -> List[Order]:
    return session.exec(
        select(Order).where(Order.razorpay_order_id == razorpay_order_id)
    ).all()


def attach_gateway_reference(
    session: Session,
    orders: Sequence[Order],
    *,
    razorpay_order_id: Optional[str] = None,
    stripe_session_id: Optional[str] = None,
):
    for order in orders:
        if razorpay_order_id:
            order.razorpay_order_id = razorpay_order_id
        if stripe_session_id:
            order.stripe_session_id = stripe_session_id
        order.updated_at = datetime.utcnow()
        session.add(order)
        log_order_event(
            session,
            order_id=order.id,
            event_type=OrderEventType.GATEWAY_INITIATED,
            label="Payment started",
            meta={"razorpay_order_id": razorpay_order_id, "stripe_session_id": stripe_session_id},
        )
    session.commit()


def mark_orders_paid(
    session: Session,
    orders: Sequence[Order],
    *,
    payment_id: Optional[str] = None,
    source: str = "system",
) -> List[Order]:
    """
    Flip unpaid orders to paid. Orders already paid are left untouched,
    so replays of the same confirmation are no-ops.
    Returns only the orders changed by this call. Caller commits.
    """
    changed = []
    for order in orders:
        if order.is_paid:
            continue
        order.is_paid = True
        if payment_id:
            order.payment_id = payment_id
        order.updated_at = datetime.utcnow()
        session.add(order)
        log_order_event(
            session,
            order_id=order.id,
            event_type=OrderEventType.PAYMENT_VERIFIED,
            label="Payment received",
            created_by=source,
            meta={"payment_id": payment_id} if payment_id else None,
        )
        changed.append(order)
    return changed

import logging
from datetime import datetime

from sqlmodel import Session

from app.constants.order_status import ALLOWED_TRANSITIONS
from app.exceptions import InvalidStatusTransition, OrderNotFound
from app.models.order import Order, OrderStatus, PaymentMethod
from app.models.order_event import OrderEventType
from app.services.order_event_service import log_order_event

logger = logging.getLogger(__name__)


def update_order_status(
    session: Session,
    order_id: str,
    status: OrderStatus,
    changed_by: str = "system",
) -> Order:
    order = session.get(Order, order_id)
    if not order:
        raise OrderNotFound("Order not found")

    if order.status == status:
        return order

    if status not in ALLOWED_TRANSITIONS[order.status]:
        raise InvalidStatusTransition(
            f"Cannot move order from {order.status.value} to {status.value}"
        )

    previous = order.status
    order.status = status
    order.updated_at = datetime.utcnow()
    log_order_event(
        session,
        order_id=order.id,
        event_type=OrderEventType.STATUS_CHANGED,
        label=f"Status changed to {status.value}",
        created_by=changed_by,
        meta={"from": previous.value, "to": status.value},
    )

    # cash is collected on delivery
    if (
        status == OrderStatus.DELIVERED
        and order.payment_method == PaymentMethod.COD
        and not order.is_paid
    ):
        order.is_paid = True
        log_order_event(
            session,
            order_id=order.id,
            event_type=OrderEventType.COD_SETTLED,
            label="Cash collected on delivery",
            created_by=changed_by,
        )
        logger.info(f"COD order {order.id} settled on delivery")

    session.add(order)
    session.commit()
    session.refresh(order)
    return order

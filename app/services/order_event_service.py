from typing import List, Optional

from sqlmodel import Session, select

from app.models.order_event import OrderEvent, OrderEventType


def log_order_event(
    session: Session,
    order_id: str,
    event_type: OrderEventType,
    label: str,
    created_by: str = "system",
    meta: Optional[dict] = None,
) -> OrderEvent:
    """Stage an audit row in the caller's transaction; the caller commits."""
    event = OrderEvent(
        order_id=order_id,
        event_type=OrderEventType(event_type).value,
        label=label,
        created_by=created_by,
        meta=meta,
    )
    session.add(event)
    return event


def order_timeline(session: Session, order_id: str) -> List[OrderEvent]:
    return session.exec(
        select(OrderEvent)
        .where(OrderEvent.order_id == order_id)
        .order_by(OrderEvent.created_at)
    ).all()

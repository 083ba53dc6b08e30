import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.exceptions import InvalidRequest, PaymentSetupFailure
from app.models.address import Address
from app.models.order import PaymentMethod
from app.schemas.checkout_schemas import CartLineIn, CheckoutBase
from app.services.coupon_policy import validate_coupon
from app.services.order_builder import CartLine, build_orders
from app.services.order_store import persist_orders
from app.services.payment_gateways import (
    CheckoutState,
    GatewayResult,
    PaymentContext,
    PaymentSessionAdapter,
)
from app.services.user_service import ensure_user
from app.utils.token import Identity

logger = logging.getLogger(__name__)


@dataclass
class CheckoutAttempt:
    user_id: str
    payment_method: PaymentMethod
    state: CheckoutState = CheckoutState.RECEIVED
    order_ids: List[str] = field(default_factory=list)

    def advance(self, state: CheckoutState):
        logger.info(
            f"Checkout {self.user_id}/{self.payment_method.value}: "
            f"{self.state.value} -> {state.value}"
        )
        self.state = state


def merge_cart_lines(items: Sequence[CartLineIn]) -> List[CartLine]:
    """Collapse repeated product ids, keeping first-seen order."""
    merged: Dict[str, int] = {}
    for item in items:
        merged[item.id] = merged.get(item.id, 0) + item.quantity
    return [CartLine(product_id=pid, quantity=qty) for pid, qty in merged.items()]


def place_order(
    session: Session,
    identity: Identity,
    request: CheckoutBase,
    payment_method: PaymentMethod,
    adapters: Dict[PaymentMethod, PaymentSessionAdapter],
    origin: Optional[str] = None,
) -> GatewayResult:
    """
    Run one checkout attempt end to end.

    Failures before the orders are persisted leave the database untouched.
    After that point orders are kept as unpaid rows even if the gateway
    call fails.
    """
    attempt = CheckoutAttempt(user_id=identity.user_id, payment_method=payment_method)

    adapter = adapters.get(payment_method)
    if adapter is None:
        raise InvalidRequest(f"Unsupported payment method: {payment_method}")

    cart_lines = merge_cart_lines(request.items)
    if not cart_lines:
        raise InvalidRequest("missing order details.")

    ensure_user(session, identity)

    address = session.get(Address, request.address_id)
    if not address or address.user_id != identity.user_id:
        raise InvalidRequest("Address not found")

    is_member = identity.is_member
    coupon = validate_coupon(session, request.coupon_code, identity.user_id, is_member)
    attempt.advance(CheckoutState.VALIDATED)

    fan_out = build_orders(
        session,
        cart_lines,
        coupon,
        is_member,
        address_id=address.id,
        user_id=identity.user_id,
        payment_method=payment_method,
    )
    attempt.order_ids = fan_out.order_ids
    attempt.advance(CheckoutState.PRICED)

    orders = persist_orders(session, fan_out.orders)
    attempt.advance(CheckoutState.PERSISTED)

    attempt.advance(CheckoutState.GATEWAY_INITIATED)
    try:
        result = adapter.start(
            session,
            PaymentContext(user_id=identity.user_id, fan_out=fan_out, orders=orders, origin=origin),
        )
    except SQLAlchemyError as e:
        # gateway reference or cart clear failed, the orders themselves are committed
        session.rollback()
        logger.error(f"Checkout {identity.user_id}: payment hand-off failed for {attempt.order_ids}: {e}")
        raise PaymentSetupFailure(
            "Order recorded but payment could not be started", order_ids=attempt.order_ids
        ) from e

    attempt.advance(result.state)

    return result

import json
import logging
from typing import List, Optional, Sequence

from sqlmodel import Session

from app.config import settings
from app.exceptions import OrderNotFound, PaymentVerificationFailed
from app.models.order import Order
from app.models.order_event import OrderEventType
from app.schemas.checkout_schemas import RazorpayPaymentVerifySchema
from app.services.cart_service import clear_cart
from app.services.order_event_service import log_order_event
from app.services.order_store import find_by_razorpay_order, find_orders, mark_orders_paid
from app.services.payment_gateways import RazorpayAdapter, StripeAdapter
from app.utils.token import Identity

logger = logging.getLogger(__name__)


def settle_orders(
    session: Session,
    orders: Sequence[Order],
    *,
    payment_id: Optional[str] = None,
    source: str = "system",
) -> List[Order]:
    """
    Single place where orders become paid.

    Already-paid orders are skipped and the buyer cart is cleared only when
    something actually changed, so duplicate confirmations are harmless.
    """
    changed = mark_orders_paid(session, orders, payment_id=payment_id, source=source)

    for user_id in dict.fromkeys(o.user_id for o in changed):
        clear_cart(session, user_id, commit=False)

    session.commit()
    return changed


def verify_razorpay_payment(
    session: Session,
    identity: Identity,
    payload: RazorpayPaymentVerifySchema,
    adapter: RazorpayAdapter,
) -> dict:
    order_ids = list(dict.fromkeys(payload.order_ids))

    # stateless check first, nothing is touched on failure
    if not adapter.verify_signature(
        payload.razorpay_order_id,
        payload.razorpay_payment_id,
        payload.razorpay_signature,
    ):
        logger.warning(f"Razorpay signature mismatch for orders {order_ids}")
        raise PaymentVerificationFailed(
            "Payment verification failed - invalid signature", order_ids=order_ids
        )

    orders = find_orders(session, order_ids)
    if len(orders) != len(order_ids) or any(o.user_id != identity.user_id for o in orders):
        raise OrderNotFound("Order not found")

    if any(o.razorpay_order_id != payload.razorpay_order_id for o in orders):
        raise PaymentVerificationFailed("Razorpay order mismatch", order_ids=order_ids)

    changed = settle_orders(
        session,
        orders,
        payment_id=payload.razorpay_payment_id,
        source="razorpay_verify",
    )

    if not changed:
        logger.info(f"Replayed Razorpay verification for orders {order_ids}")
        message = "Payment already processed"
    else:
        logger.info(f"Payment verified for orders {order_ids}")
        message = "Payment verified successfully"

    return {"success": True, "message": message, "orderIds": order_ids}


def handle_razorpay_webhook(
    session: Session,
    adapter: RazorpayAdapter,
    body: str,
    signature: Optional[str],
) -> dict:
    if not adapter.verify_webhook(body, signature):
        logger.error("Razorpay webhook signature verification failed")
        raise PaymentVerificationFailed("Invalid signature")

    event = json.loads(body)
    event_type = event.get("event")
    payload = event.get("payload") or {}

    if event_type == "payment.captured":
        payment = payload["payment"]["entity"]
        orders = find_by_razorpay_order(session, payment["order_id"])
        changed = settle_orders(
            session, orders, payment_id=payment["id"], source="razorpay_webhook"
        )
        logger.info(f"Payment captured for orders: {[o.id for o in changed]}")

    elif event_type == "order.paid":
        # backup for a missed payment.captured
        gateway_order = payload["order"]["entity"]
        orders = find_by_razorpay_order(session, gateway_order["id"])
        settle_orders(session, orders, source="razorpay_webhook")

    elif event_type == "payment.failed":
        payment = payload["payment"]["entity"]
        orders = [o for o in find_by_razorpay_order(session, payment["order_id"]) if not o.is_paid]
        # unpaid orders stay as audit rows
        for order in orders:
            log_order_event(
                session,
                order_id=order.id,
                event_type=OrderEventType.PAYMENT_FAILED,
                label="Payment failed",
                created_by="razorpay_webhook",
                meta={
                    "payment_id": payment.get("id"),
                    "error": payment.get("error_description"),
                },
            )
        session.commit()
        logger.info(f"Payment failed for orders: {[o.id for o in orders]}")

    else:
        logger.info(f"Unhandled webhook event: {event_type}")

    return {"received": True}


def handle_stripe_webhook(
    session: Session,
    adapter: StripeAdapter,
    payload: bytes,
    signature: Optional[str],
) -> dict:
    event = adapter.construct_event(payload, signature)
    if event is None:
        raise PaymentVerificationFailed("Invalid signature")

    if event["type"] != "checkout.session.completed":
        logger.info(f"Unhandled Stripe event: {event['type']}")
        return {"received": True}

    checkout_session = event["data"]["object"]
    metadata = checkout_session.get("metadata") or {}

    if metadata.get("appId") != settings.APP_ID:
        return {"received": True, "message": "Invalid app id"}

    order_ids = [i for i in (metadata.get("orderIds") or "").split(",") if i]
    orders = find_orders(session, order_ids)
    settle_orders(
        session,
        orders,
        payment_id=checkout_session.get("payment_intent"),
        source="stripe_webhook",
    )
    logger.info(f"Stripe checkout completed for orders {order_ids}")
    return {"received": True}

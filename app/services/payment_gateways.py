"""
Payment session adapters, one per payment method.

``start`` runs after the orders are persisted and turns the checkout's
grand total into a gateway-specific session. Gateway calls are bounded by
``GATEWAY_TIMEOUT_SECONDS``; any gateway error becomes ``GatewayFailure``
and the already-persisted orders stay unpaid.
"""
import logging
import time
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Dict, List, Optional

import razorpay
import requests
import stripe
from sqlmodel import Session

from app.config import settings
from app.exceptions import GatewayFailure
from app.models.order import Order, PaymentMethod
from app.services.cart_service import clear_cart
from app.services.order_builder import FanOut
from app.services.order_store import attach_gateway_reference
from app.services.pricing import to_minor_units

logger = logging.getLogger(__name__)

RECEIPT_MAX_LENGTH = 40
STRIPE_SESSION_TTL = 30 * 60  # seconds

# one http client for every Stripe call in the process
stripe.default_http_client = stripe.RequestsClient(timeout=settings.GATEWAY_TIMEOUT_SECONDS)


class CheckoutState(str, Enum):
    RECEIVED = "RECEIVED"
    VALIDATED = "VALIDATED"
    PRICED = "PRICED"
    PERSISTED = "PERSISTED"
    GATEWAY_INITIATED = "GATEWAY_INITIATED"
    COMPLETED = "COMPLETED"
    AWAITING_CALLBACK = "AWAITING_CALLBACK"


@dataclass
class PaymentContext:
    user_id: str
    fan_out: FanOut
    orders: List[Order]
    origin: Optional[str] = None

    @property
    def order_ids(self) -> List[str]:
        return [o.id for o in self.orders]


@dataclass
class GatewayResult:
    state: CheckoutState
    body: dict


class PaymentSessionAdapter:
    method: PaymentMethod

    def start(self, session: Session, ctx: PaymentContext) -> GatewayResult:
        raise NotImplementedError


class CashOnDeliveryAdapter(PaymentSessionAdapter):
    method = PaymentMethod.COD

    def start(self, session: Session, ctx: PaymentContext) -> GatewayResult:
        # no gateway round trip, orders settle on delivery
        clear_cart(session, ctx.user_id)
        return GatewayResult(
            state=CheckoutState.COMPLETED,
            body={
                "message": "Orders Placed Successfully",
                "orderIds": ctx.order_ids,
                "total": float(ctx.fan_out.grand_total),
            },
        )


class RazorpayAdapter(PaymentSessionAdapter):
    method = PaymentMethod.RAZORPAY

    def __init__(self, client: razorpay.Client, webhook_secret: str = "", timeout: float = 10):
        self.client = client
        self.webhook_secret = webhook_secret
        self.timeout = timeout

    def create_order(self, amount: int, currency: str, receipt: str, notes: dict) -> dict:
        try:
            return self.client.order.create(
                data={
                    "amount": amount,
                    "currency": currency,
                    "receipt": receipt,
                    "notes": notes,
                },
                timeout=self.timeout,
            )
        except (
            razorpay.errors.BadRequestError,
            razorpay.errors.GatewayError,
            razorpay.errors.ServerError,
            requests.RequestException,
        ) as e:
            logger.error(f"Razorpay order creation failed: {e}")
            raise GatewayFailure("Payment gateway unavailable") from e

    def start(self, session: Session, ctx: PaymentContext) -> GatewayResult:
        try:
            gateway_order = self.create_order(
                amount=to_minor_units(ctx.fan_out.grand_total),
                currency=settings.CURRENCY,
                receipt="_".join(ctx.order_ids)[:RECEIPT_MAX_LENGTH],
                notes={
                    "orderIds": ",".join(ctx.order_ids),
                    "userId": ctx.user_id,
                    "appId": settings.APP_ID,
                },
            )
        except GatewayFailure as e:
            e.order_ids = ctx.order_ids
            raise

        attach_gateway_reference(session, ctx.orders, razorpay_order_id=gateway_order["id"])

        return GatewayResult(
            state=CheckoutState.AWAITING_CALLBACK,
            body={
                "razorpayOrder": {
                    "id": gateway_order["id"],
                    "amount": gateway_order["amount"],
                    "currency": gateway_order["currency"],
                },
                "orderIds": ctx.order_ids,
                "breakdown": ctx.fan_out.pricing.breakdown(),
                "total": float(ctx.fan_out.grand_total),
                "key": settings.RAZORPAY_KEY_ID,
            },
        )

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        try:
            self.client.utility.verify_payment_signature({
                "razorpay_order_id": order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature,
            })
        except razorpay.errors.SignatureVerificationError:
            return False
        return True

    def verify_webhook(self, body: str, signature: Optional[str]) -> bool:
        if not signature or not self.webhook_secret:
            return False
        try:
            self.client.utility.verify_webhook_signature(body, signature, self.webhook_secret)
        except razorpay.errors.SignatureVerificationError:
            return False
        return True


class StripeAdapter(PaymentSessionAdapter):
    """Legacy card checkout through Stripe Checkout sessions."""

    method = PaymentMethod.STRIPE

    def __init__(self, api_key: str, webhook_secret: str = ""):
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def create_session(self, amount: int, origin: str, metadata: dict):
        try:
            return stripe.checkout.Session.create(
                api_key=self.api_key,
                payment_method_types=["card"],
                line_items=[{
                    "price_data": {
                        "currency": settings.CURRENCY.lower(),
                        "product_data": {"name": "Order"},
                        "unit_amount": amount,
                    },
                    "quantity": 1,
                }],
                expires_at=int(time.time()) + STRIPE_SESSION_TTL,
                mode="payment",
                success_url=f"{origin}/loading?nextUrl=orders",
                cancel_url=f"{origin}/cart",
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe session creation failed: {e}")
            raise GatewayFailure("Payment gateway unavailable") from e

    def start(self, session: Session, ctx: PaymentContext) -> GatewayResult:
        try:
            checkout_session = self.create_session(
                amount=to_minor_units(ctx.fan_out.grand_total),
                origin=ctx.origin or settings.FRONTEND_URL,
                metadata={
                    "orderIds": ",".join(ctx.order_ids),
                    "userId": ctx.user_id,
                    "appId": settings.APP_ID,
                },
            )
        except GatewayFailure as e:
            e.order_ids = ctx.order_ids
            raise

        attach_gateway_reference(session, ctx.orders, stripe_session_id=checkout_session["id"])

        return GatewayResult(
            state=CheckoutState.AWAITING_CALLBACK,
            body={
                "session": {"id": checkout_session["id"], "url": checkout_session["url"]},
                "orderIds": ctx.order_ids,
            },
        )

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Optional[dict]:
        try:
            return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning(f"Stripe webhook rejected: {e}")
            return None


@lru_cache()
def get_razorpay_adapter() -> RazorpayAdapter:
    client = razorpay.Client(auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET))
    return RazorpayAdapter(
        client,
        webhook_secret=settings.RAZORPAY_WEBHOOK_SECRET,
        timeout=settings.GATEWAY_TIMEOUT_SECONDS,
    )


@lru_cache()
def get_stripe_adapter() -> StripeAdapter:
    return StripeAdapter(settings.STRIPE_SECRET_KEY, webhook_secret=settings.STRIPE_WEBHOOK_SECRET)


def get_payment_adapters() -> Dict[PaymentMethod, PaymentSessionAdapter]:
    return {
        PaymentMethod.COD: CashOnDeliveryAdapter(),
        PaymentMethod.RAZORPAY: get_razorpay_adapter(),
        PaymentMethod.STRIPE: get_stripe_adapter(),
    }

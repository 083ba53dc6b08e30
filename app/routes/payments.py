from typing import Dict
from fastapi import APIRouter, Depends, Header, Request
from sqlmodel import Session
from app.database import get_session
from app.models.order import PaymentMethod
from app.schemas.checkout_schemas import RazorpayCheckoutRequest, RazorpayPaymentVerifySchema
from app.services.checkout_service import place_order
from app.services.payment_gateways import (
    PaymentSessionAdapter,
    RazorpayAdapter,
    StripeAdapter,
    get_payment_adapters,
    get_razorpay_adapter,
    get_stripe_adapter,
)
from app.services.payment_service import (
    handle_razorpay_webhook,
    handle_stripe_webhook,
    verify_razorpay_payment,
)
from app.utils.token import Identity, get_current_identity

router = APIRouter()


@router.post("/razorpay/order")
def create_razorpay_order(
    data: RazorpayCheckoutRequest,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
    adapters: Dict[PaymentMethod, PaymentSessionAdapter] = Depends(get_payment_adapters),
):
    """Create store orders and the Razorpay order that pays for all of them"""
    result = place_order(session, identity, data, PaymentMethod.RAZORPAY, adapters)
    return result.body


@router.post("/razorpay/verify")
def verify_payment(
    payload: RazorpayPaymentVerifySchema,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
    adapter: RazorpayAdapter = Depends(get_razorpay_adapter),
):
    return verify_razorpay_payment(session, identity, payload, adapter)


@router.post("/razorpay/webhook")
async def razorpay_webhook(
    request: Request,
    x_razorpay_signature: str | None = Header(default=None),
    session: Session = Depends(get_session),
    adapter: RazorpayAdapter = Depends(get_razorpay_adapter),
):
    # signature is computed over the raw body
    body = (await request.body()).decode("utf-8")
    return handle_razorpay_webhook(session, adapter, body, x_razorpay_signature)


@router.post("/stripe/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None),
    session: Session = Depends(get_session),
    adapter: StripeAdapter = Depends(get_stripe_adapter),
):
    payload = await request.body()
    return handle_stripe_webhook(session, adapter, payload, stripe_signature)

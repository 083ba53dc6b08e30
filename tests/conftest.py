"""
Shared pytest fixtures.

Runs against an in-memory SQLite database. Gateways are replaced with
in-process fakes; Razorpay signatures still go through the real SDK.
"""

import hashlib
import hmac
import json
import os
from typing import Optional

# Ensure test environment before app settings load
os.environ["ENV"] = "test"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"
os.environ["RAZORPAY_WEBHOOK_SECRET"] = "rzp_webhook_secret"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test"
os.environ["MASTER_VENDOR_EMAILS"] = "master@cartoo.in, ops@cartoo.in"
os.environ["FLAT_SHIPPING"] = "50"

import pytest
import razorpay
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import app.models  # noqa: F401
from app.database import get_session
from app.main import app as fastapi_app
from app.models.address import Address
from app.models.cart import CartItem
from app.models.coupon import Coupon
from app.models.order import Order, PaymentMethod
from app.models.product import Product
from app.models.store import Store
from app.models.user import User
from app.services.payment_gateways import (
    CashOnDeliveryAdapter,
    RazorpayAdapter,
    StripeAdapter,
    get_payment_adapters,
    get_razorpay_adapter,
    get_stripe_adapter,
)
from app.utils.token import Identity, create_access_token

BUYER_ID = "user_buyer"
RAZORPAY_SECRET = "rzp_test_secret"
RAZORPAY_WEBHOOK_SECRET = "rzp_webhook_secret"


# ============================================================================
# DATABASE
# ============================================================================


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


# ============================================================================
# SEED DATA
# ============================================================================


def add_user(session: Session, user_id: str = BUYER_ID, email: str = "buyer@example.com") -> User:
    user = User(id=user_id, name="Buyer", email=email)
    session.add(user)
    session.commit()
    return user


def add_address(session: Session, user_id: str = BUYER_ID) -> Address:
    address = Address(
        user_id=user_id,
        name="Buyer",
        street="12 MG Road",
        city="Bengaluru",
        state="KA",
        zip_code="560001",
    )
    session.add(address)
    session.commit()
    session.refresh(address)
    return address


def add_store(session: Session, store_id: str, name: Optional[str] = None) -> Store:
    store = Store(id=store_id, name=name or store_id, username=store_id.lower(), status="approved")
    session.add(store)
    session.commit()
    return store


def add_product(session: Session, product_id: str, store_id: str, price: float, gst: float = 0) -> Product:
    product = Product(id=product_id, store_id=store_id, name=product_id, price=price, gst=gst)
    session.add(product)
    session.commit()
    return product


def add_coupon(session: Session, code: str, discount: float, **kwargs) -> Coupon:
    coupon = Coupon(code=code, discount=discount, **kwargs)
    session.add(coupon)
    session.commit()
    return coupon


def add_order(session: Session, user_id: str = BUYER_ID, **kwargs) -> Order:
    values = dict(
        user_id=user_id,
        store_id="S1",
        address_id="addr",
        subtotal=100,
        gst_amount=0,
        shipping_charge=0,
        total=100,
        payment_method=PaymentMethod.COD,
    )
    values.update(kwargs)
    order = Order(**values)
    session.add(order)
    session.commit()
    session.refresh(order)
    return order


def add_cart_item(session: Session, product_id: str, user_id: str = BUYER_ID, quantity: int = 1):
    session.add(CartItem(user_id=user_id, product_id=product_id, quantity=quantity))
    session.commit()


@pytest.fixture
def catalog(session):
    """Two stores, product A (100, 18% GST) in S1 and B (200, no GST) in S2."""
    add_user(session)
    address = add_address(session)
    add_store(session, "S1")
    add_store(session, "S2")
    add_product(session, "A", "S1", price=100, gst=18)
    add_product(session, "B", "S2", price=200, gst=0)
    return {"address_id": address.id}


@pytest.fixture
def buyer() -> Identity:
    return Identity(user_id=BUYER_ID, email="buyer@example.com", name="Buyer")


@pytest.fixture
def member() -> Identity:
    return Identity(user_id=BUYER_ID, email="buyer@example.com", name="Buyer", plans=["plus"])


# ============================================================================
# GATEWAYS
# ============================================================================


class FakeRazorpayOrders:
    def __init__(self):
        self.calls = []
        self.error: Optional[Exception] = None

    def create(self, data=None, **kwargs):
        self.calls.append({"data": data, **kwargs})
        if self.error:
            raise self.error
        return {
            "id": f"order_rzp_{len(self.calls)}",
            "entity": "order",
            "amount": data["amount"],
            "currency": data["currency"],
            "receipt": data["receipt"],
            "status": "created",
        }


class FakeStripeAdapter(StripeAdapter):
    def __init__(self):
        super().__init__("sk_test", webhook_secret="whsec_test")
        self.sessions = []

    def create_session(self, amount, origin, metadata):
        self.sessions.append({"amount": amount, "origin": origin, "metadata": metadata})
        session_id = f"cs_test_{len(self.sessions)}"
        return {"id": session_id, "url": f"https://checkout.stripe.com/c/pay/{session_id}"}

    def construct_event(self, payload, signature):
        if signature != "valid":
            return None
        return json.loads(payload)


@pytest.fixture
def razorpay_orders():
    return FakeRazorpayOrders()


@pytest.fixture
def razorpay_adapter(razorpay_orders):
    client = razorpay.Client(auth=("rzp_test_key", RAZORPAY_SECRET))
    client.order = razorpay_orders
    return RazorpayAdapter(client, webhook_secret=RAZORPAY_WEBHOOK_SECRET, timeout=5)


@pytest.fixture
def stripe_adapter():
    return FakeStripeAdapter()


@pytest.fixture
def adapters(razorpay_adapter, stripe_adapter):
    return {
        PaymentMethod.COD: CashOnDeliveryAdapter(),
        PaymentMethod.RAZORPAY: razorpay_adapter,
        PaymentMethod.STRIPE: stripe_adapter,
    }


def sign_payment(razorpay_order_id: str, payment_id: str, secret: str = RAZORPAY_SECRET) -> str:
    message = f"{razorpay_order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def sign_webhook(body: str, secret: str = RAZORPAY_WEBHOOK_SECRET) -> str:
    return hmac.new(secret.encode(), body.encode(), hashlib.sha256).hexdigest()


# ============================================================================
# API CLIENT
# ============================================================================


def auth_headers(user_id: str = BUYER_ID, email: str = "buyer@example.com", plans=None) -> dict:
    token = create_access_token({"sub": user_id, "email": email, "name": "Buyer", "plans": plans or []})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(session, adapters, razorpay_adapter, stripe_adapter):
    fastapi_app.dependency_overrides[get_session] = lambda: session
    fastapi_app.dependency_overrides[get_payment_adapters] = lambda: adapters
    fastapi_app.dependency_overrides[get_razorpay_adapter] = lambda: razorpay_adapter
    fastapi_app.dependency_overrides[get_stripe_adapter] = lambda: stripe_adapter
    with TestClient(fastapi_app) as test_client:
        yield test_client
    fastapi_app.dependency_overrides.clear()

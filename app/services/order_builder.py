import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
from uuid import uuid4

from sqlmodel import Session

from app.config import settings
from app.exceptions import InvalidRequest, ProductNotFound
from app.models.coupon import Coupon
from app.models.order import Order, OrderStatus, PaymentMethod
from app.models.order_item import OrderItem
from app.models.product import Product
from app.services.pricing import PricingResult, StoreSplit, calculate_pricing, round_cents

logger = logging.getLogger(__name__)


@dataclass
class CartLine:
    product_id: str
    quantity: int


@dataclass
class OrderSpec:
    """One vendor's share of a checkout, ready to be persisted."""

    id: str
    user_id: str
    store_id: str
    address_id: str
    payment_method: PaymentMethod
    split: StoreSplit
    coupon: dict = field(default_factory=dict)
    is_paid: bool = False
    status: OrderStatus = OrderStatus.ORDER_PLACED

    @property
    def is_coupon_used(self) -> bool:
        return bool(self.coupon)

    @property
    def total(self) -> float:
        return float(self.split.total)

    def to_order(self) -> Order:
        return Order(
            id=self.id,
            user_id=self.user_id,
            store_id=self.store_id,
            address_id=self.address_id,
            subtotal=float(round_cents(self.split.subtotal)),
            gst_amount=float(round_cents(self.split.gst_amount)),
            shipping_charge=float(round_cents(self.split.shipping_charge)),
            total=self.total,
            payment_method=self.payment_method,
            is_paid=self.is_paid,
            is_coupon_used=self.is_coupon_used,
            coupon=self.coupon,
            status=self.status,
        )

    def to_items(self) -> List[OrderItem]:
        return [
            OrderItem(
                order_id=self.id,
                product_id=line.product_id,
                quantity=line.quantity,
                price=float(line.price),
                gst_percent=float(line.gst_percent),
                gst_amount=float(round_cents(line.gst_amount)),
            )
            for line in self.split.lines
        ]


@dataclass
class FanOut:
    orders: List[OrderSpec]
    pricing: PricingResult

    @property
    def order_ids(self) -> List[str]:
        return [spec.id for spec in self.orders]

    @property
    def grand_total(self):
        return self.pricing.grand_total


def resolve_products(
    session: Session, cart_lines: Sequence[CartLine]
) -> List[Tuple[Product, int]]:
    resolved = []
    for line in cart_lines:
        product = session.get(Product, line.product_id)
        if product is None:
            # abort the whole build, nothing has been written yet
            raise ProductNotFound(line.product_id)
        resolved.append((product, line.quantity))
    return resolved


def build_orders(
    session: Session,
    cart_lines: Sequence[CartLine],
    coupon: Optional[Coupon],
    is_member: bool,
    address_id: str,
    user_id: str,
    payment_method: PaymentMethod,
) -> FanOut:
    resolved = resolve_products(session, cart_lines)

    if all(product.price <= 0 for product, _ in resolved):
        raise InvalidRequest("Cart has no billable items")

    pricing = calculate_pricing(resolved, coupon, is_member, settings.FLAT_SHIPPING)
    snapshot = coupon.snapshot() if coupon else {}

    specs = [
        OrderSpec(
            id=str(uuid4()),
            user_id=user_id,
            store_id=split.store_id,
            address_id=address_id,
            payment_method=payment_method,
            split=split,
            coupon=snapshot,
        )
        for split in pricing.stores
    ]

    logger.info(
        f"Built {len(specs)} order(s) for {user_id}: "
        f"grand total {pricing.grand_total}, store totals {pricing.store_total_sum}"
    )
    return FanOut(orders=specs, pricing=pricing)

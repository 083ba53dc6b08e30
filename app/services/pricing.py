"""
Checkout pricing.

Pure functions: no session, no settings lookup. Every amount is a
``Decimal`` so per-store subtotal and GST sums match the grand sums
exactly; only per-store totals (and the persisted cent columns) are
rounded.
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from app.exceptions import InvalidRequest

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


class PricedProduct(Protocol):
    id: str
    store_id: str
    price: float
    gst: float


class DiscountSource(Protocol):
    discount: float


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 0.1 as 0.1 instead of its binary expansion
    return Decimal(str(value or 0))


def round_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal) -> int:
    """Rupees -> paise, rounding half up."""
    return int((to_decimal(amount) * HUNDRED).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass
class PricedLine:
    product_id: str
    store_id: str
    quantity: int
    price: Decimal
    gst_percent: Decimal
    base_price: Decimal
    gst_amount: Decimal


@dataclass
class StoreSplit:
    store_id: str
    lines: List[PricedLine] = field(default_factory=list)
    subtotal: Decimal = Decimal("0")
    gst_amount: Decimal = Decimal("0")
    shipping_charge: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    total: Decimal = Decimal("0")


@dataclass
class PricingResult:
    stores: List[StoreSplit]
    grand_subtotal: Decimal
    grand_gst_amount: Decimal
    shipping_charge: Decimal
    discount_amount: Decimal
    grand_total: Decimal

    @property
    def store_total_sum(self) -> Decimal:
        return sum((s.total for s in self.stores), Decimal("0"))

    def breakdown(self) -> dict:
        return {
            "subtotal": float(self.grand_subtotal),
            "gstAmount": float(self.grand_gst_amount),
            "shippingCharge": float(self.shipping_charge),
            "discount": float(self.discount_amount),
            "total": float(self.grand_total),
        }


def price_line(product: PricedProduct, quantity: int) -> PricedLine:
    price = to_decimal(product.price)
    gst_percent = to_decimal(product.gst)
    base_price = price * quantity
    return PricedLine(
        product_id=product.id,
        store_id=product.store_id,
        quantity=quantity,
        price=price,
        gst_percent=gst_percent,
        base_price=base_price,
        gst_amount=base_price * gst_percent / HUNDRED,
    )


def calculate_pricing(
    lines: Sequence[Tuple[PricedProduct, int]],
    coupon: Optional[DiscountSource],
    is_member: bool,
    flat_shipping,
) -> PricingResult:
    if not lines:
        raise InvalidRequest("Cart is empty")

    priced = [price_line(product, quantity) for product, quantity in lines]

    grand_subtotal = sum((p.base_price for p in priced), Decimal("0"))
    grand_gst_amount = sum((p.gst_amount for p in priced), Decimal("0"))

    # charged once per checkout, not per store
    shipping_charge = Decimal("0") if is_member else to_decimal(flat_shipping)

    discount_amount = Decimal("0")
    if coupon is not None:
        discount_amount = grand_subtotal * to_decimal(coupon.discount) / HUNDRED

    grand_total = grand_subtotal + grand_gst_amount + shipping_charge - discount_amount

    # dicts keep insertion order, so the first-seen store comes first
    groups: Dict[str, StoreSplit] = {}
    for line in priced:
        groups.setdefault(line.store_id, StoreSplit(store_id=line.store_id)).lines.append(line)

    stores = list(groups.values())
    for index, split in enumerate(stores):
        split.subtotal = sum((l.base_price for l in split.lines), Decimal("0"))
        split.gst_amount = sum((l.gst_amount for l in split.lines), Decimal("0"))
        split.shipping_charge = shipping_charge if index == 0 else Decimal("0")

        if coupon is not None and grand_subtotal > 0:
            split.discount = split.subtotal * discount_amount / grand_subtotal

        split.total = round_cents(
            split.subtotal + split.gst_amount + split.shipping_charge - split.discount
        )

    return PricingResult(
        stores=stores,
        grand_subtotal=grand_subtotal,
        grand_gst_amount=grand_gst_amount,
        shipping_charge=shipping_charge,
        discount_amount=discount_amount,
        grand_total=grand_total,
    )

import logging
from datetime import datetime
from typing import Optional

from sqlmodel import Session, select

from app.exceptions import CouponMembersOnly, CouponNewUsersOnly, CouponNotFound
from app.models.coupon import Coupon
from app.models.order import Order

logger = logging.getLogger(__name__)


def has_prior_orders(session: Session, user_id: str) -> bool:
    # any status, any store, paid or not
    return session.exec(
        select(Order.id).where(Order.user_id == user_id).limit(1)
    ).first() is not None


def validate_coupon(
    session: Session,
    code: Optional[str],
    user_id: str,
    is_member: bool,
) -> Optional[Coupon]:
    """
    Check a coupon code against its eligibility rules.

    Read-only: the coupon is not reserved or marked used. Usage is implied
    by its snapshot on the created orders.
    """
    if not code:
        return None

    coupon = session.get(Coupon, code.strip().upper())
    if coupon is None or (coupon.expires_at and coupon.expires_at < datetime.utcnow()):
        logger.info(f"Coupon {code} rejected: not found or expired")
        raise CouponNotFound(code)

    if coupon.for_new_user and has_prior_orders(session, user_id):
        logger.info(f"Coupon {coupon.code} rejected for {user_id}: new users only")
        raise CouponNewUsersOnly()

    if coupon.for_member and not is_member:
        logger.info(f"Coupon {coupon.code} rejected for {user_id}: members only")
        raise CouponMembersOnly()

    return coupon

from typing import List, Optional


class CheckoutError(Exception):
    """
    Base class for checkout / payment failures.

    `orders_recorded` tells the client whether orders already exist for
    this attempt (payment incomplete) or nothing was written (fix input).
    """

    status_code = 400
    code = "checkout_error"
    orders_recorded = False

    def __init__(self, detail: str, order_ids: Optional[List[str]] = None):
        super().__init__(detail)
        self.detail = detail
        self.order_ids = order_ids or []

    def to_dict(self) -> dict:
        body = {
            "detail": self.detail,
            "code": self.code,
            "ordersRecorded": self.orders_recorded,
        }
        if self.order_ids:
            body["orderIds"] = self.order_ids
        return body


class InvalidRequest(CheckoutError):
    code = "invalid_request"


class Unauthorized(CheckoutError):
    status_code = 401
    code = "unauthorized"


class CouponNotFound(CheckoutError):
    code = "coupon_not_found"

    def __init__(self, code: str):
        super().__init__("Coupon not found")
        self.coupon_code = code


class CouponNewUsersOnly(CheckoutError):
    code = "coupon_new_users_only"

    def __init__(self):
        super().__init__("Coupon valid for new users only")


class CouponMembersOnly(CheckoutError):
    code = "coupon_members_only"

    def __init__(self):
        super().__init__("Coupon valid for members only")


class ProductNotFound(CheckoutError):
    code = "product_not_found"

    def __init__(self, product_id: str):
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


class PersistenceFailure(CheckoutError):
    status_code = 500
    code = "persistence_failure"


class PaymentSetupFailure(CheckoutError):
    """Orders are saved but recording the payment hand-off failed."""

    status_code = 500
    code = "payment_setup_failure"
    orders_recorded = True


class GatewayFailure(CheckoutError):
    status_code = 502
    code = "gateway_failure"
    orders_recorded = True


class PaymentVerificationFailed(CheckoutError):
    code = "payment_verification_failed"
    orders_recorded = True


class OrderNotFound(CheckoutError):
    status_code = 404
    code = "order_not_found"


class InvalidStatusTransition(CheckoutError):
    code = "invalid_status_transition"

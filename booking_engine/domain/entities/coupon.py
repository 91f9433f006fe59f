from dataclasses import dataclass


@dataclass(frozen=True)
class CouponValidation:
    valid: bool
    code: str
    discount_amount: float = 0.0
    coupon_id: str | None = None
    reason: str | None = None


@dataclass(frozen=True)
class AppliedCoupon:
    code: str
    coupon_id: str | None
    discount_amount: float
    order_amount: float  # pre-coupon subtotal the discount was validated against

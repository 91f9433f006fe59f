from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Mapping

from booking_engine.application.ports.coupon_service import CouponServicePort
from booking_engine.application.utils.money import round_half_up
from booking_engine.domain.entities.coupon import CouponValidation


@dataclass(frozen=True)
class CouponRule:
    code: str
    type: str  # "percentage" | "fixed"
    value: float
    min_order_value: float = 0.0
    max_discount: float | None = None
    usage_limit: int | None = None
    user_usage_limit: int = 1
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    is_active: bool = True


DEFAULT_COUPONS = (
    CouponRule(code="WELCOME10", type="percentage", value=10, max_discount=200),
    CouponRule(code="FLAT100", type="fixed", value=100, min_order_value=500),
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MockCouponService(CouponServicePort):
    """In-process coupon rules for local runs; one customer per instance."""

    def __init__(
        self,
        coupons: list[CouponRule] | tuple[CouponRule, ...] | None = None,
        usage_count: Mapping[str, int] | None = None,
        user_usage_count: Mapping[str, int] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        rules = DEFAULT_COUPONS if coupons is None else coupons
        self._coupons = {rule.code.upper(): rule for rule in rules}
        # Redemptions so far, overall and by this customer, keyed by upper-case code.
        self._usage_count = {code.upper(): n for code, n in (usage_count or {}).items()}
        self._user_usage_count = {code.upper(): n for code, n in (user_usage_count or {}).items()}
        self._clock = clock or _utcnow
        self._logger = logging.getLogger(__name__)

    def validate(self, code: str, order_amount: float) -> CouponValidation:
        key = (code or "").strip().upper()
        rule = self._coupons.get(key)
        if rule is None:
            return self._reject(key, "Invalid coupon code")
        if not rule.is_active:
            return self._reject(key, "Coupon is not active")

        now = self._clock()
        if (rule.valid_from and now < rule.valid_from) or (rule.valid_until and now > rule.valid_until):
            return self._reject(key, "Coupon has expired or not yet valid")
        if rule.usage_limit is not None and self._usage_count.get(key, 0) >= rule.usage_limit:
            return self._reject(key, "Coupon usage limit reached")
        if self._user_usage_count.get(key, 0) >= rule.user_usage_limit:
            return self._reject(key, "You have already used this coupon")
        if order_amount < rule.min_order_value:
            return self._reject(key, f"Minimum order value of ₹{rule.min_order_value:g} required")

        if rule.type == "percentage":
            discount = order_amount * rule.value / 100
            if rule.max_discount and discount > rule.max_discount:
                discount = rule.max_discount
        else:
            discount = rule.value

        return CouponValidation(
            valid=True,
            code=key,
            discount_amount=float(round_half_up(discount)),
            coupon_id=f"mock_coupon_{key.lower()}",
        )

    def _reject(self, code: str, reason: str) -> CouponValidation:
        self._logger.info("Mock coupon rejected", extra={"reason": reason})
        return CouponValidation(valid=False, code=code, reason=reason)

from __future__ import annotations

import logging

from booking_engine.application.exceptions import StateConflictError, ValidationError
from booking_engine.application.ports.coupon_service import CouponServicePort
from booking_engine.domain.entities.coupon import AppliedCoupon


class ApplyCouponUseCase:
    def __init__(self, coupon_service: CouponServicePort) -> None:
        self._coupon_service = coupon_service
        self._logger = logging.getLogger(__name__)

    def execute(self, code: str, subtotal: float) -> AppliedCoupon:
        """Validate `code` against the pre-coupon subtotal. Raises ValidationError on rejection."""
        normalized = (code or "").strip().upper()
        if not normalized:
            raise ValidationError("Please enter a coupon code")

        result = self._coupon_service.validate(normalized, subtotal)
        if not result.valid:
            self._logger.info("Coupon rejected", extra={"reason": result.reason})
            raise ValidationError(result.reason or "Invalid coupon code")

        return AppliedCoupon(
            code=result.code or normalized,
            coupon_id=result.coupon_id,
            discount_amount=max(0.0, result.discount_amount),
            order_amount=subtotal,
        )

    def revalidate(self, coupon: AppliedCoupon, subtotal: float) -> AppliedCoupon:
        """Fresh validation after the cart changed; the old discount is never carried over."""
        if coupon.order_amount == subtotal:
            return coupon
        return self.execute(coupon.code, subtotal)


def ensure_coupon_fresh(coupon: AppliedCoupon | None, subtotal: float) -> None:
    if coupon is None:
        return
    if coupon.order_amount != subtotal:
        raise StateConflictError(
            f"Coupon {coupon.code} was validated for {coupon.order_amount} but the cart now totals {subtotal}; "
            "re-validate the coupon"
        )

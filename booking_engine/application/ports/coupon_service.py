from abc import ABC, abstractmethod

from booking_engine.domain.entities.coupon import CouponValidation


class CouponServicePort(ABC):
    @abstractmethod
    def validate(self, code: str, order_amount: float) -> CouponValidation:
        """
        Validate a coupon code against the pre-coupon subtotal.

        Rejections are returned as CouponValidation(valid=False, reason=...),
        not raised.
        """
        raise NotImplementedError

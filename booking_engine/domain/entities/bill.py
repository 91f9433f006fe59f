from dataclasses import dataclass


@dataclass(frozen=True)
class Bill:
    subtotal: float
    platform_fee: float
    travel_charge: float
    coupon_discount: float
    coins_used: int
    coin_discount: float
    wallet_amount_used: float
    final_payable: float
    distance_km: float | None = None

    @property
    def price_after_coupon(self) -> float:
        return max(0.0, self.subtotal - self.coupon_discount)

    @property
    def payable_after_coins(self) -> float:
        return max(0.0, self.price_after_coupon - self.coin_discount) + self.platform_fee + self.travel_charge

    @property
    def is_fully_covered(self) -> bool:
        return self.final_payable == 0

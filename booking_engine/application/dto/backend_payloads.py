from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from booking_engine.domain.entities.coupon import CouponValidation
from booking_engine.domain.entities.payment import GatewayOrder
from booking_engine.domain.entities.pricing import CoinConfig, FeeConfig, WalletState


class _BackendModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CouponDetailsDTO(_BackendModel):
    id: str | None = Field(default=None, alias="_id")
    code: str | None = None
    discount_amount: float = Field(default=0.0, alias="discountAmount")


class CouponValidateResponseDTO(_BackendModel):
    valid: bool = False
    message: str | None = None
    coupon: CouponDetailsDTO | None = None

    def to_validation(self, code: str) -> CouponValidation:
        if not self.valid or self.coupon is None:
            return CouponValidation(valid=False, code=code, reason=self.message or "Invalid coupon code")
        return CouponValidation(
            valid=True,
            code=self.coupon.code or code,
            discount_amount=self.coupon.discount_amount,
            coupon_id=self.coupon.id,
        )


class WalletResponseDTO(_BackendModel):
    balance: float = 0.0
    yc_coins: int = Field(default=0, alias="ycCoins")

    def to_wallet_state(self) -> WalletState:
        return WalletState(balance=self.balance, coin_balance=self.yc_coins)


class FeeConfigDTO(_BackendModel):
    platform_fee: float = Field(default=0.0, alias="platformFee", ge=0)
    travel_charge_per_km: float = Field(default=0.0, alias="travelChargePerKm", ge=0)
    is_active: bool = Field(default=False, alias="isActive")

    def to_fee_config(self) -> FeeConfig:
        return FeeConfig(
            is_active=self.is_active,
            platform_fee=self.platform_fee,
            travel_charge_per_km=self.travel_charge_per_km,
        )


class CoinConfigDTO(_BackendModel):
    coin_to_rupee_rate: float = Field(default=1.0, alias="coinToRupeeRate", gt=0)
    max_usage_percentage: float = Field(default=50.0, alias="maxUsagePercentage", ge=0, le=100)

    def to_coin_config(self) -> CoinConfig:
        return CoinConfig(
            coin_to_rupee_rate=self.coin_to_rupee_rate,
            max_usage_percentage=self.max_usage_percentage,
        )


class PaymentOrderResponseDTO(_BackendModel):
    id: str
    amount: int
    currency: str

    def to_gateway_order(self) -> GatewayOrder:
        return GatewayOrder(order_id=self.id, amount_minor=self.amount, currency=self.currency)


class PaymentVerifyRequestDTO(_BackendModel):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class PaymentVerifyResponseDTO(_BackendModel):
    success: bool = False
    message: str | None = None

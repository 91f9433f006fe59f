from __future__ import annotations

import math
from typing import Sequence

from booking_engine.application.utils.money import clamp_non_negative, round_half_up
from booking_engine.domain.entities.bill import Bill
from booking_engine.domain.entities.cart import CartLine
from booking_engine.domain.entities.coupon import AppliedCoupon
from booking_engine.domain.entities.pricing import CoinConfig, FeeConfig, WalletState


def compute_bill(
    cart_lines: Sequence[CartLine],
    fee_config: FeeConfig,
    coupon: AppliedCoupon | None,
    coin_config: CoinConfig,
    wallet_state: WalletState,
    use_coins: bool,
    use_wallet: bool,
    distance_km: float | None,
) -> Bill:
    """
    Itemised bill for a cart.

    Product discounts (coupon, then coins) apply to the subtotal only; platform
    fee and travel charge are added back afterwards and are never discounted.
    Wallet credit is applied last, against everything that is left. Every step
    clamps at zero before the next one runs.

    Pure: no I/O and no shared state, safe to call on every cart or address change.
    """
    subtotal = sum(line.total for line in cart_lines)

    platform_fee = clamp_non_negative(fee_config.platform_fee) if fee_config.is_active else 0.0
    travel_charge = _travel_charge(cart_lines, fee_config, distance_km)

    coupon_discount = clamp_non_negative(coupon.discount_amount) if coupon is not None else 0.0
    price_after_coupon = clamp_non_negative(subtotal - coupon_discount)

    coins_used = _coins_allowed(price_after_coupon, coin_config, wallet_state) if use_coins else 0
    coin_discount = coins_used * coin_config.coin_to_rupee_rate if coins_used else 0.0

    payable_after_coins = clamp_non_negative(price_after_coupon - coin_discount) + platform_fee + travel_charge

    wallet_amount_used = (
        min(clamp_non_negative(wallet_state.balance), payable_after_coins) if use_wallet else 0.0
    )
    final_payable = clamp_non_negative(payable_after_coins - wallet_amount_used)

    return Bill(
        subtotal=subtotal,
        platform_fee=platform_fee,
        travel_charge=travel_charge,
        coupon_discount=coupon_discount,
        coins_used=coins_used,
        coin_discount=coin_discount,
        wallet_amount_used=wallet_amount_used,
        final_payable=final_payable,
        distance_km=distance_km if _known(distance_km) else None,
    )


def max_coins_allowed(price_after_coupon: float, coin_config: CoinConfig) -> int:
    rate = coin_config.coin_to_rupee_rate
    if rate <= 0:
        return 0
    percentage = min(max(coin_config.max_usage_percentage, 0.0), 100.0)
    max_coin_discount = math.floor(price_after_coupon * percentage / 100)
    return math.floor(max_coin_discount / rate)


def _coins_allowed(price_after_coupon: float, coin_config: CoinConfig, wallet_state: WalletState) -> int:
    return max(0, min(wallet_state.coin_balance, max_coins_allowed(price_after_coupon, coin_config)))


def _travel_charge(cart_lines: Sequence[CartLine], fee_config: FeeConfig, distance_km: float | None) -> float:
    if not fee_config.is_active or fee_config.travel_charge_per_km <= 0:
        return 0.0
    # Charged only once a worker is bound; otherwise deferred to assignment time.
    if not any(line.has_worker for line in cart_lines):
        return 0.0
    if not _known(distance_km) or distance_km < 0:
        return 0.0
    return float(round_half_up(distance_km * fee_config.travel_charge_per_km))


def _known(distance_km: float | None) -> bool:
    return distance_km is not None and not math.isnan(distance_km)

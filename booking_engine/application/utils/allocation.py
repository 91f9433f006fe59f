from __future__ import annotations

import math
from dataclasses import dataclass

from booking_engine.domain.entities.bill import Bill
from booking_engine.domain.entities.cart import CartLine


@dataclass(frozen=True)
class LineShare:
    line: CartLine
    coupon_discount: float
    coins_used: int
    coin_discount: float
    wallet_amount_used: float
    platform_fee: float
    travel_charge: float
    final_price: float


def split_proportionally(total: float, weights: list[float]) -> list[float]:
    """
    Floor every share but the last; the last takes the remainder so shares sum to `total`.
    With no positive weight everything lands on the last share.
    """
    if not weights:
        return []
    weight_sum = sum(weights)
    if weight_sum <= 0:
        return [0] * (len(weights) - 1) + [total]
    shares = [math.floor(total * w / weight_sum) for w in weights[:-1]]
    shares.append(total - sum(shares))
    return shares


def split_evenly(total: float, count: int) -> list[float]:
    if count <= 0:
        return []
    share = math.floor(total / count)
    return [share] * (count - 1) + [total - share * (count - 1)]


def allocate_bill(lines: list[CartLine], bill: Bill) -> list[LineShare]:
    """Spread bill totals over cart lines so that each line becomes its own booking."""
    weights = [line.total for line in lines]
    count = len(lines)

    effective_coupon = min(bill.coupon_discount, bill.subtotal)
    coupon = split_proportionally(effective_coupon, weights)
    coins = split_proportionally(bill.coins_used, weights)
    coin_discount = split_proportionally(bill.coin_discount, weights)
    wallet = split_proportionally(bill.wallet_amount_used, weights)
    final = split_proportionally(bill.final_payable, weights)
    # Fees are per order, not per service, so they are split evenly.
    platform = split_evenly(bill.platform_fee, count)
    travel = split_evenly(bill.travel_charge, count)

    return [
        LineShare(
            line=line,
            coupon_discount=coupon[i],
            coins_used=int(coins[i]),
            coin_discount=coin_discount[i],
            wallet_amount_used=wallet[i],
            platform_fee=platform[i],
            travel_charge=travel[i],
            final_price=final[i],
        )
        for i, line in enumerate(lines)
    ]

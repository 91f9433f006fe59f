from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round like JavaScript's Math.round: halves go up, also for negatives."""
    return math.floor(value + 0.5)


def to_minor_units(amount: float) -> int:
    return round_half_up(amount * 100)


def clamp_non_negative(value: float) -> float:
    return value if value > 0 else 0.0

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class BookingType(str, Enum):
    HALF_DAY = "half-day"
    FULL_DAY = "full-day"
    MULTIPLE_DAYS = "multiple-days"


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class CartLine:
    price: float  # unit price; half-day lines already carry the reduced price
    days: int = 1
    booking_type: BookingType = BookingType.FULL_DAY
    category: str = ""
    service: str = ""
    service_id: str | None = None
    worker_id: str | None = None
    worker_location: GeoPoint | None = None

    @property
    def total(self) -> float:
        return self.price * self.days

    @property
    def has_worker(self) -> bool:
        return self.worker_id is not None

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from booking_engine.domain.entities.cart import BookingType


class BookingStatus(str, Enum):
    """
    pending -> assigned -> in-progress -> completed
    pending | assigned -> cancelled
    """

    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.COMPLETED, BookingStatus.CANCELLED)


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class PaymentMethod(str, Enum):
    CASH = "cash"
    ONLINE = "online"
    WALLET = "wallet"  # nothing left to pay after coupon, coins and wallet


@dataclass(frozen=True)
class BookingDraft:
    category: str
    service: str
    price: float
    final_price: float
    days: int = 1
    booking_type: BookingType = BookingType.FULL_DAY
    service_id: str | None = None
    worker_id: str | None = None
    platform_fee: float = 0.0
    travel_charge: float = 0.0
    distance_km: float | None = None
    coupon_code: str | None = None
    coupon_discount: float = 0.0
    coins_used: int = 0
    coin_discount: float = 0.0
    wallet_amount_used: float = 0.0
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: PaymentMethod | None = None
    payment_id: str | None = None
    address: dict[str, str] | None = None
    phone: str | None = None
    checkout_session_id: str | None = None

    @property
    def initial_status(self) -> BookingStatus:
        return BookingStatus.ASSIGNED if self.worker_id else BookingStatus.PENDING


@dataclass(frozen=True)
class Booking:
    id: str
    category: str
    service: str
    price: float  # pre-discount line total
    final_price: float  # payable share after coupon, coins and wallet
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: PaymentMethod | None = None
    payment_id: str | None = None
    days: int = 1
    booking_type: BookingType = BookingType.FULL_DAY
    service_id: str | None = None
    worker_id: str | None = None
    platform_fee: float = 0.0
    travel_charge: float = 0.0
    distance_km: float | None = None
    coupon_code: str | None = None
    coupon_discount: float = 0.0
    coins_used: int = 0
    coin_discount: float = 0.0
    wallet_amount_used: float = 0.0
    address: dict[str, str] | None = None
    phone: str | None = None
    checkout_session_id: str | None = None
    refund_required: bool = False
    refund_amount: float = 0.0
    cancellation_reason: str | None = None
    version: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None
    assigned_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None

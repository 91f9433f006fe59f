from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from booking_engine.application.use_cases.booking_lifecycle import BookingLifecycle
from booking_engine.application.use_cases.otp_gate import OtpGate
from booking_engine.infrastructure.mock.mock_otp_delivery import MockOtpDelivery
from booking_engine.infrastructure.store.memory_booking_repository import MemoryBookingRepository
from booking_engine.infrastructure.store.memory_otp_store import MemoryOtpStore


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FixedCodes:
    """Hands out queued codes in order; used to pin OTP values in tests."""

    def __init__(self, *codes: str) -> None:
        self._codes = list(codes)

    def __call__(self, length: int) -> str:
        return self._codes.pop(0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def delivery() -> MockOtpDelivery:
    return MockOtpDelivery()


@pytest.fixture
def otp_gate(clock, delivery) -> OtpGate:
    return OtpGate(store=MemoryOtpStore(), delivery=delivery, clock=clock)


@pytest.fixture
def repository(clock) -> MemoryBookingRepository:
    return MemoryBookingRepository(clock=clock)


@pytest.fixture
def lifecycle(repository, otp_gate, clock) -> BookingLifecycle:
    return BookingLifecycle(repository=repository, otp_gate=otp_gate, clock=clock)

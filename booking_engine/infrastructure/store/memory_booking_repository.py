from __future__ import annotations

import threading
import uuid
from dataclasses import asdict, replace
from datetime import datetime, timezone
from typing import Callable

from booking_engine.application.exceptions import NotFoundError, StateConflictError
from booking_engine.application.ports.booking_repository import BookingRepositoryPort
from booking_engine.domain.entities.booking import Booking, BookingDraft, BookingStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemoryBookingRepository(BookingRepositoryPort):
    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._bookings: dict[str, Booking] = {}
        self._lock = threading.Lock()
        self._clock = clock or _utcnow

    def create(self, draft: BookingDraft) -> Booking:
        return self.create_many([draft])[0]

    def create_many(self, drafts: list[BookingDraft]) -> list[Booking]:
        now = self._clock()
        with self._lock:
            # Nothing is stored unless every draft builds.
            bookings = [self._new_booking(draft, now) for draft in drafts]
            for booking in bookings:
                self._bookings[booking.id] = booking
        return bookings

    def get(self, booking_id: str) -> Booking:
        with self._lock:
            booking = self._bookings.get(booking_id)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        return booking

    def save(self, booking: Booking, expected_version: int) -> Booking:
        with self._lock:
            current = self._bookings.get(booking.id)
            if current is None:
                raise NotFoundError(f"Booking {booking.id} not found")
            if current.version != expected_version:
                raise StateConflictError(
                    "Booking was changed by someone else; refresh and retry",
                    current_status=current.status.value,
                )
            stored = replace(booking, version=expected_version + 1)
            self._bookings[booking.id] = stored
            return stored

    def list_for_session(self, checkout_session_id: str) -> list[Booking]:
        with self._lock:
            return [b for b in self._bookings.values() if b.checkout_session_id == checkout_session_id]

    def _new_booking(self, draft: BookingDraft, now: datetime) -> Booking:
        status = draft.initial_status
        return Booking(
            id=uuid.uuid4().hex,
            status=status,
            created_at=now,
            updated_at=now,
            assigned_at=now if status is BookingStatus.ASSIGNED else None,
            version=1,
            **asdict(draft),
        )

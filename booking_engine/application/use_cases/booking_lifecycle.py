from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable

from booking_engine.application.exceptions import StateConflictError, ValidationError
from booking_engine.application.ports.booking_repository import BookingRepositoryPort
from booking_engine.application.use_cases.otp_gate import OtpGate
from booking_engine.domain.entities.booking import (
    Booking,
    BookingDraft,
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
)
from booking_engine.domain.entities.otp import OtpKind, OtpTicket


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingLifecycle:
    """
    Named transitions over the Booking aggregate.

    Every transition reads the booking, checks its precondition (and the
    caller's `expected_status` when given) and writes back with a
    compare-and-set on the version it read, so a concurrent worker/user action
    is never silently overwritten.
    """

    def __init__(
        self,
        repository: BookingRepositoryPort,
        otp_gate: OtpGate,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repository = repository
        self._otp_gate = otp_gate
        self._clock = clock or _utcnow
        self._logger = logging.getLogger(__name__)

    def get(self, booking_id: str) -> Booking:
        return self._repository.get(booking_id)

    def create(self, draft: BookingDraft) -> Booking:
        return self.create_many([draft])[0]

    def create_many(self, drafts: list[BookingDraft]) -> list[Booking]:
        bookings = self._repository.create_many(drafts)
        for booking, draft in zip(bookings, drafts):
            self._logger.info(
                "Booking created",
                extra={"booking_id": booking.id, "status": booking.status.value, "session_id": draft.checkout_session_id},
            )
        return bookings

    def assign(self, booking_id: str, worker_id: str, expected_status: BookingStatus | None = None) -> Booking:
        if not worker_id:
            raise ValidationError("Worker ID is required")
        booking = self._load(booking_id, (BookingStatus.PENDING, BookingStatus.ASSIGNED), "assign", expected_status)
        reassigned = booking.status is BookingStatus.ASSIGNED
        assigned = self._write(booking, status=BookingStatus.ASSIGNED, worker_id=worker_id, assigned_at=self._clock())
        if reassigned:
            # A start code shared for the previous worker must not let the new one start.
            self._otp_gate.revoke(booking_id, OtpKind.START)
        return assigned

    def request_start_otp(self, booking_id: str) -> OtpTicket:
        self._load(booking_id, (BookingStatus.ASSIGNED,), "request a start OTP for")
        return self._otp_gate.issue(booking_id, OtpKind.START)

    def start(self, booking_id: str, otp: str, expected_status: BookingStatus | None = None) -> Booking:
        booking = self._load_for_otp(booking_id, BookingStatus.ASSIGNED, OtpKind.START, otp, "start", expected_status)
        with self._otp_gate.redeem(booking_id, OtpKind.START, otp):
            return self._write(booking, status=BookingStatus.IN_PROGRESS, started_at=self._clock())

    def request_completion_otp(self, booking_id: str) -> OtpTicket:
        self._load(booking_id, (BookingStatus.IN_PROGRESS,), "request a completion OTP for")
        return self._otp_gate.issue(booking_id, OtpKind.COMPLETION)

    def complete(self, booking_id: str, otp: str, expected_status: BookingStatus | None = None) -> Booking:
        booking = self._load_for_otp(
            booking_id, BookingStatus.IN_PROGRESS, OtpKind.COMPLETION, otp, "complete", expected_status
        )
        changes: dict = {"status": BookingStatus.COMPLETED, "completed_at": self._clock()}
        if booking.payment_method is PaymentMethod.CASH and booking.payment_status is PaymentStatus.PENDING:
            changes["payment_status"] = PaymentStatus.PAID  # cash is settled at completion
        with self._otp_gate.redeem(booking_id, OtpKind.COMPLETION, otp):
            return self._write(booking, **changes)

    def cancel(self, booking_id: str, reason: str | None = None, expected_status: BookingStatus | None = None) -> Booking:
        booking = self._load(booking_id, (BookingStatus.PENDING, BookingStatus.ASSIGNED), "cancel", expected_status)

        paid_online = booking.final_price if booking.payment_status is PaymentStatus.PAID else 0.0
        refund_amount = paid_online + booking.wallet_amount_used

        cancelled = self._write(
            booking,
            status=BookingStatus.CANCELLED,
            cancellation_reason=reason,
            cancelled_at=self._clock(),
            refund_required=refund_amount > 0,
            refund_amount=refund_amount,
        )
        self._otp_gate.revoke(booking_id, OtpKind.START)
        if cancelled.refund_required:
            self._logger.info("Booking flagged for refund", extra={"booking_id": booking_id})
        return cancelled

    def _load(
        self,
        booking_id: str,
        allowed: tuple[BookingStatus, ...],
        action: str,
        expected_status: BookingStatus | None = None,
    ) -> Booking:
        return self._check(self._repository.get(booking_id), allowed, action, expected_status)

    def _check(
        self,
        booking: Booking,
        allowed: tuple[BookingStatus, ...],
        action: str,
        expected_status: BookingStatus | None,
    ) -> Booking:
        if expected_status is not None and booking.status is not expected_status:
            raise StateConflictError(
                f"Booking is {booking.status.value}, expected {expected_status.value}; refresh and retry",
                current_status=booking.status.value,
            )
        if booking.status not in allowed:
            raise StateConflictError(
                f"Cannot {action} a booking that is {booking.status.value}",
                current_status=booking.status.value,
            )
        return booking

    def _load_for_otp(
        self,
        booking_id: str,
        required: BookingStatus,
        kind: OtpKind,
        otp: str,
        action: str,
        expected_status: BookingStatus | None,
    ) -> Booking:
        booking = self._repository.get(booking_id)
        if booking.status is not required:
            # A network retry of an already applied transition reports the spent code.
            self._otp_gate.reject_replay(booking_id, kind, otp)
        return self._check(booking, (required,), action, expected_status)

    def _write(self, booking: Booking, **changes) -> Booking:
        updated = replace(booking, updated_at=self._clock(), **changes)
        saved = self._repository.save(updated, expected_version=booking.version)
        self._logger.info("Booking transitioned", extra={"booking_id": saved.id, "status": saved.status.value})
        return saved

from __future__ import annotations

from enum import Enum


class BookingEngineError(Exception):
    """Base class for every failure raised by the engine. None of them is fatal to the process."""
    pass


class ValidationError(BookingEngineError):
    """Raised for locally recoverable input problems (missing address/phone, invalid coupon, malformed OTP)."""
    pass


class NotFoundError(BookingEngineError):
    """Raised when a booking id is unknown to the repository."""
    pass


class StateConflictError(BookingEngineError):
    """Raised when an action does not match current state (wrong status, stale write, stale coupon, order in flight)."""

    def __init__(self, message: str, current_status: str | None = None) -> None:
        super().__init__(message)
        self.current_status = current_status


class GatewayError(BookingEngineError):
    """Raised when payment creation/verification fails or the user abandons the gateway. No booking exists."""

    def __init__(self, message: str, outcome: str = "failed", retryable: bool = True) -> None:
        super().__init__(message)
        self.outcome = outcome
        self.retryable = retryable


class OtpFailure(str, Enum):
    INVALID = "invalid"
    EXPIRED = "expired"
    ALREADY_USED = "already_used"
    SUPERSEDED = "superseded"
    NOT_ISSUED = "not_issued"
    TOO_MANY_ATTEMPTS = "too_many_attempts"


class OtpError(BookingEngineError):
    """Raised when an OTP cannot be redeemed. `reason` tells the caller whether to resend or retype."""

    def __init__(self, reason: OtpFailure, message: str | None = None, remaining_attempts: int | None = None) -> None:
        super().__init__(message or reason.value.replace("_", " "))
        self.reason = reason
        self.remaining_attempts = remaining_attempts

    @property
    def should_resend(self) -> bool:
        return self.reason in (OtpFailure.EXPIRED, OtpFailure.NOT_ISSUED, OtpFailure.TOO_MANY_ATTEMPTS)

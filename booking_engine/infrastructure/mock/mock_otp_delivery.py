from __future__ import annotations

import logging

from booking_engine.application.ports.otp_delivery import OtpDeliveryPort
from booking_engine.domain.entities.otp import OtpKind


class MockOtpDelivery(OtpDeliveryPort):
    """Keeps delivered codes in an outbox instead of sending an SMS."""

    def __init__(self) -> None:
        self.outbox: list[tuple[str, OtpKind, str]] = []
        self._logger = logging.getLogger(__name__)

    def deliver(self, booking_id: str, kind: OtpKind, code: str) -> None:
        self.outbox.append((booking_id, kind, code))
        self._logger.info("Mock OTP delivered", extra={"booking_id": booking_id, "kind": kind.value})

    def last_code(self, booking_id: str, kind: OtpKind) -> str | None:
        for delivered_id, delivered_kind, code in reversed(self.outbox):
            if delivered_id == booking_id and delivered_kind is kind:
                return code
        return None

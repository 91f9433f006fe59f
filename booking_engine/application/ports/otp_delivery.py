from abc import ABC, abstractmethod

from booking_engine.domain.entities.otp import OtpKind


class OtpDeliveryPort(ABC):
    @abstractmethod
    def deliver(self, booking_id: str, kind: OtpKind, code: str) -> None:
        """Send the code to the customer out of band (SMS/push)."""
        raise NotImplementedError

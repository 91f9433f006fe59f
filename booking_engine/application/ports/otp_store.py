from abc import ABC, abstractmethod

from booking_engine.domain.entities.otp import OtpKind, OtpRecord


class OtpStorePort(ABC):
    @abstractmethod
    def history(self, booking_id: str, kind: OtpKind) -> list[OtpRecord]:
        """All records for the key, oldest generation first."""
        raise NotImplementedError

    @abstractmethod
    def latest(self, booking_id: str, kind: OtpKind) -> OtpRecord | None:
        raise NotImplementedError

    @abstractmethod
    def put(self, record: OtpRecord) -> None:
        """Insert a new generation or replace the record with the same generation."""
        raise NotImplementedError

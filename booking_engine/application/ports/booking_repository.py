from abc import ABC, abstractmethod

from booking_engine.domain.entities.booking import Booking, BookingDraft


class BookingRepositoryPort(ABC):
    @abstractmethod
    def create(self, draft: BookingDraft) -> Booking:
        raise NotImplementedError

    @abstractmethod
    def create_many(self, drafts: list[BookingDraft]) -> list[Booking]:
        """All or nothing: either every draft is stored, or none is and the error propagates."""
        raise NotImplementedError

    @abstractmethod
    def get(self, booking_id: str) -> Booking:
        """Raises NotFoundError for unknown ids."""
        raise NotImplementedError

    @abstractmethod
    def save(self, booking: Booking, expected_version: int) -> Booking:
        """
        Compare-and-set write.

        Stores `booking` with version `expected_version + 1` only if the stored
        version still equals `expected_version`; otherwise raises StateConflictError.
        """
        raise NotImplementedError

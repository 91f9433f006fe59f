from abc import ABC, abstractmethod

from booking_engine.domain.entities.pricing import WalletState


class WalletLedgerPort(ABC):
    @abstractmethod
    def balance(self) -> WalletState:
        """Read-only snapshot of currency credit and coin balance. Debits happen server-side."""
        raise NotImplementedError

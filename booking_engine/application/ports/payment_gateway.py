from abc import ABC, abstractmethod

from booking_engine.domain.entities.payment import GatewayOrder


class PaymentGatewayPort(ABC):
    @abstractmethod
    def create_order(self, amount_minor: int, currency: str) -> GatewayOrder:
        """Create a gateway order for the amount in minor units (paise)."""
        raise NotImplementedError

    @abstractmethod
    def verify(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Server-side signature check. Returns False for an inauthentic payment."""
        raise NotImplementedError

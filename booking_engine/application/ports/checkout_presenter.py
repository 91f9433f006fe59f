from abc import ABC, abstractmethod

from booking_engine.domain.entities.payment import GatewayOrder, GatewayOutcome


class CheckoutPresenterPort(ABC):
    @abstractmethod
    def present(self, order: GatewayOrder, timeout_seconds: float) -> GatewayOutcome:
        """
        Hand the order to the gateway's own checkout UI and block until it reports back.

        Raises TimeoutError if no result arrives within timeout_seconds.
        """
        raise NotImplementedError

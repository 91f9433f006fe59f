from __future__ import annotations

import itertools
import logging

from booking_engine.application.ports.checkout_presenter import CheckoutPresenterPort
from booking_engine.domain.entities.payment import GatewayOrder, GatewayOutcome
from booking_engine.infrastructure.mock.mock_payment_gateway import MockPaymentGateway

SUCCESS = "success"
CANCEL = "cancel"
FAIL = "fail"
TIMEOUT = "timeout"
TAMPER = "tamper"


class MockCheckoutPresenter(CheckoutPresenterPort):
    """
    Stands in for the gateway's hosted checkout.

    `behaviour` picks the customer's action: pay, dismiss the sheet, have the
    payment declined, never answer, or come back with a forged signature.
    """

    def __init__(self, gateway: MockPaymentGateway, behaviour: str = SUCCESS) -> None:
        self._gateway = gateway
        self.behaviour = behaviour
        self._counter = itertools.count(1)
        self.presented: list[GatewayOrder] = []
        self._logger = logging.getLogger(__name__)

    def present(self, order: GatewayOrder, timeout_seconds: float) -> GatewayOutcome:
        self.presented.append(order)
        self._logger.info("Mock checkout presented", extra={"order_id": order.order_id, "status": self.behaviour})

        if self.behaviour == CANCEL:
            return GatewayOutcome.cancelled()
        if self.behaviour == FAIL:
            return GatewayOutcome.failed("card declined")
        if self.behaviour == TIMEOUT:
            raise TimeoutError(f"no gateway confirmation within {timeout_seconds}s")

        payment_id = f"pay_mock_{next(self._counter)}"
        signature = self._gateway.sign(order.order_id, payment_id)
        if self.behaviour == TAMPER:
            signature = "0" * len(signature)
        return GatewayOutcome.success(order.order_id, payment_id, signature)

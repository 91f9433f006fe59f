from __future__ import annotations

import hmac
import itertools
import logging

from booking_engine.application.ports.payment_gateway import PaymentGatewayPort
from booking_engine.core.config import settings
from booking_engine.domain.entities.payment import GatewayOrder


def sign_payment(order_id: str, payment_id: str, key_secret: str) -> str:
    body = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(key_secret.encode("utf-8"), body, "sha256").hexdigest()


class MockPaymentGateway(PaymentGatewayPort):
    def __init__(self, key_secret: str | None = None) -> None:
        self._key_secret = key_secret or settings.RAZORPAY_KEY_SECRET
        self._counter = itertools.count(1)
        self.orders: dict[str, GatewayOrder] = {}
        self._logger = logging.getLogger(__name__)

    def create_order(self, amount_minor: int, currency: str) -> GatewayOrder:
        order = GatewayOrder(order_id=f"order_mock_{next(self._counter)}", amount_minor=amount_minor, currency=currency)
        self.orders[order.order_id] = order
        self._logger.info("Mock gateway order created", extra={"order_id": order.order_id})
        return order

    def verify(self, order_id: str, payment_id: str, signature: str) -> bool:
        if order_id not in self.orders:
            self._logger.warning("Verification for unknown order", extra={"order_id": order_id})
            return False
        expected = sign_payment(order_id, payment_id, self._key_secret)
        return hmac.compare_digest(expected, signature or "")

    def sign(self, order_id: str, payment_id: str) -> str:
        return sign_payment(order_id, payment_id, self._key_secret)

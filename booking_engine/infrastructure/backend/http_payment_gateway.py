from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError as PydanticValidationError

from booking_engine.application.dto.backend_payloads import (
    PaymentOrderResponseDTO,
    PaymentVerifyRequestDTO,
    PaymentVerifyResponseDTO,
)
from booking_engine.application.exceptions import GatewayError
from booking_engine.application.ports.payment_gateway import PaymentGatewayPort
from booking_engine.domain.entities.payment import GatewayOrder
from booking_engine.infrastructure.backend.api_client import BackendApiClient, json_body


class HttpPaymentGateway(PaymentGatewayPort):
    """
    Gateway order/verify through the backend, which holds the gateway secret.

    Raises:
        GatewayError: the backend or gateway is unreachable or answers with garbage.
    """

    def __init__(self, client: BackendApiClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    def create_order(self, amount_minor: int, currency: str) -> GatewayOrder:
        # The backend takes major units and converts to paise itself.
        payload = {"amount": amount_minor / 100, "currency": currency}
        try:
            resp = self._client.post("/payment/order", payload)
            resp.raise_for_status()
            order = PaymentOrderResponseDTO.model_validate(json_body(resp)).to_gateway_order()
        except (httpx.HTTPError, PydanticValidationError) as e:
            self._logger.error("Gateway order creation failed", extra={"error": str(e)})
            raise GatewayError("Failed to initiate payment") from e

        if order.amount_minor != amount_minor:
            self._logger.error("Gateway order amount mismatch", extra={"order_id": order.order_id})
            raise GatewayError("Gateway order amount does not match the bill")
        return order

    def verify(self, order_id: str, payment_id: str, signature: str) -> bool:
        body = PaymentVerifyRequestDTO(
            razorpay_order_id=order_id,
            razorpay_payment_id=payment_id,
            razorpay_signature=signature,
        )
        try:
            resp = self._client.post("/payment/verify", body.model_dump())
        except httpx.HTTPError as e:
            self._logger.error("Payment verification unavailable", extra={"order_id": order_id, "error": str(e)})
            raise GatewayError("Payment verification unavailable") from e

        if resp.status_code >= 500:
            raise GatewayError("Payment verification unavailable")
        if resp.status_code >= 400:
            return False
        try:
            return PaymentVerifyResponseDTO.model_validate(json_body(resp)).success
        except PydanticValidationError as e:
            raise GatewayError("Malformed verification response") from e

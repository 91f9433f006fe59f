from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError as PydanticValidationError

from booking_engine.application.dto.backend_payloads import CouponValidateResponseDTO
from booking_engine.application.exceptions import ValidationError
from booking_engine.application.ports.coupon_service import CouponServicePort
from booking_engine.domain.entities.coupon import CouponValidation
from booking_engine.infrastructure.backend.api_client import BackendApiClient, json_body


class HttpCouponService(CouponServicePort):
    def __init__(self, client: BackendApiClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    def validate(self, code: str, order_amount: float) -> CouponValidation:
        try:
            resp = self._client.post("/coupons/validate", {"code": code, "orderAmount": order_amount})
        except httpx.HTTPError as e:
            self._logger.error("Coupon validation unavailable", extra={"error": str(e)})
            raise ValidationError("Could not validate coupon") from e

        if resp.status_code >= 500:
            raise ValidationError("Could not validate coupon")

        try:
            dto = CouponValidateResponseDTO.model_validate(json_body(resp))
        except PydanticValidationError as e:
            self._logger.error("Malformed coupon response", extra={"error": str(e)})
            raise ValidationError("Could not validate coupon") from e
        return dto.to_validation(code)

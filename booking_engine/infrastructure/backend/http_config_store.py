from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError as PydanticValidationError

from booking_engine.application.dto.backend_payloads import CoinConfigDTO, FeeConfigDTO
from booking_engine.application.ports.config_store import ConfigStorePort
from booking_engine.core.config import settings
from booking_engine.domain.entities.pricing import CoinConfig, FeeConfig
from booking_engine.infrastructure.backend.api_client import BackendApiClient, json_body


class HttpConfigStore(ConfigStorePort):
    def __init__(self, client: BackendApiClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    def fee_config(self) -> FeeConfig:
        try:
            resp = self._client.get("/admin/fees")
            resp.raise_for_status()
            return FeeConfigDTO.model_validate(json_body(resp)).to_fee_config()
        except (httpx.HTTPError, PydanticValidationError) as e:
            self._logger.warning("Fee config unavailable, charging no fees", extra={"error": str(e)})
            return FeeConfig(is_active=False)

    def coin_config(self) -> CoinConfig:
        try:
            resp = self._client.get("/coins/config")
            resp.raise_for_status()
            return CoinConfigDTO.model_validate(json_body(resp)).to_coin_config()
        except (httpx.HTTPError, PydanticValidationError) as e:
            self._logger.warning("Coin config unavailable, using defaults", extra={"error": str(e)})
            return CoinConfig(
                coin_to_rupee_rate=settings.DEFAULT_COIN_TO_RUPEE_RATE,
                max_usage_percentage=settings.DEFAULT_MAX_COIN_USAGE_PERCENTAGE,
            )

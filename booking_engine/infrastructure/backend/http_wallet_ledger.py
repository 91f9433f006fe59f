from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError as PydanticValidationError

from booking_engine.application.dto.backend_payloads import WalletResponseDTO
from booking_engine.application.ports.wallet_ledger import WalletLedgerPort
from booking_engine.domain.entities.pricing import WalletState
from booking_engine.infrastructure.backend.api_client import BackendApiClient, json_body


class HttpWalletLedger(WalletLedgerPort):
    def __init__(self, client: BackendApiClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    def balance(self) -> WalletState:
        try:
            resp = self._client.get("/wallet/")
            resp.raise_for_status()
            return WalletResponseDTO.model_validate(json_body(resp)).to_wallet_state()
        except (httpx.HTTPError, PydanticValidationError) as e:
            # Balances we cannot see cannot be spent.
            self._logger.warning("Wallet balance unavailable, using zero balances", extra={"error": str(e)})
            return WalletState()

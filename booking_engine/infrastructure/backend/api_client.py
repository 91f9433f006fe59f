from __future__ import annotations

import logging
from typing import Any

import httpx

from booking_engine.core.config import settings


class BackendApiClient:
    """Thin httpx wrapper for the booking backend; adapters decide what a status code means."""

    def __init__(
        self,
        base_url: str | None = None,
        api_token: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = (base_url or settings.BACKEND_BASE_URL).rstrip("/")
        self._api_token = api_token if api_token is not None else settings.BACKEND_API_TOKEN
        self._client = client or httpx.Client(timeout=timeout or settings.HTTP_TIMEOUT_SECONDS)
        self._logger = logging.getLogger(__name__)

    def get(self, path: str) -> httpx.Response:
        return self._request("GET", path)

    def post(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        return self._request("POST", path, json=payload)

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self._base_url}/{path.lstrip('/')}"
        headers = {"Authorization": f"Bearer {self._api_token}"} if self._api_token else {}
        resp = self._client.request(method, url, headers=headers, **kwargs)
        if resp.status_code >= 500:
            self._logger.error(
                "Backend request failed",
                extra={"status": resp.status_code, "error": f"{method} {path}"},
            )
        return resp


def json_body(resp: httpx.Response) -> dict[str, Any]:
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}

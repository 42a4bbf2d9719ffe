"""Exchange-rate provider over HTTP."""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from omnibar.config.defaults import DEFAULT_RATES_API_URL

_ERROR_PAYLOAD: dict[str, Any] = {"result": "error", "rates": {}}


class HttpRateProvider:
    """
    Fetches ``{api_url}/{base}`` from an open.er-api.com compatible endpoint.

    Only the ``result`` and ``rates`` fields of the response are consumed.
    Transport and parse failures are logged and reported as an error payload.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_RATES_API_URL,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def fetch_exchange_rates(self, base_currency: str) -> dict[str, Any]:
        url = f"{self.api_url}/{base_currency.upper()}"
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout_seconds) as client:
                response = await client.get(url)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Exchange rate request to {url} failed: {e}")
            return dict(_ERROR_PAYLOAD)

        if not isinstance(data, dict):
            logger.error(f"Exchange rate response from {url} is not an object")
            return dict(_ERROR_PAYLOAD)
        rates = data.get("rates")
        return {
            "result": data.get("result", "error"),
            "rates": rates if isinstance(rates, dict) else {},
        }

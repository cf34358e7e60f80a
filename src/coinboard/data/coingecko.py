"""CoinGecko market listing provider."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import requests

from coinboard.data.base import CancelToken, FetchCancelled, FetchError, FetchOutcome, FetchSuccess
from coinboard.data.mapper import to_entities
from coinboard.domain.models import RawMarketRecord, SessionParameters
from coinboard.errors import (
    MalformedResponseError,
    MarketDataError,
    TransportError,
    UpstreamError,
)

logger = logging.getLogger("coinboard.data")

UNAVAILABLE_MESSAGE = "Wasn't possible to get data. CoinGecko API not working"


class CoinGeckoMarketData:
    """Fetch listing pages with 7-day sparklines from CoinGecko's markets endpoint."""

    def __init__(
        self,
        base_url: str = "https://api.coingecko.com/api/v3",
        api_key: str = "",
        timeout: float = 20,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if api_key:
            self.session.headers.update({"x-cg-demo-api-key": api_key})

    async def fetch(self, params: SessionParameters, cancel_token: CancelToken) -> FetchOutcome:
        try:
            payload = await asyncio.to_thread(self._request, params.to_query())
        except MarketDataError as exc:
            if cancel_token.cancelled:
                return FetchCancelled()
            logger.debug("market fetch failed (%s): %s", exc.kind, exc)
            return FetchError(reason=UNAVAILABLE_MESSAGE, kind=exc.kind)
        if cancel_token.cancelled:
            return FetchCancelled()
        try:
            records = self._parse_records(payload)
        except MalformedResponseError as exc:
            logger.debug("market payload rejected: %s", exc)
            return FetchError(reason=UNAVAILABLE_MESSAGE, kind=exc.kind)
        return FetchSuccess(entities=to_entities(records, params.currency))

    def close(self) -> None:
        self.session.close()

    def _request(self, query: dict[str, str]) -> Any:
        url = f"{self.base_url}/coins/markets"
        try:
            response = self.session.get(url, params=query, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"CoinGecko request failed: {exc}") from exc
        if not 200 <= response.status_code < 300:
            detail = response.text.strip()[:200]
            raise UpstreamError(response.status_code, detail)
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError("CoinGecko response is not valid JSON") from exc

    @staticmethod
    def _parse_records(payload: Any) -> list[RawMarketRecord]:
        if not isinstance(payload, list):
            raise MalformedResponseError("CoinGecko markets payload must be a list")
        return [RawMarketRecord.from_payload(item) for item in payload]

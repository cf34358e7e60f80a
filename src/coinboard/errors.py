"""Custom exceptions for clearer error handling across the dashboard."""

from __future__ import annotations


class CoinboardError(Exception):
    """Base exception for all dashboard-specific errors."""


class ConfigError(CoinboardError):
    """Raised when environment configuration is invalid or missing."""


class MarketDataError(CoinboardError):
    """Raised when market data retrieval fails."""

    kind = "market_data"


class TransportError(MarketDataError):
    """Raised when the upstream API cannot be reached or times out."""

    kind = "transport"


class UpstreamError(MarketDataError):
    """Raised when the upstream API answers with a non-success status."""

    kind = "upstream"

    def __init__(self, status_code: int, detail: str = "") -> None:
        message = f"upstream returned {status_code}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(MarketDataError):
    """Raised when a response is missing required fields or has the wrong shape."""

    kind = "malformed"

"""Core market data domain models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from coinboard.errors import MalformedResponseError
from coinboard.options import PAGE_SIZES, CurrencyCode, SortOrder, parse_currency, parse_sort_order


def _require_text(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise MalformedResponseError(f"record field '{key}' must be a string")
    return value


def _require_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedResponseError(f"record field '{field_name}' must be numeric")
    return float(value)


@dataclass(frozen=True)
class RawMarketRecord:
    """One upstream market row.

    ``sparkline`` is the 7-day hourly price series, oldest sample first.
    """

    id: str
    name: str
    image: str
    current_price: float
    circulating_supply: float
    sparkline: tuple[float, ...]

    @classmethod
    def from_payload(cls, payload: Any) -> RawMarketRecord:
        """Parse a JSON object, ignoring fields the dashboard does not use."""
        if not isinstance(payload, Mapping):
            raise MalformedResponseError("market record must be an object")
        sparkline = payload.get("sparkline_in_7d")
        if not isinstance(sparkline, Mapping) or not isinstance(sparkline.get("price"), list):
            raise MalformedResponseError("record field 'sparkline_in_7d.price' must be a list")
        prices = tuple(
            _require_number(sample, "sparkline_in_7d.price") for sample in sparkline["price"]
        )
        return cls(
            id=_require_text(payload, "id"),
            name=_require_text(payload, "name"),
            image=_require_text(payload, "image"),
            current_price=_require_number(payload.get("current_price"), "current_price"),
            circulating_supply=_require_number(
                payload.get("circulating_supply"), "circulating_supply"
            ),
            sparkline=prices,
        )


@dataclass(frozen=True)
class MarketEntity:
    """Display row priced in the currency of the request that fetched it."""

    name: str
    image: str
    currency: CurrencyCode
    current_price: float
    circulating_supply: float
    time_series: tuple[float, ...]


@dataclass(frozen=True)
class TimeSeriesPoint:
    """Single labelled price sample."""

    timestamp: datetime
    price: float


@dataclass(frozen=True)
class SessionParameters:
    """User-selected listing parameters driving each fetch."""

    currency: CurrencyCode = CurrencyCode.USD
    sort_order: SortOrder = SortOrder.MARKET_CAP_DESC
    page: int = 1
    page_size: int = 10

    def __post_init__(self) -> None:
        object.__setattr__(self, "currency", parse_currency(self.currency))
        object.__setattr__(self, "sort_order", parse_sort_order(self.sort_order))
        if isinstance(self.page, bool) or not isinstance(self.page, int) or self.page < 1:
            raise ValueError("page must be a positive integer")
        if self.page_size not in PAGE_SIZES:
            raise ValueError(f"page_size must be one of {', '.join(map(str, PAGE_SIZES))}")

    def to_query(self) -> dict[str, str]:
        """Return upstream query parameters, sparkline series included."""
        return {
            "vs_currency": self.currency.value.lower(),
            "order": self.sort_order.value,
            "per_page": str(self.page_size),
            "page": str(self.page),
            "sparkline": "true",
        }

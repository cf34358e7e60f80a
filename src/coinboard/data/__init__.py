"""Market data source implementations."""

from .base import (
    CancelToken,
    FetchCancelled,
    FetchError,
    FetchOutcome,
    FetchSuccess,
    MarketDataSource,
)
from .coingecko import CoinGeckoMarketData
from .mapper import to_entities, to_entity

__all__ = [
    "CancelToken",
    "CoinGeckoMarketData",
    "FetchCancelled",
    "FetchError",
    "FetchOutcome",
    "FetchSuccess",
    "MarketDataSource",
    "to_entities",
    "to_entity",
]

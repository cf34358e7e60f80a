"""Domain models and fetch state types."""

from .models import MarketEntity, RawMarketRecord, SessionParameters, TimeSeriesPoint
from .state import Displaying, Failed, FetchState, Idle, Loading

__all__ = [
    "Displaying",
    "Failed",
    "FetchState",
    "Idle",
    "Loading",
    "MarketEntity",
    "RawMarketRecord",
    "SessionParameters",
    "TimeSeriesPoint",
]

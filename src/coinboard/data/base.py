"""Market data source contract and fetch outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from coinboard.domain.models import MarketEntity, SessionParameters


class CancelToken:
    """Cooperative cancellation flag shared by a controller and one fetch."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass(frozen=True)
class FetchSuccess:
    """Entities in upstream order, tagged with the requesting currency."""

    entities: tuple[MarketEntity, ...]


@dataclass(frozen=True)
class FetchError:
    """Recovered market data failure.

    ``kind`` is ``transport``, ``upstream`` or ``malformed`` and is only
    used for diagnostics.
    """

    reason: str
    kind: str


@dataclass(frozen=True)
class FetchCancelled:
    """Fetch whose token was cancelled before it resolved."""


FetchOutcome = FetchSuccess | FetchError | FetchCancelled


class MarketDataSource(Protocol):
    """Interface for cancellable listing retrieval."""

    async def fetch(self, params: SessionParameters, cancel_token: CancelToken) -> FetchOutcome:
        """Return the listing page selected by ``params``."""

    def close(self) -> None:
        """Release transport resources."""

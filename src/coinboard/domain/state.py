"""Fetch state variants observed by rendering surfaces."""

from __future__ import annotations

from dataclasses import dataclass

from .models import MarketEntity, SessionParameters


@dataclass(frozen=True)
class Idle:
    """No fetch has been issued yet."""


@dataclass(frozen=True)
class Loading:
    """The latest fetch is in flight."""

    params: SessionParameters
    sequence: int


@dataclass(frozen=True)
class Displaying:
    """Entities of the latest successful fetch."""

    params: SessionParameters
    entities: tuple[MarketEntity, ...]


@dataclass(frozen=True)
class Failed:
    """The latest fetch failed; terminal until a parameter changes."""

    params: SessionParameters
    reason: str
    kind: str


FetchState = Idle | Loading | Displaying | Failed

"""Raw upstream record to display entity mapping."""

from __future__ import annotations

from collections.abc import Iterable

from coinboard.domain.models import MarketEntity, RawMarketRecord
from coinboard.options import CurrencyCode


def to_entity(record: RawMarketRecord, currency: CurrencyCode) -> MarketEntity:
    """Map one record, tagging it with the currency the request was made in."""
    return MarketEntity(
        name=record.name,
        image=record.image,
        currency=currency,
        current_price=record.current_price,
        circulating_supply=record.circulating_supply,
        time_series=record.sparkline,
    )


def to_entities(
    records: Iterable[RawMarketRecord],
    currency: CurrencyCode,
) -> tuple[MarketEntity, ...]:
    """Map records preserving upstream order."""
    return tuple(to_entity(record, currency) for record in records)

"""Locale-aware currency formatting."""

from __future__ import annotations

from functools import lru_cache

from babel import Locale, UnknownLocaleError
from babel.numbers import format_currency as babel_format_currency

from coinboard.options import CURRENCIES, CurrencyCode, parse_currency


@lru_cache(maxsize=None)
def resolve_locale(tag: str) -> Locale:
    """Resolve a BCP 47 tag, falling back to its language when CLDR has no data for it."""
    try:
        return Locale.parse(tag, sep="-")
    except (UnknownLocaleError, ValueError):
        return Locale.parse(tag.split("-", 1)[0])


def format_currency(amount: float, currency: CurrencyCode | str) -> str:
    """Format ``amount`` in the fixed locale of ``currency``."""
    option = CURRENCIES[parse_currency(currency)]
    return babel_format_currency(
        amount,
        option.code.value,
        locale=resolve_locale(option.locale),
        currency_digits=True,
    )

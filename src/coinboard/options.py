"""Static option tables shared by the controller and rendering surfaces."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum


class CurrencyCode(StrEnum):
    """Supported display currencies."""

    USD = "USD"
    EUR = "EUR"
    BRL = "BRL"


class SortOrder(StrEnum):
    """Upstream sort keys."""

    MARKET_CAP_ASC = "market_cap_asc"
    MARKET_CAP_DESC = "market_cap_desc"


@dataclass(frozen=True)
class CurrencyOption:
    """Display currency with the fixed locale its prices are formatted in."""

    code: CurrencyCode
    label: str
    locale: str


CURRENCIES: dict[CurrencyCode, CurrencyOption] = {
    CurrencyCode.USD: CurrencyOption(CurrencyCode.USD, "USD", "en-US"),
    CurrencyCode.EUR: CurrencyOption(CurrencyCode.EUR, "EUR", "en-EU"),
    CurrencyCode.BRL: CurrencyOption(CurrencyCode.BRL, "BRL", "pt-BR"),
}

SORT_ORDER_LABELS: dict[SortOrder, str] = {
    SortOrder.MARKET_CAP_ASC: "Market cap ascending",
    SortOrder.MARKET_CAP_DESC: "Market cap descending",
}

PAGE_SIZES: tuple[int, ...] = (5, 10, 20, 50, 100)

# Pagination total advertised to the table; the upstream listing is open-ended.
TOTAL_ITEMS = 1000


def page_count(page_size: int) -> int:
    """Return the number of pages available for a page size."""
    if page_size not in PAGE_SIZES:
        raise ValueError(f"page_size must be one of {', '.join(map(str, PAGE_SIZES))}")
    return math.ceil(TOTAL_ITEMS / page_size)


def parse_currency(value: str | CurrencyCode) -> CurrencyCode:
    """Normalize a currency code string."""
    try:
        return CurrencyCode(str(value).strip().upper())
    except ValueError as exc:
        supported = ", ".join(code.value for code in CurrencyCode)
        raise ValueError(f"currency must be one of {supported}") from exc


def parse_sort_order(value: str | SortOrder) -> SortOrder:
    """Normalize a sort order string."""
    try:
        return SortOrder(str(value).strip().lower())
    except ValueError as exc:
        supported = ", ".join(order.value for order in SortOrder)
        raise ValueError(f"sort_order must be one of {supported}") from exc

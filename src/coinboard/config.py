"""Environment and CLI runtime configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Self

from dotenv import load_dotenv

from coinboard.domain.models import SessionParameters
from coinboard.errors import ConfigError
from coinboard.options import PAGE_SIZES, CurrencyCode, SortOrder, parse_currency, parse_sort_order

DEFAULT_BASE_URL = "https://api.coingecko.com/api/v3"


def parse_positive_float(value: str | None, default: float, *, field_name: str) -> float:
    """Parse a positive number from an env string."""
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value.strip())
    except ValueError as exc:
        raise ConfigError(f"{field_name} must be a number") from exc
    if parsed <= 0:
        raise ConfigError(f"{field_name} must be positive")
    return parsed


def parse_page_size(value: str | None, default: int) -> int:
    """Parse a page size from an env string."""
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError as exc:
        raise ConfigError("DEFAULT_PAGE_SIZE must be an integer") from exc


@dataclass(frozen=True)
class Settings:
    """Immutable runtime settings."""

    base_url: str = DEFAULT_BASE_URL
    api_key: str = ""
    request_timeout_seconds: float = 20.0
    currency: CurrencyCode = CurrencyCode.USD
    sort_order: SortOrder = SortOrder.MARKET_CAP_DESC
    page_size: int = 10
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Self:
        """Create settings from environment variables."""
        load_dotenv()
        try:
            currency = parse_currency(os.getenv("DEFAULT_CURRENCY", "USD"))
            sort_order = parse_sort_order(os.getenv("DEFAULT_SORT_ORDER", "market_cap_desc"))
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        raw = cls(
            base_url=str(os.getenv("COINGECKO_BASE_URL", DEFAULT_BASE_URL)).strip(),
            api_key=str(os.getenv("COINGECKO_API_KEY", "")).strip(),
            request_timeout_seconds=parse_positive_float(
                os.getenv("REQUEST_TIMEOUT_SECONDS"),
                20.0,
                field_name="REQUEST_TIMEOUT_SECONDS",
            ),
            currency=currency,
            sort_order=sort_order,
            page_size=parse_page_size(os.getenv("DEFAULT_PAGE_SIZE"), 10),
            log_level=str(os.getenv("LOG_LEVEL", "INFO")).strip().upper(),
        )
        return raw.validate()

    def with_overrides(self, **kwargs: object) -> Self:
        """Return a new settings object with updated values."""
        overrides = dict(kwargs)
        try:
            if "currency" in overrides:
                overrides["currency"] = parse_currency(str(overrides["currency"]))
            if "sort_order" in overrides:
                overrides["sort_order"] = parse_sort_order(str(overrides["sort_order"]))
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        updated = replace(self, **overrides)
        return updated.validate()

    def initial_parameters(self, page: int = 1) -> SessionParameters:
        """Return the session parameters the first fetch is issued with."""
        return SessionParameters(
            currency=self.currency,
            sort_order=self.sort_order,
            page=page,
            page_size=self.page_size,
        )

    def validate(self) -> Self:
        """Validate settings fields."""
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigError("COINGECKO_BASE_URL must be an http(s) URL")
        if self.request_timeout_seconds <= 0:
            raise ConfigError("REQUEST_TIMEOUT_SECONDS must be positive")
        if self.page_size not in PAGE_SIZES:
            supported = ", ".join(map(str, PAGE_SIZES))
            raise ConfigError(f"DEFAULT_PAGE_SIZE must be one of {supported}")
        return self

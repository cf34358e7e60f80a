"""Concise human-readable dashboard logger."""

from __future__ import annotations

import logging

from coinboard.domain.models import SessionParameters


class DashboardLogger:
    """Console logger with fixed line types."""

    def __init__(self, level: str = "INFO") -> None:
        self._logger = logging.getLogger("coinboard")
        self._logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        self._logger.propagate = False
        if not self._logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("%(asctime)s | %(message)s", "%Y-%m-%d %H:%M:%S")
            handler.setFormatter(formatter)
            self._logger.addHandler(handler)

    def fetch_issued(self, sequence: int, params: SessionParameters) -> None:
        self._logger.info(
            "fetch #%s | %s | %s | page %s | size %s",
            sequence,
            params.currency.value,
            params.sort_order.value,
            params.page,
            params.page_size,
        )

    def fetch_applied(self, sequence: int, count: int) -> None:
        self._logger.info("applied #%s | %s rows", sequence, count)

    def fetch_discarded(self, sequence: int, latest: int, reason: str) -> None:
        self._logger.debug("discarded #%s | latest #%s | %s", sequence, latest, reason)

    def fetch_failed(self, sequence: int, kind: str, reason: str) -> None:
        self._logger.warning("failed #%s | %s | %s", sequence, kind, reason)

    def selection_cleared(self, index: int, count: int) -> None:
        self._logger.info("selection cleared | index %s | rows %s", index, count)

    def error(self, message: str) -> None:
        self._logger.error("error | %s", message)

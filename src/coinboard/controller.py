"""Session state and fetch sequencing for the market dashboard."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime

from coinboard.data.base import (
    CancelToken,
    FetchCancelled,
    FetchError,
    FetchOutcome,
    FetchSuccess,
    MarketDataSource,
)
from coinboard.data.coingecko import UNAVAILABLE_MESSAGE
from coinboard.domain.models import MarketEntity, SessionParameters
from coinboard.domain.state import Displaying, Failed, FetchState, Idle, Loading
from coinboard.formatting import format_currency
from coinboard.logging.logger import DashboardLogger
from coinboard.options import (
    CurrencyCode,
    SortOrder,
    page_count,
    parse_currency,
    parse_sort_order,
)
from coinboard.timeseries import Resolution, TimeSeriesWindow, window


class DashboardController:
    """Owns one user session: parameters, fetch state and detail selection.

    Every parameter change issues a fetch tagged with the next sequence
    number. A resolved fetch is applied only while its number is still the
    latest issued and its token was not cancelled, so a slow, superseded
    request can never overwrite a fresher result. All methods run on the
    event loop thread; intents that issue a fetch need a running loop.
    """

    def __init__(
        self,
        source: MarketDataSource,
        params: SessionParameters | None = None,
        logger: DashboardLogger | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.source = source
        self._params = params or SessionParameters()
        self._logger = logger or DashboardLogger()
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._state: FetchState = Idle()
        self._selection: int | None = None
        self._sequence = 0
        self._token: CancelToken | None = None
        self._task: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def params(self) -> SessionParameters:
        return self._params

    @property
    def state(self) -> FetchState:
        return self._state

    @property
    def selection(self) -> int | None:
        return self._selection

    @property
    def sequence(self) -> int:
        """Sequence number of the most recently issued fetch."""
        return self._sequence

    @property
    def entities(self) -> tuple[MarketEntity, ...]:
        if isinstance(self._state, Displaying):
            return self._state.entities
        return ()

    @property
    def selected_entity(self) -> MarketEntity | None:
        if self._selection is None:
            return None
        entities = self.entities
        if not 0 <= self._selection < len(entities):
            return None
        return entities[self._selection]

    def start(self) -> asyncio.Task[None]:
        """Issue a fetch with the current parameters."""
        return self._issue(self._params)

    def set_currency(self, currency: CurrencyCode | str) -> asyncio.Task[None] | None:
        return self._update(currency=parse_currency(currency))

    def set_sort_order(self, sort_order: SortOrder | str) -> asyncio.Task[None] | None:
        return self._update(sort_order=parse_sort_order(sort_order))

    def set_page(self, page: int) -> asyncio.Task[None] | None:
        return self._update(page=page)

    def set_page_size(self, page_size: int) -> asyncio.Task[None] | None:
        """Change the page size, keeping the page when it still exists."""
        page = min(self._params.page, page_count(page_size))
        return self._update(page=page, page_size=page_size)

    def change_page(self, page: int, page_size: int) -> asyncio.Task[None] | None:
        """Apply a pagination change that may move both page and page size."""
        return self._update(page=page, page_size=page_size)

    def cancel_pending(self) -> None:
        """Invalidate the in-flight fetch without leaving the loading state."""
        if self._token is not None:
            self._token.cancel()

    def select(self, index: int) -> bool:
        """Show the detail chart of a displayed row. Returns False when refused."""
        if not isinstance(self._state, Displaying):
            return False
        if not 0 <= index < len(self._state.entities):
            return False
        self._selection = index
        return True

    def clear_selection(self) -> None:
        self._selection = None

    def sparkline(self, index: int) -> TimeSeriesWindow:
        """Daily window of a displayed row's raw series."""
        return window(self.entities[index].time_series, Resolution.DAILY, now=self._clock())

    def detail_window(self) -> TimeSeriesWindow | None:
        """Hourly window of the selected entity, or None without a selection."""
        entity = self.selected_entity
        if entity is None:
            return None
        return window(entity.time_series, Resolution.HOURLY, now=self._clock())

    def formatted_price(self, index: int) -> str:
        entity = self.entities[index]
        return format_currency(entity.current_price, entity.currency)

    async def wait(self) -> FetchState:
        """Wait until the latest issued fetch has resolved."""
        while self._task is not None and not self._task.done():
            await self._task
        return self._state

    def close(self) -> None:
        self.cancel_pending()
        self.source.close()

    def _update(self, **changes: object) -> asyncio.Task[None] | None:
        params = replace(self._params, **changes)
        if params == self._params:
            return None
        return self._issue(params)

    def _issue(self, params: SessionParameters) -> asyncio.Task[None]:
        loop = asyncio.get_running_loop()
        self.cancel_pending()
        self._sequence += 1
        sequence = self._sequence
        token = CancelToken()
        self._params = params
        self._token = token
        self._state = Loading(params=params, sequence=sequence)
        self._logger.fetch_issued(sequence, params)
        task = loop.create_task(self._run(sequence, params, token))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._task = task
        return task

    async def _run(self, sequence: int, params: SessionParameters, token: CancelToken) -> None:
        try:
            outcome = await self.source.fetch(params, token)
        except Exception as exc:
            self._logger.error(f"market data source raised: {exc}")
            outcome = FetchError(reason=UNAVAILABLE_MESSAGE, kind="unexpected")
        self._apply(sequence, params, token, outcome)

    def _apply(
        self,
        sequence: int,
        params: SessionParameters,
        token: CancelToken,
        outcome: FetchOutcome,
    ) -> None:
        if sequence != self._sequence:
            self._logger.fetch_discarded(sequence, self._sequence, "superseded")
            return
        if token.cancelled or isinstance(outcome, FetchCancelled):
            self._logger.fetch_discarded(sequence, self._sequence, "cancelled")
            return
        self._token = None
        if isinstance(outcome, FetchSuccess):
            self._state = Displaying(params=params, entities=outcome.entities)
            self._logger.fetch_applied(sequence, len(outcome.entities))
            self._revalidate_selection()
            return
        self._state = Failed(params=params, reason=outcome.reason, kind=outcome.kind)
        self._logger.fetch_failed(sequence, outcome.kind, outcome.reason)
        self._selection = None

    def _revalidate_selection(self) -> None:
        if self._selection is None:
            return
        count = len(self.entities)
        if self._selection >= count:
            self._logger.selection_cleared(self._selection, count)
            self._selection = None

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Any

import pytest

from coinboard.controller import DashboardController
from coinboard.data.base import (
    CancelToken,
    FetchError,
    FetchOutcome,
    FetchSuccess,
)
from coinboard.data.coingecko import CoinGeckoMarketData
from coinboard.domain.models import MarketEntity, SessionParameters
from coinboard.domain.state import Displaying, Failed, Idle, Loading
from coinboard.logging.logger import DashboardLogger
from coinboard.options import CurrencyCode, SortOrder

NOW = datetime(2026, 3, 2, 9, 30, tzinfo=UTC)


def _entities(count: int, currency: CurrencyCode = CurrencyCode.USD) -> tuple[MarketEntity, ...]:
    return tuple(
        MarketEntity(
            name=f"{currency.value} coin {index}",
            image=f"https://assets.example/{index}.png",
            currency=currency,
            current_price=10.0 * (index + 1),
            circulating_supply=1000.0,
            time_series=tuple(float(sample) for sample in range(168)),
        )
        for index in range(count)
    )


class GatedSource:
    """Each fetch blocks until the test releases it with an outcome."""

    def __init__(self) -> None:
        self.calls: list[tuple[SessionParameters, CancelToken]] = []
        self._gates: list[asyncio.Event] = []
        self._outcomes: dict[int, FetchOutcome] = {}
        self.closed = False

    async def fetch(self, params: SessionParameters, cancel_token: CancelToken) -> FetchOutcome:
        index = len(self.calls)
        gate = asyncio.Event()
        self.calls.append((params, cancel_token))
        self._gates.append(gate)
        await gate.wait()
        return self._outcomes[index]

    def release(self, index: int, outcome: FetchOutcome) -> None:
        self._outcomes[index] = outcome
        self._gates[index].set()

    def close(self) -> None:
        self.closed = True


class RaisingSource:
    async def fetch(self, params: SessionParameters, cancel_token: CancelToken) -> FetchOutcome:
        raise RuntimeError("boom")

    def close(self) -> None:
        return None


async def _until_calls(source: GatedSource, count: int) -> None:
    while len(source.calls) < count:
        await asyncio.sleep(0)


def _controller(source: Any, params: SessionParameters | None = None) -> DashboardController:
    return DashboardController(
        source,
        params=params,
        logger=DashboardLogger(level="WARNING"),
        clock=lambda: NOW,
    )


async def _displaying(source: GatedSource, count: int) -> DashboardController:
    controller = _controller(source)
    task = controller.start()
    await _until_calls(source, 1)
    source.release(0, FetchSuccess(_entities(count)))
    await task
    return controller


def test_controller_starts_idle() -> None:
    controller = _controller(GatedSource())

    assert controller.state == Idle()
    assert controller.entities == ()
    assert controller.selection is None
    assert controller.select(0) is False


def test_parameter_change_transitions_to_loading_with_new_sequence() -> None:
    async def scenario() -> None:
        source = GatedSource()
        controller = _controller(source)
        controller.start()
        controller.set_currency("EUR")

        assert controller.sequence == 2
        assert controller.state == Loading(
            params=SessionParameters(currency=CurrencyCode.EUR),
            sequence=2,
        )
        await _until_calls(source, 2)
        assert source.calls[0][1].cancelled is True
        assert source.calls[1][1].cancelled is False
        assert source.calls[1][0].currency is CurrencyCode.EUR

    asyncio.run(scenario())


def test_out_of_order_resolution_keeps_latest_request() -> None:
    async def scenario() -> DashboardController:
        source = GatedSource()
        controller = _controller(source)
        first = controller.start()
        second = controller.set_currency(CurrencyCode.EUR)
        await _until_calls(source, 2)

        source.release(1, FetchSuccess(_entities(3, CurrencyCode.EUR)))
        await second
        source.release(0, FetchSuccess(_entities(10, CurrencyCode.USD)))
        await first
        return controller

    controller = asyncio.run(scenario())

    assert isinstance(controller.state, Displaying)
    assert len(controller.entities) == 3
    assert {entity.currency for entity in controller.entities} == {CurrencyCode.EUR}
    assert controller.state.params.currency is CurrencyCode.EUR


def test_stale_failure_does_not_replace_fresh_result() -> None:
    async def scenario() -> DashboardController:
        source = GatedSource()
        controller = _controller(source)
        first = controller.start()
        second = controller.set_sort_order(SortOrder.MARKET_CAP_ASC)
        await _until_calls(source, 2)

        source.release(1, FetchSuccess(_entities(2)))
        await second
        source.release(0, FetchError(reason="down", kind="transport"))
        await first
        return controller

    controller = asyncio.run(scenario())

    assert isinstance(controller.state, Displaying)
    assert len(controller.entities) == 2


def test_cancelled_fetch_resolution_leaves_state_loading() -> None:
    async def scenario() -> DashboardController:
        source = GatedSource()
        controller = _controller(source)
        task = controller.start()
        await _until_calls(source, 1)

        controller.cancel_pending()
        source.release(0, FetchSuccess(_entities(5)))
        await task
        return controller

    controller = asyncio.run(scenario())

    assert isinstance(controller.state, Loading)
    assert controller.entities == ()


def test_selection_cleared_when_list_shrinks_below_index() -> None:
    async def scenario() -> DashboardController:
        source = GatedSource()
        controller = await _displaying(source, 5)
        assert controller.select(3) is True
        assert controller.selected_entity == controller.entities[3]

        task = controller.set_page(2)
        await _until_calls(source, 2)
        source.release(1, FetchSuccess(_entities(2)))
        await task
        return controller

    controller = asyncio.run(scenario())

    assert len(controller.entities) == 2
    assert controller.selection is None
    assert controller.selected_entity is None
    assert controller.detail_window() is None


def test_selection_kept_when_index_still_resolves() -> None:
    async def scenario() -> DashboardController:
        source = GatedSource()
        controller = await _displaying(source, 5)
        controller.select(1)

        task = controller.set_currency("BRL")
        await _until_calls(source, 2)
        source.release(1, FetchSuccess(_entities(5, CurrencyCode.BRL)))
        await task
        return controller

    controller = asyncio.run(scenario())

    assert controller.selection == 1
    assert controller.selected_entity is not None
    assert controller.selected_entity.currency is CurrencyCode.BRL


def test_select_is_guarded_by_state_and_bounds() -> None:
    async def scenario() -> None:
        source = GatedSource()
        controller = await _displaying(source, 3)

        assert controller.select(3) is False
        assert controller.select(-1) is False
        assert controller.selection is None

        controller.set_page(4)
        assert controller.select(0) is False

    asyncio.run(scenario())


def test_selection_does_not_fetch_and_clear_keeps_state() -> None:
    async def scenario() -> tuple[DashboardController, GatedSource]:
        source = GatedSource()
        controller = await _displaying(source, 3)
        controller.select(2)
        controller.clear_selection()
        return controller, source

    controller, source = asyncio.run(scenario())

    assert len(source.calls) == 1
    assert controller.selection is None
    assert isinstance(controller.state, Displaying)


def test_detail_window_is_hourly_and_sparkline_is_daily() -> None:
    async def scenario() -> DashboardController:
        controller = await _displaying(GatedSource(), 3)
        controller.select(0)
        return controller

    controller = asyncio.run(scenario())

    detail = controller.detail_window()
    assert detail is not None
    assert len(list(detail)) == 168
    assert len(list(controller.sparkline(0))) == 7
    assert detail.anchor == datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


def test_formatted_price_uses_entity_currency() -> None:
    async def scenario() -> DashboardController:
        return await _displaying(GatedSource(), 2)

    controller = asyncio.run(scenario())

    assert controller.formatted_price(1) == "$20.00"


def test_failure_is_terminal_until_parameter_change() -> None:
    async def scenario() -> tuple[DashboardController, GatedSource]:
        source = GatedSource()
        controller = _controller(source)
        task = controller.start()
        await _until_calls(source, 1)
        source.release(0, FetchError(reason="CoinGecko down", kind="upstream"))
        await task
        assert controller.state == Failed(
            params=SessionParameters(),
            reason="CoinGecko down",
            kind="upstream",
        )
        for _ in range(5):
            await asyncio.sleep(0)
        assert len(source.calls) == 1

        retry = controller.set_page_size(20)
        assert isinstance(controller.state, Loading)
        await _until_calls(source, 2)
        source.release(1, FetchSuccess(_entities(20)))
        await retry
        return controller, source

    controller, _source = asyncio.run(scenario())

    assert isinstance(controller.state, Displaying)
    assert len(controller.entities) == 20


def test_unchanged_parameter_does_not_refetch() -> None:
    async def scenario() -> DashboardController:
        controller = await _displaying(GatedSource(), 2)
        assert controller.set_currency("usd") is None
        assert controller.set_page(1) is None
        assert controller.change_page(1, 10) is None
        return controller

    controller = asyncio.run(scenario())

    assert controller.sequence == 1
    assert isinstance(controller.state, Displaying)


def test_invalid_parameters_raise_without_state_change() -> None:
    async def scenario() -> None:
        controller = await _displaying(GatedSource(), 2)

        with pytest.raises(ValueError):
            controller.set_page(0)
        with pytest.raises(ValueError):
            controller.set_page_size(7)
        with pytest.raises(ValueError):
            controller.set_currency("JPY")

        assert controller.sequence == 1
        assert isinstance(controller.state, Displaying)

    asyncio.run(scenario())


def test_page_size_change_clamps_page_to_last_available() -> None:
    async def scenario() -> SessionParameters:
        source = GatedSource()
        controller = _controller(source, SessionParameters(page=150, page_size=5))
        controller.set_page_size(100)
        return controller.params

    params = asyncio.run(scenario())

    assert (params.page, params.page_size) == (10, 100)


def test_change_page_updates_page_and_size_together() -> None:
    async def scenario() -> DashboardController:
        source = GatedSource()
        controller = _controller(source)
        controller.change_page(3, 50)
        return controller

    controller = asyncio.run(scenario())

    assert (controller.params.page, controller.params.page_size) == (3, 50)
    assert controller.sequence == 1


def test_unexpected_source_exception_becomes_failure() -> None:
    async def scenario() -> DashboardController:
        controller = _controller(RaisingSource())
        await controller.start()
        return controller

    controller = asyncio.run(scenario())

    assert isinstance(controller.state, Failed)
    assert controller.state.kind == "unexpected"


def test_wait_follows_superseding_fetches() -> None:
    async def scenario() -> DashboardController:
        source = GatedSource()
        controller = _controller(source)
        controller.start()
        controller.set_currency("EUR")
        await _until_calls(source, 2)
        source.release(0, FetchSuccess(_entities(1)))
        source.release(1, FetchSuccess(_entities(4, CurrencyCode.EUR)))
        await controller.wait()
        return controller

    controller = asyncio.run(scenario())

    assert len(controller.entities) == 4


def test_close_cancels_pending_and_closes_source() -> None:
    source = GatedSource()
    controller = _controller(source)

    controller.close()

    assert source.closed is True


class StubResponse:
    status_code = 200
    text = ""

    def __init__(self, payload: list[dict[str, Any]]) -> None:
        self._payload = payload

    def json(self) -> list[dict[str, Any]]:
        return self._payload


class StubSession:
    def __init__(self, payload: list[dict[str, Any]]) -> None:
        self.payload = payload
        self.headers: dict[str, str] = {}
        self.params: dict[str, str] = {}

    def get(self, url: str, params: dict[str, str], timeout: float) -> StubResponse:
        self.params = params
        return StubResponse(self.payload)

    def close(self) -> None:
        return None


def test_end_to_end_usd_page_maps_mock_payload_in_order() -> None:
    payload = [
        {
            "id": f"coin-{index}",
            "name": f"Coin {index}",
            "image": f"https://assets.example/{index}.png",
            "current_price": 1000.0 - index,
            "circulating_supply": 5000 + index,
            "market_cap_rank": index + 1,
            "sparkline_in_7d": {"price": [1000.0 - index] * 168},
        }
        for index in range(10)
    ]
    session = StubSession(payload)
    source = CoinGeckoMarketData(session=session)  # type: ignore[arg-type]
    params = SessionParameters(
        currency=CurrencyCode.USD,
        sort_order=SortOrder.MARKET_CAP_DESC,
        page=1,
        page_size=10,
    )

    async def scenario() -> DashboardController:
        controller = _controller(source, params)
        controller.start()
        await controller.wait()
        return controller

    controller = asyncio.run(scenario())

    assert isinstance(controller.state, Displaying)
    assert len(controller.entities) == 10
    assert all(entity.currency == "USD" for entity in controller.entities)
    assert [entity.name for entity in controller.entities] == [f"Coin {i}" for i in range(10)]
    assert session.params["order"] == "market_cap_desc"
    assert session.params["per_page"] == "10"

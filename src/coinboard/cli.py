"""Command-line interface for a one-shot dashboard session."""

from __future__ import annotations

import argparse
import asyncio
import sys

from coinboard.config import Settings
from coinboard.controller import DashboardController
from coinboard.data.coingecko import CoinGeckoMarketData
from coinboard.domain.state import Displaying, Failed
from coinboard.errors import ConfigError
from coinboard.logging.logger import DashboardLogger
from coinboard.options import PAGE_SIZES, CurrencyCode, SortOrder
from coinboard.render import table_frame, write_report


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(description="List coins and markets from CoinGecko")
    parser.add_argument(
        "--currency",
        choices=[code.value for code in CurrencyCode],
        help="Display currency",
    )
    parser.add_argument(
        "--order",
        choices=[order.value for order in SortOrder],
        help="Market cap sort order",
    )
    parser.add_argument("--page", type=int, default=1, help="Page number, starting at 1")
    parser.add_argument("--page-size", type=int, choices=PAGE_SIZES, help="Rows per page")
    parser.add_argument("--select", type=int, help="Row index whose hourly chart is reported")
    parser.add_argument("--report", type=str, help="Write an HTML report to this path")
    return parser


def apply_cli_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Apply CLI values onto environment-derived settings."""
    if args.page < 1:
        raise ConfigError("--page must be a positive integer")
    overrides: dict[str, object] = {}
    if args.currency:
        overrides["currency"] = args.currency
    if args.order:
        overrides["sort_order"] = args.order
    if args.page_size is not None:
        overrides["page_size"] = args.page_size
    return settings.with_overrides(**overrides)


async def run_session(
    controller: DashboardController,
    select: int | None = None,
    report: str | None = None,
) -> int:
    """Fetch one page, print it, and optionally write a report."""
    controller.start()
    state = await controller.wait()
    if isinstance(state, Failed):
        print(state.reason)
        exit_code = 1
    else:
        exit_code = 0
        if isinstance(state, Displaying):
            print(table_frame(state.entities).to_string(index=False))
        if select is not None and not controller.select(select):
            print(f"Row {select} is not on this page")
    if report:
        path = write_report(controller, report)
        print(f"Report written to {path}")
    return exit_code


def main() -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args()
    try:
        settings = apply_cli_overrides(Settings.from_env(), args)
    except ConfigError as exc:
        print(f"Configuration error: {exc}")
        return 2
    source = CoinGeckoMarketData(
        base_url=settings.base_url,
        api_key=settings.api_key,
        timeout=settings.request_timeout_seconds,
    )
    controller = DashboardController(
        source,
        params=settings.initial_parameters(page=args.page),
        logger=DashboardLogger(level=settings.log_level),
    )
    try:
        return asyncio.run(run_session(controller, select=args.select, report=args.report))
    finally:
        controller.close()


if __name__ == "__main__":
    sys.exit(main())

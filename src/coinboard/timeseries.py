"""Fixed-resolution windows over a raw 7-day price series.

The raw series is hourly and oldest first. A window walks it backward from
the most recent sample, keeping every ``step``-th sample, and labels the
k-th kept sample ``k`` hours before the top of the current hour. Labels are
relative to the moment the window is built, so the same raw series yields
different timestamps an hour later.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from datetime import UTC, datetime, timedelta
from enum import StrEnum

import pandas as pd

from coinboard.domain.models import TimeSeriesPoint


class Resolution(StrEnum):
    """Window resolutions: hourly for detail charts, daily for sparklines."""

    HOURLY = "hourly"
    DAILY = "daily"

    @property
    def step(self) -> int:
        return 24 if self is Resolution.DAILY else 1


def hour_anchor(now: datetime | None = None) -> datetime:
    """Truncate ``now`` (default: current UTC time) to the top of its hour."""
    moment = now or datetime.now(tz=UTC)
    return moment.replace(minute=0, second=0, microsecond=0)


class TimeSeriesWindow:
    """Lazy, restartable point sequence derived from one raw series.

    Iteration yields points in emission order, newest first. The anchor is
    fixed at construction, so every pass produces identical points.
    """

    def __init__(
        self,
        raw_series: Sequence[float] | None,
        resolution: Resolution | str,
        anchor: datetime,
    ) -> None:
        self.raw_series: tuple[float, ...] = tuple(raw_series or ())
        self.resolution = Resolution(resolution)
        self.anchor = anchor

    def __iter__(self) -> Iterator[TimeSeriesPoint]:
        step = self.resolution.step
        index = len(self.raw_series) - 1
        emitted = 0
        while index >= 0:
            yield TimeSeriesPoint(
                timestamp=self.anchor - timedelta(hours=emitted),
                price=self.raw_series[index],
            )
            emitted += 1
            index -= step

    def __len__(self) -> int:
        if not self.raw_series:
            return 0
        return (len(self.raw_series) - 1) // self.resolution.step + 1

    def __bool__(self) -> bool:
        return bool(self.raw_series)

    def oldest_first(self) -> list[TimeSeriesPoint]:
        """Return the points in chronological order."""
        return list(self)[::-1]

    def to_frame(self) -> pd.DataFrame:
        """Return ``date``/``price`` columns, ascending by date, for charting."""
        points = self.oldest_first()
        frame = pd.DataFrame(
            {
                "date": [point.timestamp for point in points],
                "price": [point.price for point in points],
            },
            columns=["date", "price"],
        )
        frame["date"] = pd.to_datetime(frame["date"], utc=True)
        frame["price"] = frame["price"].astype("float64")
        return frame


def window(
    raw_series: Sequence[float] | None,
    resolution: Resolution | str,
    now: datetime | None = None,
) -> TimeSeriesWindow:
    """Derive a time-stamped window from ``raw_series`` at ``resolution``."""
    return TimeSeriesWindow(raw_series, resolution, hour_anchor(now))

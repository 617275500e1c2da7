"""
Window, tick and bucket calculations.

A window ends at "now" rounded down to the hour (hourly series) or the day
(daily and monthly series) and starts a number of calendar units earlier.
Ticks are the bucket boundaries inside the window; a point belongs to the tick
whose hour / day / month it shares.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional

import polars as pl
from dateutil.relativedelta import relativedelta

from chart_timeseries.config import GRANULARITY_DURATIONS, INTERVAL_UNIT_KEYWORDS
from chart_timeseries.exceptions import UnsupportedGranularity
from chart_timeseries.options import Granularity, IntervalUnit, TimeRange
from chart_timeseries.timestamp_utils import normalize_timestamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeInterval:
    """Closed window [start, end] covered by a time series."""
    start: datetime
    end: datetime


def truncate_to_granularity(instant: datetime, granularity: Granularity) -> datetime:
    """
    Round an instant down to the start of its hour, day or month.

    Args:
        instant: Naive UTC datetime
        granularity: Bucket size

    Returns:
        Start of the bucket containing the instant
    """
    granularity = Granularity.parse(granularity)

    if granularity == Granularity.HOUR:
        return instant.replace(minute=0, second=0, microsecond=0)
    elif granularity == Granularity.DAY:
        return instant.replace(hour=0, minute=0, second=0, microsecond=0)
    elif granularity == Granularity.MONTH:
        return instant.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    raise UnsupportedGranularity(
        f"Unknown granularity: {granularity!r}. Valid options: {[g.value for g in Granularity]}"
    )


def bucket_expr(column: str, granularity: Granularity) -> pl.Expr:
    """
    Polars expression truncating a datetime column to its bucket start.

    Same semantics as truncate_to_granularity(), applied to a whole column.
    """
    granularity = Granularity.parse(granularity)
    return pl.col(column).dt.truncate(GRANULARITY_DURATIONS[granularity.value])


def compute_interval(
    granularity: Granularity,
    interval_unit: IntervalUnit,
    interval_length: int,
    now: Optional[Any] = None
) -> TimeInterval:
    """
    Compute the window to cover, ending at the current hour or day.

    Subtraction is calendar-correct: stepping back whole months or years
    keeps the day of month when it exists and clamps to the last day of the
    month otherwise (March 31 minus one month is February 28/29).

    Args:
        granularity: Bucket size; 'hour' rounds "now" to the hour, anything
            else to the day
        interval_unit: 'year', 'month', 'week' or 'day'
        interval_length: Number of units to step back
        now: Reference instant (any supported encoding). Defaults to the
            current UTC time

    Returns:
        TimeInterval(start, end)

    Raises:
        UnsupportedGranularity: If granularity is not supported
        UnsupportedIntervalUnit: If interval_unit is not supported

    Example:
        >>> compute_interval('day', 'month', 1, now=datetime(2024, 3, 31, 15, 30))
        TimeInterval(start=datetime.datetime(2024, 2, 29, 0, 0), end=datetime.datetime(2024, 3, 31, 0, 0))
    """
    granularity = Granularity.parse(granularity)
    interval_unit = IntervalUnit.parse(interval_unit)

    if now is None:
        now = datetime.now(timezone.utc)
    now = normalize_timestamp(now)

    if granularity == Granularity.HOUR:
        end = truncate_to_granularity(now, Granularity.HOUR)
    else:
        end = truncate_to_granularity(now, Granularity.DAY)

    step_back = relativedelta(**{INTERVAL_UNIT_KEYWORDS[interval_unit.value]: interval_length})
    start = end - step_back

    logger.debug(
        f"Window for {interval_length} {interval_unit.value}(s) at {granularity.value} "
        f"granularity: {start.isoformat()} -> {end.isoformat()}"
    )
    return TimeInterval(start=start, end=end)


def resolve_time_range(time_range: TimeRange) -> TimeInterval:
    """Normalize the endpoints of an already-resolved window."""
    return TimeInterval(
        start=normalize_timestamp(time_range.start),
        end=normalize_timestamp(time_range.end),
    )


def generate_ticks(interval: TimeInterval, granularity: Granularity) -> List[datetime]:
    """
    Enumerate bucket boundaries from interval.start to interval.end inclusive.

    The first tick is the start of the bucket containing interval.start, so a
    monthly series includes the month the window starts in. Subsequent ticks
    are one hour, day or calendar month apart.

    Args:
        interval: Window to cover
        granularity: Bucket size

    Returns:
        Ascending list of tick datetimes (empty when start is after end)

    Raises:
        UnsupportedGranularity: If granularity is not supported
    """
    granularity = Granularity.parse(granularity)

    first_tick = truncate_to_granularity(interval.start, granularity)
    if first_tick > interval.end:
        return []

    ticks = pl.datetime_range(
        first_tick,
        interval.end,
        interval=GRANULARITY_DURATIONS[granularity.value],
        closed='both',
        time_unit='us',
        eager=True,
    )
    return ticks.to_list()


def matches(tick: datetime, instant: datetime, granularity: Granularity) -> bool:
    """
    Check whether an instant falls into the bucket of a tick.

    Args:
        tick: Bucket boundary
        instant: Normalized instant of a data point
        granularity: Bucket size

    Returns:
        True if both share the same hour, day or month
    """
    return truncate_to_granularity(tick, granularity) == truncate_to_granularity(instant, granularity)

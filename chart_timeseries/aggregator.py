"""
Time series aggregation.

Turns an unordered collection of timestamped data points into evenly spaced
ticks carrying one value per requested field, ready to be rendered in a chart.

Flow:
1. Resolve the window (from "now" or an explicit TimeRange)
2. Generate ticks at the requested granularity
3. Seed the carried value of every field (0, or the latest value before the
   window in historical mode)
4. Group points by bucket and compute the display and storage aggregates
5. Walk the ticks in order, emitting display values and carrying storage values
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import polars as pl

from chart_timeseries.accumulation import carry_forward, initial_carry_state
from chart_timeseries.config import BUCKET_COLUMN, INSTANT_COLUMN, STORAGE_SUFFIX, TIMESTAMP_COLUMN
from chart_timeseries.exceptions import UnsupportedAggregation
from chart_timeseries.formatting import format_chart_date
from chart_timeseries.intervals import (
    bucket_expr,
    compute_interval,
    generate_ticks,
    resolve_time_range,
)
from chart_timeseries.options import (
    AggregationMode,
    Granularity,
    TimeRange,
    TimeSeriesOptions,
)
from chart_timeseries.points import build_points_frame, unique_fields

logger = logging.getLogger(__name__)

LabelFormatter = Callable[[Any, Granularity, str], str]


def _aggregation_exprs(fields: List[str], mode: AggregationMode) -> List[pl.Expr]:
    """
    Build one aggregation expression per field.

    Args:
        fields: Field columns to aggregate
        mode: Aggregation mode

    Returns:
        List of expressions aliased to the field names

    Raises:
        UnsupportedAggregation: If mode is not supported
    """
    mode = AggregationMode.parse(mode)

    if mode == AggregationMode.SUM:
        # Absent and non-numeric values count as 0
        return [pl.col(f).fill_nan(0.0).fill_null(0.0).sum().alias(f) for f in fields]
    elif mode == AggregationMode.COUNT:
        # Number of points, the same for every field
        return [pl.len().cast(pl.Float64).alias(f) for f in fields]
    elif mode == AggregationMode.FIRST:
        return [pl.col(f).drop_nulls().first().alias(f) for f in fields]
    elif mode == AggregationMode.LAST:
        return [pl.col(f).drop_nulls().last().alias(f) for f in fields]
    elif mode == AggregationMode.MAX:
        return [pl.col(f).fill_nan(None).max().alias(f) for f in fields]
    raise UnsupportedAggregation(f"Unsupported aggregation: {mode!r}")


def _finalize(df: pl.DataFrame, fields: List[str], mode: AggregationMode) -> pl.DataFrame:
    if mode == AggregationMode.MAX:
        # Floor at 0, which also covers buckets without numeric values
        return df.with_columns([
            pl.when(pl.col(f) > 0).then(pl.col(f)).otherwise(0.0).alias(f)
            for f in fields
        ])
    return df


def aggregate(
    points: Sequence[Any],
    fields: Iterable[str],
    mode: Union[AggregationMode, str]
) -> Dict[str, Optional[float]]:
    """
    Reduce the points of one bucket to one value per field.

    Modes:
        - sum: sum of numeric values; absent or non-numeric values add 0
        - count: number of points, identical for every field
        - first: first defined value in input order (None if none)
        - last: last defined value in input order (None if none)
        - max: largest numeric value, never below 0

    A defined value that is not numeric yields NaN under first/last.

    Args:
        points: Data points of one bucket
        fields: Field names to aggregate
        mode: Aggregation mode

    Returns:
        Dictionary of field -> aggregated value (None when absent)

    Raises:
        UnsupportedAggregation: If mode is not supported
        InvalidTimestamp: If a point has an unparseable timestamp

    Example:
        >>> aggregate([{'timestamp': 0, 'v': 2}, {'timestamp': 0, 'v': '3'}], ['v'], 'sum')
        {'v': 5.0}
    """
    fields = unique_fields(fields)
    mode = AggregationMode.parse(mode)
    if not fields:
        return {}

    frame = build_points_frame(points, fields)
    result = _finalize(frame.select(_aggregation_exprs(fields, mode)), fields, mode)
    return result.row(0, named=True)


def aggregate_frame(
    frame: pl.DataFrame,
    fields: List[str],
    mode: Union[AggregationMode, str],
    granularity: Union[Granularity, str]
) -> pl.DataFrame:
    """
    Aggregate a points frame per bucket.

    Args:
        frame: Points frame from build_points_frame()
        fields: Field columns to aggregate
        mode: Aggregation mode
        granularity: Bucket size

    Returns:
        DataFrame with one row per non-empty bucket: the bucket start column
        followed by one column per field
    """
    mode = AggregationMode.parse(mode)
    exprs = _aggregation_exprs(fields, mode)

    grouped = (
        frame
        .with_columns(bucket_expr(INSTANT_COLUMN, granularity).alias(BUCKET_COLUMN))
        .group_by(BUCKET_COLUMN, maintain_order=True)
        .agg(exprs)
    )
    return _finalize(grouped, fields, mode)


def _coerce_options(options: Union[TimeSeriesOptions, Mapping[str, Any]]) -> TimeSeriesOptions:
    if isinstance(options, TimeSeriesOptions):
        return options
    return TimeSeriesOptions(**options)


def create_time_series_frame(
    points: Sequence[Any],
    fields: Iterable[str],
    options: Union[TimeSeriesOptions, Mapping[str, Any]],
    now: Optional[Any] = None,
    time_range: Optional[TimeRange] = None
) -> pl.DataFrame:
    """
    Bucket data points into evenly spaced ticks.

    Args:
        points: Data points (mappings or objects) with a 'timestamp' field in
            any supported encoding and numeric-ish value fields
        fields: Fields to compute for every tick
        options: TimeSeriesOptions (or a mapping of its keyword arguments)
        now: Reference instant for the window end (defaults to current UTC time)
        time_range: Already-resolved window; when given, options.interval_unit
            and options.interval_length are not used

    Returns:
        DataFrame with a 'timestamp' tick column (Datetime[μs]) and one Float64
        column per field, one row per tick in ascending order

    Raises:
        InvalidTimestamp: If any point has an unparseable timestamp
        UnsupportedGranularity, UnsupportedIntervalUnit,
        UnsupportedAggregation, UnsupportedAccumulation: For invalid options
        TimeSeriesError: If a field name is reserved ('timestamp' or an internal column)
    """
    options = _coerce_options(options)
    fields = unique_fields(fields)
    granularity = options.granularity

    if time_range is None:
        interval = compute_interval(granularity, options.interval_unit, options.interval_length, now)
    else:
        interval = resolve_time_range(time_range)

    ticks = generate_ticks(interval, granularity)
    frame = build_points_frame(points, fields)
    logger.debug(f"Bucketing {frame.height} points into {len(ticks)} {granularity.value} ticks")

    carry = initial_carry_state(frame, fields, interval.start, options.historical)

    ticks_df = pl.DataFrame({BUCKET_COLUMN: ticks}, schema={BUCKET_COLUMN: pl.Datetime('us')})
    if fields:
        display = aggregate_frame(frame, fields, options.aggregation.display, granularity)
        storage = aggregate_frame(frame, fields, options.aggregation.storage, granularity)
        ticks_df = (
            ticks_df
            .join(display, on=BUCKET_COLUMN, how='left')
            .join(storage, on=BUCKET_COLUMN, how='left', suffix=STORAGE_SUFFIX)
            .sort(BUCKET_COLUMN)
        )

    # Single left-to-right pass; carry holds the last storage value per field
    series: Dict[str, List[float]] = {field: [] for field in fields}
    for row in ticks_df.iter_rows(named=True):
        for field in fields:
            emitted, carry[field] = carry_forward(
                row[field],
                row[field + STORAGE_SUFFIX],
                carry[field],
                options.accumulation,
            )
            series[field].append(emitted)

    schema = {TIMESTAMP_COLUMN: pl.Datetime('us')}
    schema.update({field: pl.Float64 for field in fields})
    return pl.DataFrame({TIMESTAMP_COLUMN: ticks, **series}, schema=schema)


def create_time_series(
    points: Sequence[Any],
    fields: Iterable[str],
    options: Union[TimeSeriesOptions, Mapping[str, Any]],
    locale: str = 'en',
    now: Optional[Any] = None,
    time_range: Optional[TimeRange] = None,
    formatter: LabelFormatter = format_chart_date
) -> List[Dict[str, Any]]:
    """
    Create chart-ready records with one labelled entry per tick.

    Args:
        points: Data points with a 'timestamp' field and value fields
        fields: Fields to compute for every tick
        options: TimeSeriesOptions (or a mapping of its keyword arguments)
        locale: Locale passed to the label formatter
        now: Reference instant for the window end (defaults to current UTC time)
        time_range: Already-resolved window, used instead of "now"
        formatter: Callable (instant, granularity, locale) -> label

    Returns:
        List of {'timestamp': label, <field>: value, ...} in tick order

    Example:
        >>> options = TimeSeriesOptions(granularity='day', interval_unit='day',
        ...                             interval_length=2, aggregation='count')
        >>> create_time_series(points, ['transfers'], options, now=datetime(2024, 3, 5, 12))
        [{'timestamp': 'Mar 3', 'transfers': 0.0},
         {'timestamp': 'Mar 4', 'transfers': 0.0},
         {'timestamp': 'Mar 5', 'transfers': 3.0}]
    """
    options = _coerce_options(options)
    frame = create_time_series_frame(points, fields, options, now=now, time_range=time_range)

    records = []
    for row in frame.iter_rows(named=True):
        tick = row.pop(TIMESTAMP_COLUMN)
        record = {TIMESTAMP_COLUMN: formatter(tick, options.granularity, locale)}
        record.update(row)
        records.append(record)
    return records

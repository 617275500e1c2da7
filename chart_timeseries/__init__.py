"""
Time series bucketing and aggregation for charts and dashboard widgets.

This module turns an unordered collection of timestamped data points into an
ordered sequence of evenly spaced ticks, each carrying one value per requested
field, ready to be rendered.

Main Features:
    - Hourly, daily and monthly ticks over a calendar-correct lookback window
    - Automatic timestamp normalization (datetime, ISO-8601, epoch s/ms/μs)
    - Separate display and storage aggregations (first, last, sum, count, max)
    - Carry-forward accumulation (total, max, current) across empty buckets
    - Historical seeding from points before the window
    - Pluggable, locale-aware tick labels

Usage:
    >>> from chart_timeseries import create_time_series, TimeSeriesOptions
    >>>
    >>> options = TimeSeriesOptions(
    ...     granularity='day',
    ...     interval_unit='week',
    ...     interval_length=1,
    ...     aggregation={'display': 'sum', 'storage': 'last'},
    ...     accumulation='total',
    ... )
    >>> records = create_time_series(points, ['volume'], options, locale='en')
    >>> records[0]
    {'timestamp': 'Mar 1', 'volume': 12.0}

    >>> # Same series as a Polars DataFrame with datetime ticks
    >>> df = create_time_series_frame(points, ['volume'], options)
"""

# Main functional API
from chart_timeseries.aggregator import (
    aggregate,
    aggregate_frame,
    create_time_series,
    create_time_series_frame,
)

# Configuration
from chart_timeseries.options import (
    AccumulationMode,
    AggregationMode,
    AggregationOptions,
    Granularity,
    IntervalUnit,
    TimeRange,
    TimeSeriesOptions,
)

# Windows, ticks and buckets
from chart_timeseries.intervals import (
    TimeInterval,
    compute_interval,
    generate_ticks,
    matches,
    truncate_to_granularity,
)

# Carry-forward
from chart_timeseries.accumulation import (
    carry_forward,
    compute_emitted,
    resolve_historical_seed,
)

# Timestamp utilities
from chart_timeseries.timestamp_utils import (
    TimestampFormat,
    detect_epoch_resolution,
    detect_timestamp_format,
    normalize_timestamp,
    normalize_timestamp_column,
)

# Labels
from chart_timeseries.formatting import format_chart_date

# Validation utilities
from chart_timeseries.validators import (
    PointValidationResult,
    filter_valid_points,
    validate_points,
)

# Errors
from chart_timeseries.exceptions import (
    InvalidTimestamp,
    TimeSeriesError,
    UnsupportedAccumulation,
    UnsupportedAggregation,
    UnsupportedGranularity,
    UnsupportedIntervalUnit,
)

__version__ = "1.0.0"

__all__ = [
    # Main functional API
    "create_time_series",
    "create_time_series_frame",
    "aggregate",
    "aggregate_frame",

    # Configuration
    "TimeSeriesOptions",
    "AggregationOptions",
    "TimeRange",
    "Granularity",
    "IntervalUnit",
    "AggregationMode",
    "AccumulationMode",

    # Windows, ticks and buckets
    "TimeInterval",
    "compute_interval",
    "generate_ticks",
    "matches",
    "truncate_to_granularity",

    # Carry-forward
    "carry_forward",
    "compute_emitted",
    "resolve_historical_seed",

    # Timestamp utilities
    "TimestampFormat",
    "detect_epoch_resolution",
    "detect_timestamp_format",
    "normalize_timestamp",
    "normalize_timestamp_column",

    # Labels
    "format_chart_date",

    # Validation
    "PointValidationResult",
    "validate_points",
    "filter_valid_points",

    # Errors
    "TimeSeriesError",
    "InvalidTimestamp",
    "UnsupportedGranularity",
    "UnsupportedIntervalUnit",
    "UnsupportedAggregation",
    "UnsupportedAccumulation",
]

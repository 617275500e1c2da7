"""
Error taxonomy for time series generation.

Every error is caused by caller input and raised before any output is
produced. All of them are ``ValueError`` subclasses.
"""


class TimeSeriesError(ValueError):
    """Base class for all time series errors."""


class InvalidTimestamp(TimeSeriesError):
    """A timestamp is neither a calendar date nor a finite epoch number."""


class UnsupportedGranularity(TimeSeriesError):
    """Granularity outside hour / day / month."""


class UnsupportedIntervalUnit(TimeSeriesError):
    """Interval unit outside year / month / week / day."""


class UnsupportedAggregation(TimeSeriesError):
    """Aggregation mode outside first / last / sum / count / max."""


class UnsupportedAccumulation(TimeSeriesError):
    """Accumulation mode outside total / max / current."""

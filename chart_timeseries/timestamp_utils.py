"""
Timestamp format detection and normalization utilities.

Handles the timestamp encodings found in chart data points:
- Native datetime / date objects (and numpy datetime64)
- ISO-8601 calendar strings
- Unix timestamps in seconds
- Unix timestamps in milliseconds
- Unix timestamps in microseconds
- Any of the numeric forms above given as strings

Every instant is returned as a naive datetime on the UTC wall clock.
"""

import math
import numbers
import re
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable

import numpy as np
import polars as pl
from dateutil.parser import isoparse

from chart_timeseries.config import (
    CALENDAR_DATE_PATTERN,
    MICROSECOND_DIGITS,
    MILLISECOND_DIGITS,
)
from chart_timeseries.exceptions import InvalidTimestamp

EPOCH = datetime(1970, 1, 1)

_CALENDAR_DATE_RE = re.compile(CALENDAR_DATE_PATTERN)


class TimestampFormat(Enum):
    """Enumeration of supported timestamp formats."""
    DATETIME = "datetime"
    ISO_STRING = "iso_string"
    SECONDS = "seconds"
    MILLISECONDS = "milliseconds"
    MICROSECONDS = "microseconds"


def detect_epoch_resolution(value: float) -> TimestampFormat:
    """
    Detect the resolution of a numeric epoch value from its digit count.

    The decimal digit count of the integer part decides:
        >= 16 digits -> microseconds
        >= 13 digits -> milliseconds
        otherwise    -> seconds

    This is a heuristic. A 13-digit seconds count (year 33658 and later) is
    read as milliseconds; such values are not expected in practice.

    Args:
        value: Finite numeric epoch value

    Returns:
        SECONDS, MILLISECONDS or MICROSECONDS
    """
    digits = len(str(abs(int(value))))

    if digits >= MICROSECOND_DIGITS:
        return TimestampFormat.MICROSECONDS
    elif digits >= MILLISECOND_DIGITS:
        return TimestampFormat.MILLISECONDS
    return TimestampFormat.SECONDS


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _parse_calendar_string(value: str):
    if not _CALENDAR_DATE_RE.match(value):
        return None
    try:
        return _to_naive_utc(isoparse(value))
    except (ValueError, OverflowError):
        return None


def _coerce_epoch(value: Any) -> float:
    if isinstance(value, bool):
        raise InvalidTimestamp(f"Boolean is not a timestamp: {value!r}")
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            raise InvalidTimestamp(f"Invalid timestamp string: {value!r}") from None
    elif isinstance(value, (numbers.Real, Decimal)):
        try:
            number = float(value)
        except ValueError:
            raise InvalidTimestamp(f"Invalid timestamp number: {value!r}") from None
    else:
        raise InvalidTimestamp(f"Unsupported timestamp type: {type(value).__name__}")

    if not math.isfinite(number):
        raise InvalidTimestamp(f"Timestamp is not a finite number: {value!r}")
    return number


def _epoch_to_datetime(number: float) -> datetime:
    resolution = detect_epoch_resolution(number)

    if resolution == TimestampFormat.MICROSECONDS:
        milliseconds = number / 1000
    elif resolution == TimestampFormat.MILLISECONDS:
        milliseconds = number
    else:
        milliseconds = number * 1000

    try:
        return EPOCH + timedelta(milliseconds=milliseconds)
    except OverflowError:
        raise InvalidTimestamp(f"Timestamp out of range: {number!r}") from None


def detect_timestamp_format(value: Any) -> TimestampFormat:
    """
    Detect the encoding of a single timestamp value.

    Args:
        value: Timestamp in any supported encoding

    Returns:
        Detected timestamp format

    Raises:
        InvalidTimestamp: If the value is not a supported timestamp
    """
    if isinstance(value, (datetime, date, np.datetime64)):
        return TimestampFormat.DATETIME
    if isinstance(value, str) and _parse_calendar_string(value.strip()) is not None:
        return TimestampFormat.ISO_STRING
    return detect_epoch_resolution(_coerce_epoch(value.strip() if isinstance(value, str) else value))


def normalize_timestamp(value: Any) -> datetime:
    """
    Convert a timestamp in any supported encoding to a naive UTC datetime.

    Strings are parsed as calendar dates first (when they start with
    YYYY-MM-DD) and as numeric epochs otherwise. Numeric epochs are resolved
    with detect_epoch_resolution().

    Args:
        value: datetime, date, numpy datetime64, ISO-8601 string, or an epoch
            number (int, float, Decimal) or numeric string in seconds,
            milliseconds or microseconds

    Returns:
        Naive datetime on the UTC wall clock

    Raises:
        InvalidTimestamp: If the value cannot be interpreted as an instant

    Example:
        >>> normalize_timestamp("1700000000")
        datetime.datetime(2023, 11, 14, 22, 13, 20)
        >>> normalize_timestamp(1700000000000)
        datetime.datetime(2023, 11, 14, 22, 13, 20)
    """
    if isinstance(value, datetime):
        return _to_naive_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, np.datetime64):
        if np.isnat(value):
            raise InvalidTimestamp("NaT is not a timestamp")
        return EPOCH + timedelta(microseconds=int(value.astype('datetime64[us]').astype(np.int64)))

    if isinstance(value, str):
        text = value.strip()
        parsed = _parse_calendar_string(text)
        if parsed is not None:
            return parsed
        return _epoch_to_datetime(_coerce_epoch(text))

    return _epoch_to_datetime(_coerce_epoch(value))


def normalize_timestamp_column(values: Iterable[Any], name: str = 'timestamp') -> pl.Series:
    """
    Normalize a sequence of timestamps into a Datetime[μs] Series.

    Args:
        values: Timestamps in any supported (possibly mixed) encodings
        name: Name of the resulting Series

    Returns:
        Polars Series of dtype Datetime("us"), in input order

    Raises:
        InvalidTimestamp: If any value cannot be normalized
    """
    return pl.Series(
        name,
        [normalize_timestamp(value) for value in values],
        dtype=pl.Datetime('us'),
    )

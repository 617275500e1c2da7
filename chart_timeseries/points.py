"""
Conversion of caller data points into a Polars DataFrame.

Data points are owned by the caller and never modified. Each point is read
once: its timestamp is normalized and every requested field is coerced to a
float, keeping the difference between an absent value (null) and a value
that is present but not numeric (NaN).
"""

import math
import numbers
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Sequence

import polars as pl

from chart_timeseries.config import INSTANT_COLUMN, RESERVED_FIELDS, STORAGE_SUFFIX
from chart_timeseries.exceptions import TimeSeriesError
from chart_timeseries.timestamp_utils import normalize_timestamp

_MISSING = object()


def get_field(point: Any, name: str) -> Any:
    """Read a field from a mapping or an attribute-style object; None when absent."""
    if isinstance(point, Mapping):
        return point.get(name)
    value = getattr(point, name, _MISSING)
    return None if value is _MISSING else value


def coerce_numeric(value: Any) -> Optional[float]:
    """
    Coerce a field value to a float.

    Returns:
        None for absent values, the float value for numbers and numeric
        strings, NaN for anything else
    """
    if value is None:
        return None
    if isinstance(value, (numbers.Real, Decimal)):
        try:
            return float(value)
        except ValueError:
            # Signaling NaN
            return math.nan
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return math.nan
    return math.nan


def unique_fields(fields: Iterable[str]) -> List[str]:
    """
    Requested fields without duplicates, in first-seen order.

    Raises:
        TimeSeriesError: If a field name clashes with an internal or output column
    """
    fields = list(dict.fromkeys(fields))
    for field in fields:
        if field in RESERVED_FIELDS or field.endswith(STORAGE_SUFFIX):
            raise TimeSeriesError(
                f"Reserved field name: {field!r}. Field names cannot be one of "
                f"{list(RESERVED_FIELDS)} or end with '{STORAGE_SUFFIX}'"
            )
    return fields


def build_points_frame(points: Sequence[Any], fields: Iterable[str]) -> pl.DataFrame:
    """
    Build a DataFrame with one row per point, in input order.

    Args:
        points: Data points (mappings or objects) with a 'timestamp' field
        fields: Field names to extract

    Returns:
        DataFrame with a Datetime[μs] instant column and one Float64 column
        per field

    Raises:
        InvalidTimestamp: If any point has an unparseable timestamp
    """
    fields = unique_fields(fields)

    data = {INSTANT_COLUMN: [normalize_timestamp(get_field(p, 'timestamp')) for p in points]}
    schema = {INSTANT_COLUMN: pl.Datetime('us')}
    for field in fields:
        data[field] = [coerce_numeric(get_field(p, field)) for p in points]
        schema[field] = pl.Float64

    return pl.DataFrame(data, schema=schema)

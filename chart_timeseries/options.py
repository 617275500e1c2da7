"""
Configuration value objects for time series generation.

Modes are closed enumerations. Plain strings are accepted wherever a mode is
expected and converted once, at construction time, so the rest of the engine
only ever sees enum members.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional, Tuple, Type, Union

from chart_timeseries.exceptions import (
    TimeSeriesError,
    UnsupportedAccumulation,
    UnsupportedAggregation,
    UnsupportedGranularity,
    UnsupportedIntervalUnit,
)


def _parse_member(enum_cls: Type[Enum], value: Any, error_cls: Type[TimeSeriesError], label: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        valid = [member.value for member in enum_cls]
        raise error_cls(f"Unsupported {label}: {value!r}. Valid options: {valid}") from None


class Granularity(str, Enum):
    """Bucket size; controls tick spacing and bucket matching."""
    HOUR = "hour"
    DAY = "day"
    MONTH = "month"

    @classmethod
    def parse(cls, value: Any) -> "Granularity":
        return _parse_member(cls, value, UnsupportedGranularity, "granularity")


class IntervalUnit(str, Enum):
    """Unit used to step back from the window end."""
    YEAR = "year"
    MONTH = "month"
    WEEK = "week"
    DAY = "day"

    @classmethod
    def parse(cls, value: Any) -> "IntervalUnit":
        return _parse_member(cls, value, UnsupportedIntervalUnit, "interval unit")


class AggregationMode(str, Enum):
    """How the points of one bucket reduce to one value per field."""
    FIRST = "first"
    LAST = "last"
    SUM = "sum"
    COUNT = "count"
    MAX = "max"

    @classmethod
    def parse(cls, value: Any) -> "AggregationMode":
        return _parse_member(cls, value, UnsupportedAggregation, "aggregation")


class AccumulationMode(str, Enum):
    """How an emitted value combines with the carried value."""
    TOTAL = "total"
    MAX = "max"
    CURRENT = "current"

    @classmethod
    def parse(cls, value: Any) -> "AccumulationMode":
        return _parse_member(cls, value, UnsupportedAccumulation, "accumulation")


@dataclass(frozen=True)
class AggregationOptions:
    """
    Display and storage aggregation modes.

    The display aggregate drives the emitted value of a tick; the storage
    aggregate drives the value carried into later ticks.
    """
    display: AggregationMode
    storage: AggregationMode

    def __post_init__(self):
        object.__setattr__(self, 'display', AggregationMode.parse(self.display))
        object.__setattr__(self, 'storage', AggregationMode.parse(self.storage))

    @classmethod
    def from_value(cls, value: Any) -> "AggregationOptions":
        """
        Normalize a single mode or a display/storage pair.

        Args:
            value: One of
                - str / AggregationMode: used for both display and storage
                - Mapping with 'display' and 'storage' keys
                - (display, storage) tuple
                - AggregationOptions: returned unchanged

        Returns:
            AggregationOptions with both modes set
        """
        if isinstance(value, AggregationOptions):
            return value
        if isinstance(value, (str, AggregationMode)):
            mode = AggregationMode.parse(value)
            return cls(display=mode, storage=mode)
        if isinstance(value, Mapping):
            missing = {'display', 'storage'} - set(value)
            if missing:
                raise UnsupportedAggregation(
                    f"Aggregation mapping is missing keys: {sorted(missing)}"
                )
            return cls(display=value['display'], storage=value['storage'])
        if isinstance(value, tuple) and len(value) == 2:
            return cls(display=value[0], storage=value[1])
        raise UnsupportedAggregation(
            f"Invalid aggregation: {value!r}. "
            "Expected a mode name, a {'display', 'storage'} mapping or a pair"
        )


AggregationSpec = Union[str, AggregationMode, Mapping[str, Any], Tuple[Any, Any], AggregationOptions]


@dataclass(frozen=True)
class TimeSeriesOptions:
    """
    Declarative time series configuration.

    Attributes:
        granularity: Bucket size ('hour', 'day' or 'month')
        interval_unit: Unit of the lookback window ('year', 'month', 'week', 'day')
        interval_length: Number of interval units to look back from "now"
        aggregation: Single mode or display/storage pair
        accumulation: Optional 'total', 'max' or 'current'; None emits the raw
            bucket value (or 0 for empty buckets)
        historical: Seed carried values from points before the window
    """
    granularity: Granularity
    interval_unit: IntervalUnit = IntervalUnit.DAY
    interval_length: int = 7
    aggregation: AggregationSpec = AggregationMode.SUM
    accumulation: Optional[AccumulationMode] = None
    historical: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'granularity', Granularity.parse(self.granularity))
        object.__setattr__(self, 'interval_unit', IntervalUnit.parse(self.interval_unit))
        object.__setattr__(self, 'aggregation', AggregationOptions.from_value(self.aggregation))
        if self.accumulation is not None:
            object.__setattr__(self, 'accumulation', AccumulationMode.parse(self.accumulation))

        if isinstance(self.interval_length, bool) or not isinstance(self.interval_length, int):
            raise TimeSeriesError(
                f"interval_length must be an integer, got {type(self.interval_length).__name__}"
            )
        if self.interval_length < 0:
            raise TimeSeriesError(f"interval_length cannot be negative: {self.interval_length}")


@dataclass(frozen=True)
class TimeRange:
    """
    An already-resolved window, used instead of computing one from "now".

    Endpoints may be any supported timestamp encoding; they are normalized
    when the window is resolved.
    """
    start: Any
    end: Any

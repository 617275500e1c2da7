"""
Carry-forward of values across ticks.

Every field keeps one carried value for the duration of a single series
computation. The carried value starts at 0 (or at the latest value before the
window in historical mode) and is replaced by the storage aggregate of every
tick where that aggregate is truthy.

A bucket value of exactly 0 is treated like a missing value: it emits the
carried value (or 0 without accumulation) and leaves the carry unchanged.
"""

import logging
import math
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

import polars as pl

from chart_timeseries.config import INSTANT_COLUMN
from chart_timeseries.exceptions import UnsupportedAccumulation
from chart_timeseries.options import AccumulationMode
from chart_timeseries.points import build_points_frame
from chart_timeseries.timestamp_utils import normalize_timestamp

logger = logging.getLogger(__name__)

# field -> last carried value
CarryState = Dict[str, float]


def is_truthy(value: Optional[float]) -> bool:
    """None, NaN and 0 are falsy; every other number is truthy."""
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    return value != 0


def compute_emitted(
    display: Optional[float],
    carried: float,
    accumulation: Optional[AccumulationMode] = None
) -> float:
    """
    Compute the value emitted for one field at one tick.

    Args:
        display: Display aggregate of the tick (None when absent)
        carried: Value carried from earlier ticks
        accumulation: None, 'total', 'max' or 'current'

    Returns:
        - falsy display: carried with accumulation, 0 without
        - 'total': display + carried
        - 'max': max(display, carried)
        - 'current' or no accumulation: display
    """
    if accumulation is not None:
        accumulation = AccumulationMode.parse(accumulation)

    if not is_truthy(display):
        return carried if accumulation is not None else 0.0

    if accumulation is None:
        return display
    elif accumulation == AccumulationMode.TOTAL:
        return display + carried
    elif accumulation == AccumulationMode.MAX:
        return max(display, carried)
    elif accumulation == AccumulationMode.CURRENT:
        return display
    raise UnsupportedAccumulation(
        f"Unknown accumulation: {accumulation!r}. Valid options: {[a.value for a in AccumulationMode]}"
    )


def update_carry(carried: float, storage: Optional[float]) -> float:
    """Replace the carried value with a truthy storage aggregate."""
    return storage if is_truthy(storage) else carried


def carry_forward(
    display: Optional[float],
    storage: Optional[float],
    carried: float,
    accumulation: Optional[AccumulationMode] = None
) -> Tuple[float, float]:
    """
    Process one field at one tick.

    The emitted value is computed from the display aggregate; the new carry
    comes from the storage aggregate, never from the emitted value.

    Returns:
        Tuple of (emitted value, updated carried value)
    """
    emitted = compute_emitted(display, carried, accumulation)
    return emitted, update_carry(carried, storage)


def seed_from_frame(frame: pl.DataFrame, field: str, window_start: datetime) -> float:
    """
    Latest finite value of a field at or before the window start.

    Args:
        frame: Points frame from build_points_frame()
        field: Field column to read
        window_start: Start of the window (naive UTC)

    Returns:
        Value of the latest qualifying point, or 0.0 if there is none
    """
    candidates = (
        frame
        .select([INSTANT_COLUMN, field])
        .filter(
            (pl.col(INSTANT_COLUMN) <= window_start)
            & pl.col(field).is_not_null()
            & pl.col(field).is_finite()
        )
    )
    if candidates.height == 0:
        return 0.0

    latest = candidates.sort(INSTANT_COLUMN, descending=True).row(0, named=True)
    return latest[field]


def resolve_historical_seed(points: Sequence[Any], field: str, window_start: Any) -> float:
    """
    Find the historical seed of one field directly from data points.

    See seed_from_frame(). Timestamps of all points are normalized, so an
    unparseable timestamp raises InvalidTimestamp.
    """
    frame = build_points_frame(points, [field])
    return seed_from_frame(frame, field, normalize_timestamp(window_start))


def initial_carry_state(
    frame: pl.DataFrame,
    fields: Iterable[str],
    window_start: datetime,
    historical: bool = False
) -> CarryState:
    """
    Create the carry state of a new series computation.

    Args:
        frame: Points frame from build_points_frame()
        fields: Requested fields
        window_start: Start of the window
        historical: Seed from points before the window instead of 0

    Returns:
        Mapping of field -> initial carried value
    """
    if not historical:
        return {field: 0.0 for field in fields}

    state = {field: seed_from_frame(frame, field, window_start) for field in fields}
    logger.debug(f"Historical seeds at {window_start.isoformat()}: {state}")
    return state

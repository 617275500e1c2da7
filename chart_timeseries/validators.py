"""
Validation utilities for data points.

Series generation fails as a whole when a single point has a bad timestamp.
These helpers let callers inspect or pre-filter their points beforehand.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence

from chart_timeseries.exceptions import InvalidTimestamp
from chart_timeseries.points import coerce_numeric, get_field, unique_fields
from chart_timeseries.timestamp_utils import normalize_timestamp

logger = logging.getLogger(__name__)


@dataclass
class PointValidationResult:
    """
    Results from checking a collection of data points.

    Attributes:
        status: Overall status ('VALID', 'INVALID_TIMESTAMPS' or 'EMPTY')
        total_points: Number of points checked
        valid_points: Number of points with a usable timestamp
        invalid_timestamp_indices: Positions of points with unusable timestamps
        non_numeric_counts: Per field, number of points whose value is present
            but not numeric
    """
    status: str
    total_points: int
    valid_points: int
    invalid_timestamp_indices: List[int] = field(default_factory=list)
    non_numeric_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.invalid_timestamp_indices

    def __str__(self) -> str:
        """Format validation results as human-readable string."""
        lines = [
            "=" * 60,
            "DATA POINT VALIDATION REPORT",
            "=" * 60,
            f"Status: {self.status}",
            f"  Total:   {self.total_points:,}",
            f"  Valid:   {self.valid_points:,}",
            f"  Invalid: {len(self.invalid_timestamp_indices):,}",
        ]

        if self.invalid_timestamp_indices:
            shown = ", ".join(str(i) for i in self.invalid_timestamp_indices[:10])
            more = " ..." if len(self.invalid_timestamp_indices) > 10 else ""
            lines.append(f"  Invalid timestamp at index: {shown}{more}")

        if self.non_numeric_counts:
            lines.append("")
            lines.append(f"{'Field':<30} {'Non-numeric values'}")
            lines.append("-" * 60)
            for name, count in self.non_numeric_counts.items():
                lines.append(f"{name:<30} {count}")

        lines.append("=" * 60)
        return "\n".join(lines)


def _has_valid_timestamp(point: Any) -> bool:
    try:
        normalize_timestamp(get_field(point, 'timestamp'))
    except InvalidTimestamp:
        return False
    return True


def validate_points(points: Sequence[Any], fields: Iterable[str] = ()) -> PointValidationResult:
    """
    Check timestamps and field values of data points.

    Args:
        points: Data points to check
        fields: Fields whose non-numeric values should be counted

    Returns:
        PointValidationResult
    """
    fields = unique_fields(fields)
    invalid = [i for i, point in enumerate(points) if not _has_valid_timestamp(point)]

    non_numeric = {}
    for name in fields:
        values = (coerce_numeric(get_field(point, name)) for point in points)
        non_numeric[name] = sum(1 for v in values if v is not None and math.isnan(v))

    if not points:
        status = 'EMPTY'
    elif invalid:
        status = 'INVALID_TIMESTAMPS'
    else:
        status = 'VALID'

    return PointValidationResult(
        status=status,
        total_points=len(points),
        valid_points=len(points) - len(invalid),
        invalid_timestamp_indices=invalid,
        non_numeric_counts=non_numeric,
    )


def filter_valid_points(points: Sequence[Any]) -> List[Any]:
    """
    Keep only the points whose timestamp can be normalized.

    Args:
        points: Data points

    Returns:
        New list with the usable points, in input order
    """
    kept = [point for point in points if _has_valid_timestamp(point)]
    dropped = len(points) - len(kept)
    if dropped:
        logger.warning(f"Dropped {dropped} of {len(points)} points with invalid timestamps")
    return kept

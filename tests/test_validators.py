"""
Test Suite for Data Point Validation

Run tests with: pytest test_validators.py -v
"""

import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from chart_timeseries import (
    PointValidationResult,
    TimeSeriesOptions,
    create_time_series,
    filter_valid_points,
    validate_points,
)

POINTS = [
    {'timestamp': datetime(2024, 3, 5, 9), 'v': 1},
    {'timestamp': 'not-a-date', 'v': 2},
    {'timestamp': '1709629200', 'v': 'abc'},
    {'v': 4},
    {'timestamp': '2024-03-05T10:00:00Z'},
]


def test_validate_points():
    result = validate_points(POINTS, fields=['v'])

    assert isinstance(result, PointValidationResult)
    assert result.status == 'INVALID_TIMESTAMPS'
    assert result.total_points == 5
    assert result.valid_points == 3
    assert result.invalid_timestamp_indices == [1, 3]
    assert result.non_numeric_counts == {'v': 1}
    assert not result.is_valid


def test_validate_clean_and_empty():
    assert validate_points(POINTS[:1]).status == 'VALID'
    assert validate_points(POINTS[:1]).is_valid

    empty = validate_points([])
    assert empty.status == 'EMPTY'
    assert empty.total_points == 0


def test_report():
    report = str(validate_points(POINTS, fields=['v']))

    assert "DATA POINT VALIDATION REPORT" in report
    assert "INVALID_TIMESTAMPS" in report
    assert "Invalid timestamp at index: 1, 3" in report


def test_filter_valid_points_allows_partial_tolerance():
    """Pre-filtered points can be fed to the engine, which rejects the raw ones."""
    kept = filter_valid_points(POINTS)

    assert kept == [POINTS[0], POINTS[2], POINTS[4]]

    options = TimeSeriesOptions(granularity='day', interval_unit='day', interval_length=0, aggregation='count')
    records = create_time_series(kept, ['v'], options, now=datetime(2024, 3, 5, 12))
    assert records == [{'timestamp': 'Mar 5', 'v': 3}]

"""
Comprehensive Test Suite for Time Series Generation

Tests the full pipeline: window, ticks, bucketing, display/storage
aggregation, carry-forward and labels.

Run tests with: pytest test_time_series.py -v
"""

import copy
import sys
from datetime import datetime, timedelta
from pathlib import Path
from types import SimpleNamespace

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import numpy as np
import polars as pl
import pytest

from chart_timeseries import (
    InvalidTimestamp,
    TimeRange,
    TimeSeriesError,
    TimeSeriesOptions,
    UnsupportedAggregation,
    UnsupportedGranularity,
    create_time_series,
    create_time_series_frame,
)

NOW = datetime(2024, 3, 5, 12, 0)


def daily_options(days=2, **kwargs):
    return TimeSeriesOptions(granularity='day', interval_unit='day', interval_length=days, **kwargs)


def values_of(records, field='v'):
    return [record[field] for record in records]


def test_count_scenario():
    """
    Three points today, two-day window, count aggregation.

    Verifies:
    - 3 ticks (window of 2 days plus today)
    - today's tick counts all three points
    - other ticks emit 0
    """
    print("\n=== Count over a 2-day window ===")

    points = [
        {'timestamp': datetime(2024, 3, 5, 1, 0)},
        {'timestamp': "2024-03-05T08:30:00Z"},
        {'timestamp': 1709639940},  # 2024-03-05T11:59:00Z in seconds
    ]
    records = create_time_series(points, ['transfers'], daily_options(aggregation='count'), now=NOW)

    print(records)
    assert len(records) == 3, "Window of 2 days should have 3 ticks"
    assert [r['timestamp'] for r in records] == ['Mar 3', 'Mar 4', 'Mar 5']
    assert values_of(records, 'transfers') == [0, 0, 3]

    print("✓ Test passed!")


def test_seconds_and_milliseconds_share_a_bucket():
    """'1700000000' and '1700000000000' land on the same daily tick."""
    points = [
        {'timestamp': "1700000000", 'v': 1},
        {'timestamp': "1700000000000", 'v': 1},
    ]
    options = daily_options(days=1, aggregation='count')
    records = create_time_series(points, ['v'], options, now=datetime(2023, 11, 15, 6))

    assert [r['timestamp'] for r in records] == ['Nov 14', 'Nov 15']
    assert values_of(records) == [2, 0]


def test_historical_seed_fills_window():
    """A value before the window is carried through every tick."""
    points = [
        {'timestamp': "2024-02-20T10:00:00Z", 'v': 42},
        {'timestamp': "2024-03-03T10:00:00Z", 'other': 1},
        {'timestamp': "2024-03-05T09:00:00Z", 'other': 2},
    ]
    options = daily_options(days=3, aggregation='last', accumulation='current', historical=True)
    records = create_time_series(points, ['v'], options, now=NOW)

    assert len(records) == 4
    assert values_of(records) == [42, 42, 42, 42]


def test_without_historical_seed_starts_at_zero():
    points = [{'timestamp': "2024-02-20T10:00:00Z", 'v': 42}]
    options = daily_options(days=3, aggregation='last', accumulation='current')

    assert values_of(create_time_series(points, ['v'], options, now=NOW)) == [0, 0, 0, 0]


def test_carry_persists_on_gaps():
    """Ticks without data repeat the last known value."""
    points = [
        {'timestamp': datetime(2024, 3, 2, 10), 'v': 10},
        {'timestamp': datetime(2024, 3, 5, 10), 'v': 20},
    ]
    options = daily_options(days=3, aggregation='last', accumulation='current')
    records = create_time_series(points, ['v'], options, now=NOW)

    assert values_of(records) == [10, 10, 10, 20]


def test_no_accumulation_emits_zero_for_gaps():
    points = [
        {'timestamp': datetime(2024, 3, 2, 10), 'v': 10},
        {'timestamp': datetime(2024, 3, 5, 10), 'v': 20},
    ]
    options = daily_options(days=3, aggregation='last')

    assert values_of(create_time_series(points, ['v'], options, now=NOW)) == [10, 0, 0, 20]


def test_display_and_storage_aggregations_differ():
    """
    Emitted values come from the display sum, carried values from the storage 'last'.

    Mar 3: sum 5 + carry 0 = 5, carry becomes 3
    Mar 4: no data, emits carry 3
    Mar 5: sum 4 + carry 3 = 7
    """
    points = [
        {'timestamp': datetime(2024, 3, 3, 9), 'v': 2},
        {'timestamp': datetime(2024, 3, 3, 17), 'v': 3},
        {'timestamp': datetime(2024, 3, 5, 9), 'v': 4},
    ]
    options = daily_options(
        aggregation={'display': 'sum', 'storage': 'last'},
        accumulation='total',
    )
    assert values_of(create_time_series(points, ['v'], options, now=NOW)) == [5, 3, 7]


def test_max_accumulation():
    points = [
        {'timestamp': datetime(2024, 3, 3, 9), 'v': 5},
        {'timestamp': datetime(2024, 3, 4, 9), 'v': 2},
        {'timestamp': datetime(2024, 3, 5, 9), 'v': 3},
    ]
    options = daily_options(aggregation='max', accumulation='max')

    # Carry follows the storage value of the previous tick, not the running max
    assert values_of(create_time_series(points, ['v'], options, now=NOW)) == [5, 5, 3]


def test_zero_value_falls_back_to_carry():
    """A bucket whose value is exactly 0 behaves like an empty bucket."""
    points = [
        {'timestamp': datetime(2024, 3, 3, 9), 'v': 5},
        {'timestamp': datetime(2024, 3, 4, 9), 'v': 0},
    ]
    options = daily_options(aggregation='last', accumulation='current')

    assert values_of(create_time_series(points, ['v'], options, now=NOW)) == [5, 5, 5]


def test_total_accumulation_is_non_decreasing():
    """
    Running totals stay monotonic when every tick has data and the
    recorded values never decrease.
    """
    rng = np.random.default_rng(42)
    supply = np.cumsum(rng.integers(1, 50, size=31))
    points = [
        {'timestamp': datetime(2024, 2, 4, 12) + timedelta(days=i), 'supply': int(value)}
        for i, value in enumerate(supply)
    ]
    options = daily_options(days=30, aggregation='last', accumulation='total')
    emitted = values_of(create_time_series(points, ['supply'], options, now=NOW), 'supply')

    assert len(emitted) == 31
    assert all(b >= a for a, b in zip(emitted, emitted[1:]))


def test_multiple_fields():
    points = [
        {'timestamp': datetime(2024, 3, 5, 9), 'mint': 3, 'burn': "1"},
        {'timestamp': datetime(2024, 3, 5, 10), 'mint': 2},
    ]
    records = create_time_series(points, ['mint', 'burn'], daily_options(days=1, aggregation='sum'), now=NOW)

    assert records[-1] == {'timestamp': 'Mar 5', 'mint': 5, 'burn': 1}
    assert records[0] == {'timestamp': 'Mar 4', 'mint': 0, 'burn': 0}


def test_hourly_series():
    points = [
        {'timestamp': datetime(2024, 3, 5, 11, 15), 'v': 1},
        {'timestamp': datetime(2024, 3, 5, 11, 45), 'v': 2},
    ]
    options = TimeSeriesOptions(granularity='hour', interval_unit='day', interval_length=1, aggregation='sum')
    records = create_time_series(points, ['v'], options, now=datetime(2024, 3, 5, 12, 30))

    assert len(records) == 25
    assert records[23] == {'timestamp': '11:00, Mar 5', 'v': 3}
    assert records[-1]['timestamp'] == '12:00, Mar 5'


def test_monthly_series():
    """Points are bucketed by month, including the month the window starts in."""
    points = [
        {'timestamp': datetime(2024, 1, 3), 'v': 1},
        {'timestamp': datetime(2024, 3, 10), 'v': 2},
    ]
    options = TimeSeriesOptions(granularity='month', interval_unit='month', interval_length=2, aggregation='sum')
    records = create_time_series(points, ['v'], options, now=datetime(2024, 3, 15))

    assert [r['timestamp'] for r in records] == ['Jan 2024', 'Feb 2024', 'Mar 2024']
    assert values_of(records) == [1, 0, 2]


def test_explicit_time_range():
    points = [{'timestamp': datetime(2024, 3, 2, 5), 'v': 4}]
    options = TimeSeriesOptions(granularity='day', aggregation='sum')
    records = create_time_series(
        points, ['v'], options, time_range=TimeRange(start='2024-03-01', end='2024-03-03')
    )

    assert [r['timestamp'] for r in records] == ['Mar 1', 'Mar 2', 'Mar 3']
    assert values_of(records) == [0, 4, 0]


def test_options_as_mapping_and_custom_formatter():
    points = [{'timestamp': datetime(2024, 3, 5, 9), 'v': 1}]
    records = create_time_series(
        points,
        ['v'],
        {'granularity': 'day', 'interval_unit': 'day', 'interval_length': 1, 'aggregation': 'count'},
        locale='de',
        now=NOW,
        formatter=lambda instant, granularity, locale: f"{instant:%Y-%m-%d}/{granularity.value}/{locale}",
    )

    assert [r['timestamp'] for r in records] == ['2024-03-04/day/de', '2024-03-05/day/de']


def test_locale_is_passed_to_default_formatter():
    points = [{'timestamp': datetime(2024, 3, 5, 9), 'v': 1}]
    options = TimeSeriesOptions(granularity='month', interval_unit='month', interval_length=0, aggregation='count')
    records = create_time_series(points, ['v'], options, locale='de', now=NOW)

    assert records == [{'timestamp': 'März 2024', 'v': 1}]


def test_attribute_style_points():
    points = [SimpleNamespace(timestamp=datetime(2024, 3, 5, 9), v=6)]
    records = create_time_series(points, ['v'], daily_options(days=0, aggregation='sum'), now=NOW)

    assert records == [{'timestamp': 'Mar 5', 'v': 6}]


def test_frame_output():
    points = [{'timestamp': datetime(2024, 3, 5, 9), 'v': 1}]
    frame = create_time_series_frame(points, ['v', 'v'], daily_options(days=6, aggregation='sum'), now=NOW)

    assert frame.columns == ['timestamp', 'v']
    assert frame.schema['timestamp'] == pl.Datetime('us')
    assert frame.schema['v'] == pl.Float64
    assert frame.height == 7
    assert frame['timestamp'][0] == datetime(2024, 2, 28)
    assert frame['v'].to_list() == [0, 0, 0, 0, 0, 0, 1]


def test_no_points():
    records = create_time_series([], ['v'], daily_options(aggregation='sum', accumulation='total'), now=NOW)
    assert values_of(records) == [0, 0, 0]


def test_timestamp_field_name_is_reserved():
    """A field named like the tick column would overwrite the labels."""
    points = [{'timestamp': datetime(2024, 3, 5, 9)}]
    with pytest.raises(TimeSeriesError, match="Reserved field name"):
        create_time_series(points, ['timestamp'], daily_options(aggregation='count'), now=NOW)


def test_invalid_timestamp_fails_whole_call():
    points = [
        {'timestamp': datetime(2024, 3, 5, 9), 'v': 1},
        {'timestamp': 'not-a-date', 'v': 2},
    ]
    with pytest.raises(InvalidTimestamp):
        create_time_series(points, ['v'], daily_options(aggregation='sum'), now=NOW)


def test_invalid_options():
    with pytest.raises(UnsupportedGranularity):
        create_time_series([], ['v'], {'granularity': 'minute'}, now=NOW)
    with pytest.raises(UnsupportedAggregation):
        create_time_series([], ['v'], {'granularity': 'day', 'aggregation': 'median'}, now=NOW)


def test_caller_data_is_not_modified():
    points = [
        {'timestamp': "2024-03-04T09:00:00Z", 'v': "3"},
        {'timestamp': 1709629200, 'v': 4},
    ]
    snapshot = copy.deepcopy(points)
    create_time_series(points, ['v'], daily_options(aggregation='sum', historical=True), now=NOW)

    assert points == snapshot


def run_all_tests():
    """Run all test functions."""
    print("=" * 70)
    print("TIME SERIES - COMPREHENSIVE TEST SUITE")
    print("=" * 70)

    tests = [
        test_count_scenario,
        test_seconds_and_milliseconds_share_a_bucket,
        test_historical_seed_fills_window,
        test_without_historical_seed_starts_at_zero,
        test_carry_persists_on_gaps,
        test_no_accumulation_emits_zero_for_gaps,
        test_display_and_storage_aggregations_differ,
        test_max_accumulation,
        test_zero_value_falls_back_to_carry,
        test_total_accumulation_is_non_decreasing,
        test_multiple_fields,
        test_hourly_series,
        test_monthly_series,
        test_explicit_time_range,
        test_options_as_mapping_and_custom_formatter,
        test_locale_is_passed_to_default_formatter,
        test_attribute_style_points,
        test_frame_output,
        test_no_points,
        test_timestamp_field_name_is_reserved,
        test_invalid_timestamp_fails_whole_call,
        test_invalid_options,
        test_caller_data_is_not_modified,
    ]

    passed = 0
    failed = 0

    for test_func in tests:
        try:
            test_func()
            passed += 1
        except AssertionError as e:
            print(f"\n✗ Test failed: {test_func.__name__}")
            print(f"Error: {str(e)}")
            failed += 1

    print("\n" + "=" * 70)
    print(f"TEST RESULTS: {passed} passed, {failed} failed")
    print("=" * 70)

    return failed == 0


if __name__ == "__main__":
    success = run_all_tests()
    exit(0 if success else 1)

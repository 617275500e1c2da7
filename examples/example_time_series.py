"""
Example Usage of the Time Series Module

This script demonstrates how to turn raw timestamped events into
chart-ready series at different granularities.
"""

import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent))
from chart_timeseries import (
    TimeSeriesOptions,
    create_time_series,
    create_time_series_frame,
    filter_valid_points,
    validate_points,
)

logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

NOW = datetime(2024, 3, 5, 12, 0)


def create_synthetic_events(n_events: int = 500, days: int = 45):
    """Random mint/burn events with mixed timestamp encodings."""
    rng = np.random.default_rng(42)
    offsets = rng.integers(0, days * 86400, size=n_events)
    events = []
    for i, offset in enumerate(sorted(offsets)):
        instant = NOW - timedelta(seconds=int(offset))
        # Cycle through the encodings found in real payloads
        if i % 3 == 0:
            timestamp = instant
        elif i % 3 == 1:
            timestamp = instant.isoformat() + 'Z'
        else:
            timestamp = str(int((instant - datetime(1970, 1, 1)).total_seconds() * 1000))
        events.append({
            'timestamp': timestamp,
            'minted': float(rng.exponential(100)),
            'burned': str(round(float(rng.exponential(20)), 2)),
        })
    return events


def example_daily_volume():
    """Example: Daily sums over the last week"""
    print("=" * 70)
    print("EXAMPLE 1: Daily Volume")
    print("=" * 70)

    events = create_synthetic_events()
    options = TimeSeriesOptions(
        granularity='day',
        interval_unit='week',
        interval_length=1,
        aggregation='sum',
    )
    for record in create_time_series(events, ['minted', 'burned'], options, now=NOW):
        print(record)


def example_running_supply():
    """Example: Running total with historical seed, as a DataFrame"""
    print("\n" + "=" * 70)
    print("EXAMPLE 2: Running Supply")
    print("=" * 70)

    events = create_synthetic_events()
    options = TimeSeriesOptions(
        granularity='day',
        interval_unit='month',
        interval_length=1,
        aggregation={'display': 'sum', 'storage': 'sum'},
        accumulation='total',
        historical=True,
    )
    df = create_time_series_frame(events, ['minted'], options, now=NOW)
    print(df.head(10))


def example_dirty_input():
    """Example: Validate and pre-filter points before bucketing"""
    print("\n" + "=" * 70)
    print("EXAMPLE 3: Dirty Input")
    print("=" * 70)

    events = create_synthetic_events(n_events=50)
    events.append({'timestamp': 'unknown', 'minted': 5})

    print(validate_points(events, fields=['minted', 'burned']))

    options = TimeSeriesOptions(granularity='month', interval_unit='month', interval_length=2, aggregation='count')
    records = create_time_series(filter_valid_points(events), ['minted'], options, locale='de', now=NOW)
    for record in records:
        print(record)


if __name__ == "__main__":
    example_daily_volume()
    example_running_supply()
    example_dirty_input()

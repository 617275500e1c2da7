"""
Chart label formatting for ticks.
"""

import logging
from datetime import datetime
from typing import Any

from chart_timeseries.config import DEFAULT_LOCALE, MONTH_ABBREVIATIONS
from chart_timeseries.exceptions import UnsupportedGranularity
from chart_timeseries.options import Granularity
from chart_timeseries.timestamp_utils import normalize_timestamp

logger = logging.getLogger(__name__)


def month_abbreviation(month: int, locale: str = DEFAULT_LOCALE) -> str:
    """Abbreviated month name; region suffixes ('de-CH') use the language table."""
    language = (locale or DEFAULT_LOCALE).replace('_', '-').split('-')[0].lower()
    names = MONTH_ABBREVIATIONS.get(language)
    if names is None:
        logger.debug(f"No month names for locale '{locale}', using '{DEFAULT_LOCALE}'")
        names = MONTH_ABBREVIATIONS[DEFAULT_LOCALE]
    return names[month - 1]


def format_chart_date(value: Any, granularity: Granularity, locale: str = DEFAULT_LOCALE) -> str:
    """
    Render a tick as a chart label.

    Patterns:
        hour  -> 'HH:mm, MMM d'  (e.g. '14:00, Mar 5')
        day   -> 'MMM d'         (e.g. 'Mar 5')
        month -> 'MMM yyyy'      (e.g. 'Mar 2024')

    Args:
        value: Tick instant in any supported timestamp encoding
        granularity: Bucket size of the series
        locale: Language tag selecting month names ('en', 'de', 'ja', 'ar')

    Returns:
        Label string

    Raises:
        InvalidTimestamp: If value is not a valid timestamp
        UnsupportedGranularity: If granularity is not supported
    """
    granularity = Granularity.parse(granularity)
    instant: datetime = normalize_timestamp(value)
    month = month_abbreviation(instant.month, locale)

    if granularity == Granularity.HOUR:
        return f"{instant:%H:%M}, {month} {instant.day}"
    elif granularity == Granularity.DAY:
        return f"{month} {instant.day}"
    elif granularity == Granularity.MONTH:
        return f"{month} {instant.year}"
    raise UnsupportedGranularity(
        f"Unknown granularity: {granularity!r}. Valid options: {[g.value for g in Granularity]}"
    )

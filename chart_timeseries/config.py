"""
Configuration constants and default settings for time series bucketing.
"""

from typing import Dict, List

# Internal column names used while bucketing points
INSTANT_COLUMN = '__instant__'
BUCKET_COLUMN = '__bucket__'

# Suffix of the storage aggregate columns joined next to the display ones
STORAGE_SUFFIX = '__storage__'

# Name of the tick column in the produced series
TIMESTAMP_COLUMN = 'timestamp'

# Field names that would clash with the columns above
RESERVED_FIELDS = (INSTANT_COLUMN, BUCKET_COLUMN, TIMESTAMP_COLUMN)

# Polars duration strings for each granularity (tick spacing and truncation)
GRANULARITY_DURATIONS: Dict[str, str] = {
    'hour': '1h',
    'day': '1d',
    'month': '1mo',
}

# relativedelta keyword used to step back by one interval unit
INTERVAL_UNIT_KEYWORDS: Dict[str, str] = {
    'year': 'years',
    'month': 'months',
    'week': 'weeks',
    'day': 'days',
}

# Epoch resolution thresholds, by decimal digit count of the integer part.
# A 13-digit value is always read as milliseconds even though it could be a
# (very distant) seconds count.
MILLISECOND_DIGITS = 13  # 1700000000000 -> milliseconds
MICROSECOND_DIGITS = 16  # 1700000000000000 -> microseconds

# Strings starting with a year-month-day are parsed as calendar dates first
CALENDAR_DATE_PATTERN = r'^\d{4}-\d{2}-\d{2}'

# Label formatting
DEFAULT_LOCALE = 'en'

MONTH_ABBREVIATIONS: Dict[str, List[str]] = {
    'en': ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
           'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec'],
    'de': ['Jan.', 'Feb.', 'März', 'Apr.', 'Mai', 'Juni',
           'Juli', 'Aug.', 'Sep.', 'Okt.', 'Nov.', 'Dez.'],
    'ja': ['1月', '2月', '3月', '4月', '5月', '6月',
           '7月', '8月', '9月', '10月', '11月', '12月'],
    'ar': ['يناير', 'فبراير', 'مارس', 'أبريل', 'مايو', 'يونيو',
           'يوليو', 'أغسطس', 'سبتمبر', 'أكتوبر', 'نوفمبر', 'ديسمبر'],
}

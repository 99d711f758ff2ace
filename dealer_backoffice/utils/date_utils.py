"""Date manipulation utilities

All bucketing works on whole calendar days. Timestamps are reduced to the
local calendar date of the business timezone before any comparison.
"""

import re
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

from dealer_backoffice.config import settings

ISO_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
MDY_DATE_PATTERN = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{2,4})$")
TIMESTAMP_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}")
OFFSET_PATTERN = re.compile(r"(Z|[+-]\d{2}(:?\d{2})?)$")


def business_tz() -> ZoneInfo:
    return ZoneInfo(settings.business_timezone)


def today_local() -> date:
    """Current calendar date in the business timezone"""
    return datetime.now(business_tz()).date()


def to_local_date(value: datetime | date) -> date:
    """Normalize a timestamp to its local calendar date (never UTC truncation)"""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(business_tz())
        return value.date()
    return value


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(value: object) -> Optional[date]:
    """
    Parse a date from the loosely-typed values found in store rows.

    Accepts date/datetime objects, "YYYY-MM-DD", "M/D/YYYY", "M-D-YY" and ISO
    timestamps (only the date part is read). Two-digit years pivot at 70.
    Anything unparseable yields None.
    """
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return to_local_date(value)

    trimmed = str(value).strip()
    if not trimmed:
        return None

    # A timestamp with an explicit offset must be shifted into local time first
    if TIMESTAMP_PATTERN.match(trimmed) and OFFSET_PATTERN.search(trimmed):
        try:
            return to_local_date(datetime.fromisoformat(trimmed.replace("Z", "+00:00")))
        except ValueError:
            return None

    primary = re.split(r"[T ]", trimmed)[0]

    iso_match = ISO_DATE_PATTERN.match(primary)
    if iso_match:
        year, month, day = (int(part) for part in iso_match.groups())
        return _safe_date(year, month, day)

    mdy_match = MDY_DATE_PATTERN.match(primary)
    if mdy_match:
        month_str, day_str, year_str = mdy_match.groups()
        year = int(year_str)
        if len(year_str) == 2:
            year += 1900 if year >= 70 else 2000
        return _safe_date(year, int(month_str), int(day_str))

    return None


def week_start(day: date) -> date:
    """Monday of the week containing the given date"""
    return day - timedelta(days=day.weekday())


def week_range(day: date) -> Tuple[date, date]:
    """Monday..Sunday span of the week containing the given date"""
    start = week_start(day)
    return start, start + timedelta(days=6)


def year_first_week_start(year: int) -> date:
    """Monday on or before January 1 of the given year"""
    return week_start(date(year, 1, 1))


def format_date_key(day: date) -> str:
    return day.isoformat()


def generate_date_range(start: date, end: date) -> List[date]:
    """Generate list of dates from start to end (inclusive)"""
    days = (end - start).days + 1
    return [start + timedelta(days=i) for i in range(days)]

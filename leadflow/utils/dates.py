# leadflow/utils/dates.py
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union

DateLike = Union[date, datetime]


def start_of_day(value: Optional[DateLike]) -> Optional[datetime]:
    """Lower bound (inclusive) for a date filter."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def end_of_day(value: Optional[DateLike]) -> Optional[datetime]:
    """Upper bound (exclusive) for a date filter.

    A bare date covers the whole day, so the bound is midnight of the next
    day. A datetime is taken as-is and nudged by one microsecond so that
    ``< bound`` still includes it.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        value = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return value + timedelta(microseconds=1)
    return datetime.combine(value + timedelta(days=1), time.min, tzinfo=timezone.utc)


def month_key(value: DateLike) -> str:
    return value.strftime("%Y-%m")

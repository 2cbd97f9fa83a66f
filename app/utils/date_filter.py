# app/utils/date_filter.py
from datetime import date, datetime, time, timezone
from typing import Optional, Tuple


def utcnow() -> datetime:
    """Naive UTC timestamp; every stored datetime uses this convention."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def get_date_range(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Inclusive bounds for a ``created_at`` filter.
    The end bound is pushed to the last microsecond of its day.
    """
    start = datetime.combine(start_date, time.min) if start_date else None
    end = datetime.combine(end_date, time.max) if end_date else None
    return start, end


def created_between(column, start_date: Optional[date] = None, end_date: Optional[date] = None) -> list:
    start, end = get_date_range(start_date, end_date)
    filters = []
    if start:
        filters.append(column >= start)
    if end:
        filters.append(column <= end)
    return filters

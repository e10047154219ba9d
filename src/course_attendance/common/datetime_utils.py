from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional, Union

from ..core.exceptions import ValidationError

DateLike = Union[date, datetime, str]


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def normalize_date_only(value: DateLike) -> date:
    """Strip the time of day so day comparisons are exact."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return parse_iso_date(value)
    raise ValidationError(f"Invalid date: {value!r}")


def days_diff_from_today(value: DateLike, *, today: Optional[date] = None) -> int:
    """Signed day offset of ``value`` relative to today (past is negative)."""
    today = today or now_local().date()
    return (normalize_date_only(value) - today).days


def is_next_day(previous: date, current: date) -> bool:
    return current - previous == timedelta(days=1)


def format_iso_date(value: Optional[date]) -> str:
    return value.strftime("%Y-%m-%d") if value else ""

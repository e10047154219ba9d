from __future__ import annotations

from datetime import date
from typing import Optional

from ..common.datetime_utils import DateLike, normalize_date_only
from ..common.validators import require
from ..core.exceptions import ValidationError
from ..courses.model import Course
from .model import DateRange


def assert_date_within_course_schedule(course: Course, target: DateLike) -> None:
    day = normalize_date_only(target)
    require(
        normalize_date_only(course.start_date) <= day <= normalize_date_only(course.end_date),
        ValidationError,
        "Attendance date must fall within course schedule",
    )


def clamp_date_range_to_course(
    course: Course,
    from_date: Optional[DateLike] = None,
    to_date: Optional[DateLike] = None,
) -> DateRange:
    """Pull a read range inside the course window; open bounds take the course bounds."""
    start = normalize_date_only(course.start_date)
    end = normalize_date_only(course.end_date)

    clamped_from = max(normalize_date_only(from_date), start) if from_date else start
    clamped_to = min(normalize_date_only(to_date), end) if to_date else end

    require(clamped_from <= clamped_to, ValidationError, "Date range must overlap with course schedule")
    return DateRange(start=clamped_from, end=clamped_to)


def build_date_range_filter(
    from_date: Optional[DateLike] = None,
    to_date: Optional[DateLike] = None,
) -> Optional[DateRange]:
    """Inclusive range on whole days, or None when neither bound is set.

    Callers must drop the date constraint entirely on None.
    """
    if not from_date and not to_date:
        return None
    return DateRange(
        start=normalize_date_only(from_date) if from_date else None,
        end=normalize_date_only(to_date) if to_date else None,
    )


def is_future(target: date, today: date) -> bool:
    return normalize_date_only(target) > today

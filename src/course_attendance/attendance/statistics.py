"""Attendance rate, absence streak and risk computations.

Rates only count marked sessions (present or absent); ``not-yet`` records are
reported in the counts but never enter a denominator.
"""
from __future__ import annotations

from collections import OrderedDict
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from ..common.datetime_utils import is_next_day
from ..core.enums import AttendanceStatus
from ..users.model import UserProfile
from .model import AttendanceRecord


def empty_counts() -> Dict[AttendanceStatus, int]:
    return {status: 0 for status in AttendanceStatus}


def summary_from_counts(counts: Mapping[AttendanceStatus, int]) -> dict:
    summary = {"total": 0}
    for status in AttendanceStatus:
        summary[status.value] = int(counts.get(status, 0))
        summary["total"] += summary[status.value]
    return summary


def summarize_statuses(records: Iterable[AttendanceRecord]) -> dict:
    counts = empty_counts()
    for r in records:
        counts[r.status] += 1
    return summary_from_counts(counts)


def percentage(part: int, whole: int) -> float:
    if not whole:
        return 0
    return round(part / whole * 100, 2)


def compute_longest_absent_streak(records: Sequence[AttendanceRecord]) -> int:
    """Longest run of absences on consecutive calendar days.

    ``records`` must be one student's records sorted by date ascending.
    """
    longest = 0
    current = 0
    last_date = None

    for r in records:
        is_absent = r.status == AttendanceStatus.ABSENT
        if last_date is not None and is_absent and is_next_day(last_date, r.date):
            current += 1
        else:
            current = 1 if is_absent else 0
        longest = max(longest, current)
        last_date = r.date

    return longest


def group_by_student(records: Iterable[AttendanceRecord]) -> "OrderedDict[int, List[AttendanceRecord]]":
    grouped: "OrderedDict[int, List[AttendanceRecord]]" = OrderedDict()
    for r in records:
        grouped.setdefault(r.student_id, []).append(r)
    return grouped


def build_student_stats(
    student_id: int,
    records: Sequence[AttendanceRecord],
    *,
    threshold: float,
    student: Optional[UserProfile] = None,
) -> dict:
    counts = empty_counts()
    for r in records:
        counts[r.status] += 1

    present = counts[AttendanceStatus.PRESENT]
    absent = counts[AttendanceStatus.ABSENT]
    marked = present + absent
    absent_rate = percentage(absent, marked)

    return {
        "student_id": student_id,
        "student": student.to_dict() if student else None,
        "counts": {status.value: n for status, n in counts.items()},
        "total_sessions": len(records),
        "marked_count": marked,
        "attendance_rate": percentage(present, marked),
        "absent_rate": absent_rate,
        "longest_absent_streak": compute_longest_absent_streak(records),
        "alerts": {"high_absence": absent_rate >= threshold},
    }


def compute_class_attendance_rate(records: Iterable[AttendanceRecord]) -> float:
    present = absent = 0
    for r in records:
        if r.status == AttendanceStatus.PRESENT:
            present += 1
        elif r.status == AttendanceStatus.ABSENT:
            absent += 1
    return percentage(present, present + absent)

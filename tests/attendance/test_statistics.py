from datetime import date, datetime

import pytest

from course_attendance.attendance.model import AttendanceRecord
from course_attendance.attendance.params import StatsParams
from course_attendance.attendance.statistics import (
    build_student_stats,
    compute_class_attendance_rate,
    compute_longest_absent_streak,
)
from course_attendance.core.enums import AttendanceStatus, Role
from course_attendance.core.exceptions import AuthorizationError, ValidationError
from tests.conftest import COURSE_ID, OTHER_TEACHER_ID, OUTSIDER, STUDENT_A, STUDENT_B, TEACHER_ID

P = AttendanceStatus.PRESENT
A = AttendanceStatus.ABSENT
N = AttendanceStatus.NOT_YET


def _records(*pairs):
    stamp = datetime(2025, 3, 1)
    return [
        AttendanceRecord(i, COURSE_ID, STUDENT_A, day, status, TEACHER_ID, stamp, stamp)
        for i, (day, status) in enumerate(pairs, start=1)
    ]


def test_streak_counts_consecutive_days():
    recs = _records(
        (date(2025, 3, 1), A),
        (date(2025, 3, 2), A),
        (date(2025, 3, 4), A),
    )
    assert compute_longest_absent_streak(recs) == 2


def test_streak_resets_on_present():
    recs = _records(
        (date(2025, 3, 1), A),
        (date(2025, 3, 2), P),
        (date(2025, 3, 3), A),
    )
    assert compute_longest_absent_streak(recs) == 1


def test_streak_empty():
    assert compute_longest_absent_streak([]) == 0


def test_rates_exclude_not_yet():
    recs = _records(
        (date(2025, 3, 1), P),
        (date(2025, 3, 2), A),
        (date(2025, 3, 3), P),
        (date(2025, 3, 4), N),
    )
    stats = build_student_stats(STUDENT_A, recs, threshold=20)

    assert stats["total_sessions"] == 4
    assert stats["marked_count"] == 3
    assert stats["attendance_rate"] == 66.67
    assert stats["absent_rate"] == 33.33
    assert stats["attendance_rate"] + stats["absent_rate"] == pytest.approx(100, abs=0.01)
    assert stats["counts"] == {"not-yet": 1, "present": 2, "absent": 1}
    assert stats["alerts"]["high_absence"] is True


def test_no_marked_sessions_gives_zero_rates():
    stats = build_student_stats(STUDENT_A, _records((date(2025, 3, 1), N)), threshold=20)
    assert stats["attendance_rate"] == 0
    assert stats["absent_rate"] == 0
    assert stats["alerts"]["high_absence"] is False


def test_class_rate_counts_marked_only():
    recs = _records((date(2025, 3, 1), P), (date(2025, 3, 2), N), (date(2025, 3, 3), A), (date(2025, 3, 4), P))
    assert compute_class_attendance_rate(recs) == 66.67


def test_threshold_bounds():
    with pytest.raises(ValidationError):
        StatsParams(threshold=4)
    with pytest.raises(ValidationError):
        StatsParams.from_mapping({"threshold": "101"})
    assert StatsParams.from_mapping({}).threshold == 20


def test_course_stats_flags_students_at_risk(read_service, attendance):
    for day in (1, 2, 3):
        attendance.add(COURSE_ID, STUDENT_A, date(2025, 3, day), A)
        attendance.add(COURSE_ID, STUDENT_B, date(2025, 3, day), P)
    attendance.add(COURSE_ID, STUDENT_B, date(2025, 3, 4), A)
    # outside the requested window
    attendance.add(COURSE_ID, STUDENT_B, date(2025, 3, 20), A)

    stats = read_service.get_course_attendance_stats(
        COURSE_ID, StatsParams(threshold=30, to_date=date(2025, 3, 10)), TEACHER_ID, Role.TEACHER
    )

    assert stats["total_students"] == 2
    assert stats["total_records"] == 7
    assert stats["class_attendance_rate"] == 42.86
    assert [s["student_id"] for s in stats["students_at_risk"]] == [STUDENT_A]
    assert stats["students_at_risk"][0]["longest_absent_streak"] == 3
    assert stats["students_at_risk"][0]["student"]["fullname"] == "Student, User"


def test_course_stats_forbidden_for_other_teacher(read_service):
    with pytest.raises(AuthorizationError):
        read_service.get_course_attendance_stats(COURSE_ID, StatsParams(), OTHER_TEACHER_ID, Role.TEACHER)


def test_student_stats_requires_enrollment(read_service):
    with pytest.raises(ValidationError, match="not enrolled"):
        read_service.get_student_attendance_stats(COURSE_ID, OUTSIDER, StatsParams(), TEACHER_ID, Role.TEACHER)


def test_student_stats_survives_profile_failure(read_service, attendance, users):
    attendance.add(COURSE_ID, STUDENT_A, date(2025, 3, 3), P)
    users.broken = True

    stats = read_service.get_student_attendance_stats(COURSE_ID, STUDENT_A, StatsParams(), TEACHER_ID, Role.TEACHER)

    assert stats["student"] is None
    assert stats["attendance_rate"] == 100
    assert stats["course_id"] == COURSE_ID

from datetime import date

import pytest

from course_attendance.attendance.model import AttendanceEntry
from course_attendance.attendance.params import MarkAttendancePayload
from course_attendance.core.enums import AttendanceStatus, Role
from course_attendance.core.exceptions import AuthorizationError, ValidationError
from tests.conftest import COURSE_ID, OTHER_TEACHER_ID, OUTSIDER, STUDENT_A, STUDENT_B, TEACHER_ID, TODAY


def _entries(*pairs):
    return MarkAttendancePayload(
        course_id=COURSE_ID,
        date=TODAY,
        entries=tuple(AttendanceEntry(student_id=sid, status=s) for sid, s in pairs),
    )


def test_mark_creates_records_and_summary(mutation_service, attendance):
    result = mutation_service.mark_attendance(
        _entries((STUDENT_A, AttendanceStatus.PRESENT), (STUDENT_B, AttendanceStatus.ABSENT)),
        TEACHER_ID,
        Role.TEACHER,
    )

    assert result["message"] == "Attendance marked successfully"
    assert result["summary"] == {"total": 2, "not-yet": 0, "present": 1, "absent": 1}
    assert "errors" not in result
    assert {r["student_id"] for r in result["records"]} == {STUDENT_A, STUDENT_B}
    assert all(r["marked_by"] == TEACHER_ID for r in result["records"])
    assert len(attendance.records) == 2


def test_marking_twice_keeps_one_record(mutation_service, attendance):
    mutation_service.mark_attendance(_entries((STUDENT_A, AttendanceStatus.PRESENT)), TEACHER_ID, Role.TEACHER)
    result = mutation_service.mark_attendance(_entries((STUDENT_A, AttendanceStatus.ABSENT)), TEACHER_ID, Role.TEACHER)

    assert len(attendance.records) == 1
    assert result["records"][0]["status"] == "absent"


def test_not_yet_cannot_be_marked(mutation_service):
    with pytest.raises(ValidationError, match="Invalid status"):
        mutation_service.mark_attendance(_entries((STUDENT_A, AttendanceStatus.NOT_YET)), TEACHER_ID, Role.TEACHER)


def test_future_date_rejected(mutation_service):
    payload = MarkAttendancePayload(
        course_id=COURSE_ID,
        date=date(2025, 3, 11),
        entries=(AttendanceEntry(STUDENT_A, AttendanceStatus.PRESENT),),
    )
    with pytest.raises(ValidationError, match="Cannot mark future date"):
        mutation_service.mark_attendance(payload, TEACHER_ID, Role.TEACHER)


def test_non_member_rejects_whole_batch(mutation_service, attendance):
    with pytest.raises(ValidationError, match="Student not enrolled in course"):
        mutation_service.mark_attendance(
            _entries((STUDENT_A, AttendanceStatus.PRESENT), (OUTSIDER, AttendanceStatus.PRESENT)),
            TEACHER_ID,
            Role.TEACHER,
        )
    assert attendance.records == {}


def test_unassigned_teacher_cannot_mark(mutation_service):
    with pytest.raises(AuthorizationError):
        mutation_service.mark_attendance(_entries((STUDENT_A, AttendanceStatus.PRESENT)), OTHER_TEACHER_ID, Role.TEACHER)


def test_failed_entry_is_reported_without_aborting(mutation_service, attendance):
    attendance.failing_students.add(STUDENT_B)

    result = mutation_service.mark_attendance(
        _entries((STUDENT_A, AttendanceStatus.PRESENT), (STUDENT_B, AttendanceStatus.PRESENT)),
        TEACHER_ID,
        Role.TEACHER,
    )

    assert result["errors"] == [f"{STUDENT_B}: write failed"]
    assert [r["student_id"] for r in result["records"]] == [STUDENT_A]


def test_payload_from_mapping_parses_strings():
    payload = MarkAttendancePayload.from_mapping(
        {"course_id": "1", "date": "2025-03-10", "entries": [{"student_id": "100", "status": "present"}]}
    )
    assert payload.course_id == 1
    assert payload.date == date(2025, 3, 10)
    assert payload.entries == (AttendanceEntry(STUDENT_A, AttendanceStatus.PRESENT),)


def test_payload_requires_entries():
    with pytest.raises(ValidationError):
        MarkAttendancePayload.from_mapping({"course_id": 1, "date": "2025-03-10", "entries": []})


def test_date_before_course_start_rejected(mutation_service, attendance):
    payload = MarkAttendancePayload(
        course_id=COURSE_ID,
        date=date(2025, 2, 28),
        entries=(AttendanceEntry(STUDENT_A, AttendanceStatus.PRESENT),),
    )
    with pytest.raises(ValidationError, match="Attendance date must fall within course schedule"):
        mutation_service.mark_attendance(payload, TEACHER_ID, Role.TEACHER)
    assert attendance.records == {}

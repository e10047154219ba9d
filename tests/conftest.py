from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Dict, Optional

import pytest

from course_attendance.attendance.bulk import AttendanceMutationService
from course_attendance.attendance.model import (
    AttendanceFilter,
    AttendanceRecord,
    AttendanceView,
    CourseSummary,
    SortSpec,
    UpsertOutcome,
)
from course_attendance.attendance.permissions import PermissionGate
from course_attendance.attendance.service import AttendanceService
from course_attendance.core.enums import AttendanceStatus, Role
from course_attendance.courses.model import Course
from course_attendance.notifications.mailer import MailResult
from course_attendance.notifications.service import AbsenceNotificationService
from course_attendance.users.model import UserProfile

FIXED_NOW = datetime(2025, 3, 10, 9, 0, 0)
TODAY = FIXED_NOW.date()

ADMIN_ID = 1
TEACHER_ID = 10
OTHER_TEACHER_ID = 11
STUDENT_A = 100
STUDENT_B = 101
STUDENT_C = 102
OUTSIDER = 103

COURSE_ID = 1
OTHER_COURSE_ID = 2


def in_range(date_range, value) -> bool:
    if date_range is None:
        return True
    if date_range.start and value < date_range.start:
        return False
    if date_range.end and value > date_range.end:
        return False
    return True


def matches(flt: AttendanceFilter, record: AttendanceRecord) -> bool:
    """Same predicates the MySQL repository turns into WHERE clauses."""
    for field_name in ("course_id", "student_id", "marked_by", "status"):
        wanted = getattr(flt, field_name)
        if wanted is not None and getattr(record, field_name) != wanted:
            return False
    return in_range(flt.date_range, record.date)


class InMemoryCourses:
    def __init__(self, courses):
        self.courses: Dict[int, Course] = {c.course_id: c for c in courses}
        self.lookups = 0

    def get_by_id(self, course_id: int) -> Optional[Course]:
        self.lookups += 1
        return self.courses.get(course_id)


class InMemoryEnrollments:
    def __init__(self, approved):
        # {course_id: {student_id, ...}}
        self.approved = approved

    def list_approved_student_ids(self, *, course_id, student_ids):
        enrolled = self.approved.get(course_id, set())
        return {int(s) for s in student_ids if int(s) in enrolled}


class InMemoryUsers:
    def __init__(self, users):
        self.users: Dict[int, UserProfile] = {u.user_id: u for u in users}
        self.broken = False

    def get_by_id(self, user_id: int) -> Optional[UserProfile]:
        if self.broken:
            raise RuntimeError("user service unavailable")
        return self.users.get(user_id)

    def get_many(self, user_ids):
        if self.broken:
            raise RuntimeError("user service unavailable")
        return {uid: self.users[uid] for uid in user_ids if uid in self.users}


class InMemoryAttendance:
    """Keyed like the real table: one record per (course, student, date)."""

    def __init__(self, courses: InMemoryCourses, users: InMemoryUsers, clock=lambda: FIXED_NOW):
        self._courses = courses
        self._users = users
        self._clock = clock
        self.records: Dict[int, AttendanceRecord] = {}
        self.failing_students = set()
        self._id = 0

    def add(self, course_id, student_id, day, status, *, marked_by=TEACHER_ID, created_at=None) -> AttendanceRecord:
        self._id += 1
        stamp = created_at or self._clock()
        rec = AttendanceRecord(
            attendance_id=self._id,
            course_id=course_id,
            student_id=student_id,
            date=day,
            status=status,
            marked_by=marked_by,
            created_at=stamp,
            updated_at=stamp,
        )
        self.records[rec.attendance_id] = rec
        return rec

    def _select(self, flt: AttendanceFilter, sort: SortSpec):
        items = [r for r in self.records.values() if matches(flt, r)]
        items.sort(key=lambda r: (getattr(r, sort.field), r.attendance_id), reverse=sort.descending)
        return items

    def _view(self, rec: AttendanceRecord) -> AttendanceView:
        course = self._courses.courses.get(rec.course_id)
        return AttendanceView(
            record=rec,
            student=self._users.users.get(rec.student_id),
            course=CourseSummary(course.course_id, course.title, course.code) if course else None,
            marker=self._users.users.get(rec.marked_by),
        )

    def find(self, filter, *, sort, skip=0, limit=None):
        items = self._select(filter, sort)[skip:]
        if limit is not None:
            items = items[:limit]
        return [self._view(r) for r in items]

    def count(self, filter):
        return sum(1 for r in self.records.values() if matches(filter, r))

    def count_by_status(self, filter):
        counts = {}
        for r in self.records.values():
            if matches(filter, r):
                counts[r.status] = counts.get(r.status, 0) + 1
        return counts

    def list_records(self, filter, *, sort):
        return self._select(filter, sort)

    def get_by_id(self, attendance_id):
        return self.records.get(attendance_id)

    def get_by_ids(self, attendance_ids):
        return [self.records[i] for i in attendance_ids if i in self.records]

    def upsert_many(self, *, course_id, attendance_date, entries, marked_by):
        outcomes = []
        for e in entries:
            if e.student_id in self.failing_students:
                outcomes.append(UpsertOutcome(student_id=e.student_id, ok=False, error="write failed"))
                continue
            existing = next(
                (
                    r
                    for r in self.records.values()
                    if (r.course_id, r.student_id, r.date) == (course_id, e.student_id, attendance_date)
                ),
                None,
            )
            if existing:
                self.records[existing.attendance_id] = replace(
                    existing, status=e.status, marked_by=marked_by, updated_at=self._clock()
                )
            else:
                self.add(course_id, e.student_id, attendance_date, e.status, marked_by=marked_by)
            outcomes.append(UpsertOutcome(student_id=e.student_id, ok=True))
        return outcomes

    def update_status(self, *, attendance_id, status, marked_by):
        rec = self.records.get(attendance_id)
        if rec is None:
            return None
        rec = replace(rec, status=status, marked_by=marked_by, updated_at=self._clock())
        self.records[attendance_id] = rec
        return rec

    def delete_one(self, attendance_id):
        return self.records.pop(attendance_id, None) is not None

    def delete_many(self, attendance_ids):
        return sum(1 for i in attendance_ids if self.records.pop(i, None) is not None)

    def count_absences(self, *, course_id, student_id):
        return sum(
            1
            for r in self.records.values()
            if r.course_id == course_id and r.student_id == student_id and r.status == AttendanceStatus.ABSENT
        )


class FakeMailer:
    def __init__(self):
        self.sent = []
        self.failing_emails = set()
        self.raising_emails = set()

    def send_absence_notification(self, *, recipient, course, absent_count):
        if recipient.email in self.raising_emails:
            raise RuntimeError("mail transport crashed")
        if recipient.email in self.failing_emails:
            return MailResult(success=False, error="SMTP unavailable")
        self.sent.append((recipient.user_id, course.course_id, absent_count))
        return MailResult(success=True, message="Email sent successfully")


@pytest.fixture()
def courses():
    return InMemoryCourses(
        [
            Course(
                course_id=COURSE_ID,
                title="Intro to Databases",
                code="DB101",
                start_date=date(2025, 3, 1),
                end_date=date(2025, 3, 31),
                teacher_ids=frozenset({TEACHER_ID}),
            ),
            Course(
                course_id=OTHER_COURSE_ID,
                title="Algorithms",
                code="CS201",
                start_date=date(2025, 3, 1),
                end_date=date(2025, 3, 31),
                teacher_ids=frozenset({OTHER_TEACHER_ID}),
            ),
        ]
    )


@pytest.fixture()
def enrollments():
    return InMemoryEnrollments(
        {
            COURSE_ID: {STUDENT_A, STUDENT_B, STUDENT_C},
            OTHER_COURSE_ID: {STUDENT_A},
        }
    )


@pytest.fixture()
def users():
    return InMemoryUsers(
        [
            UserProfile(ADMIN_ID, "admin", "Site Admin", "admin@example.com", Role.ADMIN),
            UserProfile(TEACHER_ID, "tnguyen", "Teacher Nguyen", "t.nguyen@example.com", Role.TEACHER),
            UserProfile(OTHER_TEACHER_ID, "tle", None, "t.le@example.com", Role.TEACHER),
            UserProfile(STUDENT_A, "student_a", "Student, User", "a@example.com", Role.STUDENT),
            UserProfile(STUDENT_B, "student_b", None, "b@example.com", Role.STUDENT),
            UserProfile(STUDENT_C, "student_c", "Student C", None, Role.STUDENT),
            UserProfile(OUTSIDER, "outsider", "Out Sider", "out@example.com", Role.STUDENT),
        ]
    )


@pytest.fixture()
def attendance(courses, users):
    return InMemoryAttendance(courses, users)


@pytest.fixture()
def gate(courses, enrollments):
    return PermissionGate(courses, enrollments)


@pytest.fixture()
def mailer():
    return FakeMailer()


@pytest.fixture()
def read_service(attendance, users, gate):
    return AttendanceService(attendance, users, gate)


@pytest.fixture()
def mutation_service(attendance, gate):
    return AttendanceMutationService(attendance, gate, clock=lambda: FIXED_NOW)


@pytest.fixture()
def notification_service(attendance, users, gate, mailer):
    return AbsenceNotificationService(attendance, users, gate, mailer)

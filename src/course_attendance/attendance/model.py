from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import format_iso_date
from ..core.enums import AttendanceStatus, SortOrder
from ..users.model import UserProfile


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's status for one course day.

    At most one record exists per (course_id, student_id, date).
    """

    attendance_id: int
    course_id: int
    student_id: int
    date: date
    status: AttendanceStatus
    marked_by: Optional[int]
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict:
        return {
            "attendance_id": self.attendance_id,
            "course_id": self.course_id,
            "student_id": self.student_id,
            "date": format_iso_date(self.date),
            "status": self.status.value,
            "marked_by": self.marked_by,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class CourseSummary:
    course_id: int
    title: str
    code: Optional[str] = None


@dataclass(frozen=True)
class AttendanceView:
    """Read model: a record with student/course/marker display fields joined in."""

    record: AttendanceRecord
    student: Optional[UserProfile] = None
    course: Optional[CourseSummary] = None
    marker: Optional[UserProfile] = None

    def to_dict(self) -> dict:
        data = self.record.to_dict()
        data["student"] = self.student.to_dict() if self.student else None
        data["course"] = (
            {"course_id": self.course.course_id, "title": self.course.title, "code": self.course.code}
            if self.course
            else None
        )
        data["marked_by_user"] = self.marker.to_dict() if self.marker else None
        return data


@dataclass(frozen=True)
class DateRange:
    """Inclusive day range; either bound may be open."""

    start: Optional[date] = None
    end: Optional[date] = None


@dataclass(frozen=True)
class AttendanceFilter:
    course_id: Optional[int] = None
    student_id: Optional[int] = None
    marked_by: Optional[int] = None
    status: Optional[AttendanceStatus] = None
    date_range: Optional[DateRange] = None


@dataclass(frozen=True)
class SortSpec:
    field: str = "date"
    order: SortOrder = SortOrder.DESC

    @property
    def descending(self) -> bool:
        return self.order == SortOrder.DESC


@dataclass(frozen=True)
class AttendanceEntry:
    student_id: int
    status: AttendanceStatus


@dataclass(frozen=True)
class UpsertOutcome:
    student_id: int
    ok: bool
    error: Optional[str] = None

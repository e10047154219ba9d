from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Sequence, Union

from ..common.datetime_utils import days_diff_from_today, normalize_date_only, now_local
from ..common.validators import parse_id, parse_id_batch, require
from ..core.constants import MAX_EDIT_HOURS_FOR_TEACHER
from ..core.enums import AttendanceStatus, Role, SortOrder
from ..core.exceptions import AuthorizationError, DomainError, NotFoundError, ValidationError
from ..courses.model import Course
from .model import AttendanceFilter, AttendanceRecord, DateRange, SortSpec
from .params import MarkAttendancePayload, UpdateAttendancePayload
from .permissions import PermissionGate
from .repository import AttendanceRepository
from .statistics import summarize_statuses
from .temporal import assert_date_within_course_schedule, is_future

logger = logging.getLogger(__name__)

MARKABLE_STATUSES = frozenset({AttendanceStatus.PRESENT, AttendanceStatus.ABSENT})

IdOrIds = Union[int, str, Sequence[Any]]


def _is_batch(target: IdOrIds) -> bool:
    return isinstance(target, (list, tuple, set, frozenset))


class AttendanceMutationService:
    """Mark, update and delete attendance, one record at a time or in batches.

    Batches never roll back: every record succeeds or fails on its own and the
    failures come back as ``errors`` strings.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        gate: PermissionGate,
        *,
        clock: Callable[[], datetime] = now_local,
        max_edit_hours: int = MAX_EDIT_HOURS_FOR_TEACHER,
    ):
        self._attendance = attendance
        self._gate = gate
        self._clock = clock
        self._max_edit_hours = int(max_edit_hours)

    def mark_attendance(self, payload: MarkAttendancePayload, actor_id: int, role: Role) -> dict:
        require(payload.entries, ValidationError, "At least one attendance entry is required")
        require(
            all(e.status in MARKABLE_STATUSES for e in payload.entries),
            ValidationError,
            "Invalid status: entries must be present or absent",
        )

        day = normalize_date_only(payload.date)
        require(not is_future(day, self._clock().date()), ValidationError, "Cannot mark future date")

        course = self._gate.ensure_manage_permission(payload.course_id, actor_id, role)
        assert_date_within_course_schedule(course, day)

        student_ids = list(dict.fromkeys(e.student_id for e in payload.entries))
        self._gate.verify_students_belong_to_course(course.course_id, student_ids)

        outcomes = self._attendance.upsert_many(
            course_id=course.course_id,
            attendance_date=day,
            entries=payload.entries,
            marked_by=int(actor_id),
        )
        errors = [f"{o.student_id}: {o.error}" for o in outcomes if not o.ok]

        marked = set(student_ids)
        views = [
            v
            for v in self._attendance.find(
                AttendanceFilter(course_id=course.course_id, date_range=DateRange(start=day, end=day)),
                sort=SortSpec(field="date", order=SortOrder.ASC),
            )
            if v.record.student_id in marked
        ]
        logger.info(
            "Marked %d/%d entries for course %s on %s by %s",
            len(outcomes) - len(errors), len(outcomes), course.course_id, day, actor_id,
        )

        result = {
            "message": "Attendance marked successfully",
            "records": [v.to_dict() for v in views],
            "summary": summarize_statuses(v.record for v in views),
        }
        if errors:
            result["errors"] = errors
        return result

    def update_attendance(
        self,
        target: IdOrIds,
        payload: UpdateAttendancePayload,
        actor_id: int,
        role: Role,
    ) -> dict:
        require(payload.status, ValidationError, "status is required")
        now = self._clock()

        if not _is_batch(target):
            record = self._update_one(parse_id(target, "attendance id"), payload.status, actor_id, role, now)
            return record.to_dict()

        ids = parse_id_batch(
            target,
            field_name="attendance id",
            empty_message="At least one attendance ID is required",
            too_many_message="Cannot update more than 100 records at once",
        )

        updated: List[AttendanceRecord] = []
        errors: List[str] = []
        for attendance_id in ids:
            try:
                updated.append(self._update_one(attendance_id, payload.status, actor_id, role, now))
            except DomainError as e:
                logger.warning("Skipped update of attendance %s: %s", attendance_id, e)
                errors.append(f"{attendance_id}: {e}")

        result: Dict[str, Any] = {"updated": len(updated), "total": len(ids)}
        if payload.return_ids_only:
            result["ids"] = [r.attendance_id for r in updated]
        else:
            result["records"] = [r.to_dict() for r in updated]
        if errors:
            result["errors"] = errors
        return result

    def delete_attendance(self, target: IdOrIds, actor_id: int, role: Role) -> dict:
        single = not _is_batch(target)
        ids = parse_id_batch(
            [target] if single else target,
            field_name="attendance id",
            empty_message="At least one attendance ID is required",
            too_many_message="Cannot delete more than 100 records at once",
        )

        records = list(self._attendance.get_by_ids(ids))
        require(records, NotFoundError, "No attendance records found")
        require(len(records) == len(ids), ValidationError, "Some attendance records were not found")

        courses: Dict[int, Course] = {}
        today = self._clock().date()

        if single:
            record = records[0]
            self._check_deletable(record, actor_id, role, courses, today)
            deleted = self._attendance.delete_one(record.attendance_id)
            return {"deleted": bool(deleted), "record": record.to_dict()}

        deletable: List[AttendanceRecord] = []
        errors: List[str] = []
        for record in records:
            try:
                self._check_deletable(record, actor_id, role, courses, today)
                deletable.append(record)
            except DomainError as e:
                logger.warning("Skipped delete of attendance %s: %s", record.attendance_id, e)
                errors.append(f"{record.attendance_id}: {e}")

        deleted_count = self._attendance.delete_many([r.attendance_id for r in deletable]) if deletable else 0

        result: Dict[str, Any] = {
            "deleted": deleted_count,
            "total": len(records),
            "skipped": len(records) - len(deletable),
            "deleted_ids": [r.attendance_id for r in deletable],
            "deleted_records": [r.to_dict() for r in deletable],
        }
        if errors:
            result["errors"] = errors
        return result

    def _update_one(
        self,
        attendance_id: int,
        status: AttendanceStatus,
        actor_id: int,
        role: Role,
        now: datetime,
    ) -> AttendanceRecord:
        record = self._attendance.get_by_id(attendance_id)
        require(record, NotFoundError, "Attendance record not found")

        course = self._gate.ensure_manage_permission(record.course_id, actor_id, role)
        assert_date_within_course_schedule(course, record.date)
        if role == Role.TEACHER:
            elapsed_hours = (now - record.created_at).total_seconds() / 3600
            require(
                elapsed_hours <= self._max_edit_hours,
                AuthorizationError,
                f"Teachers can only edit attendance within {self._max_edit_hours} hours of marking",
            )

        updated = self._attendance.update_status(attendance_id=attendance_id, status=status, marked_by=int(actor_id))
        require(updated, NotFoundError, "Attendance record not found")
        return updated

    def _check_deletable(
        self,
        record: AttendanceRecord,
        actor_id: int,
        role: Role,
        courses: Dict[int, Course],
        today: date,
    ) -> None:
        course = courses.get(record.course_id)
        if course is None:
            course = self._gate.ensure_course_exists(record.course_id)
            courses[record.course_id] = course

        self._gate.check_manage_permission(course, actor_id, role)
        assert_date_within_course_schedule(course, record.date)
        if role == Role.TEACHER:
            require(
                days_diff_from_today(record.date, today=today) == 0,
                AuthorizationError,
                "Teachers can delete only same-day records",
            )

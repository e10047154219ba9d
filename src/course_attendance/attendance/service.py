from __future__ import annotations

import logging
import math
from typing import Dict, Optional, Sequence

from ..common.validators import require
from ..core.enums import ExportFormat, Role, SortOrder
from ..core.exceptions import AuthorizationError, ValidationError
from ..users.model import UserProfile
from ..users.repository import UserRepository
from .export import render_csv, render_json
from .filters import build_attendance_filter, get_sort_spec
from .model import AttendanceFilter, DateRange, SortSpec
from .params import ExportAttendanceParams, ListAttendanceParams, StatsParams, StudentHistoryParams
from .permissions import PermissionGate
from .repository import AttendanceRepository
from .statistics import (
    build_student_stats,
    compute_class_attendance_rate,
    group_by_student,
    summarize_statuses,
    summary_from_counts,
)
from .temporal import build_date_range_filter, clamp_date_range_to_course

logger = logging.getLogger(__name__)

_BY_DATE_ASC = SortSpec(field="date", order=SortOrder.ASC)
_BY_DATE_DESC = SortSpec(field="date", order=SortOrder.DESC)


def _pagination(total: int, page: int, limit: int) -> dict:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }


class AttendanceService:
    """Read side of attendance: listings, history, export and statistics."""

    def __init__(self, attendance: AttendanceRepository, users: UserRepository, gate: PermissionGate):
        self._attendance = attendance
        self._users = users
        self._gate = gate

    def list_attendances(self, params: ListAttendanceParams, actor_id: int, role: Role) -> dict:
        require(role != Role.STUDENT, AuthorizationError, "Not authorized")

        flt = build_attendance_filter(self._gate, params, actor_id, role)
        sort = get_sort_spec(params.sort_by, params.sort_order)

        records = self._attendance.find(flt, sort=sort, skip=params.skip, limit=params.limit)
        total = self._attendance.count(flt)
        summary = summary_from_counts(self._attendance.count_by_status(flt))

        pagination = _pagination(total, params.page, params.limit)
        pagination["has_next"] = params.skip + len(records) < total
        return {
            "records": [r.to_dict() for r in records],
            "pagination": pagination,
            "summary": summary,
        }

    def get_student_attendance_history(
        self,
        student_id: int,
        params: StudentHistoryParams,
        actor_id: int,
        role: Role,
    ) -> dict:
        if role == Role.STUDENT:
            require(int(actor_id) == int(student_id), AuthorizationError, "Students can only view their own attendance")
        if role == Role.TEACHER:
            require(params.course_id, ValidationError, "courseId is required for teachers")

        range_override: Optional[DateRange] = None
        if params.course_id and role != Role.STUDENT:
            course = self._gate.ensure_manage_permission(params.course_id, actor_id, role)
            if role == Role.TEACHER:
                self._gate.verify_students_belong_to_course(params.course_id, [int(student_id)])
            range_override = clamp_date_range_to_course(course, params.from_date, params.to_date)

        date_range = (
            build_date_range_filter(range_override.start, range_override.end)
            if range_override
            else build_date_range_filter(params.from_date, params.to_date)
        )
        flt = AttendanceFilter(
            course_id=params.course_id,
            student_id=int(student_id),
            status=params.status,
            date_range=date_range,
        )

        views = self._attendance.find(flt, sort=_BY_DATE_DESC, skip=params.skip, limit=params.limit)
        total = self._attendance.count(flt)
        return {
            "records": [v.to_dict() for v in views],
            "pagination": _pagination(total, params.page, params.limit),
            "summary": summarize_statuses(v.record for v in views),
        }

    def get_self_attendance_history(self, actor_id: int, params: StudentHistoryParams) -> dict:
        return self.get_student_attendance_history(int(actor_id), params, int(actor_id), Role.STUDENT)

    def export_attendance_report(self, params: ExportAttendanceParams, actor_id: int, role: Role) -> dict:
        flt = build_attendance_filter(self._gate, params, actor_id, role)
        views = self._attendance.find(flt, sort=_BY_DATE_ASC)
        summary = summarize_statuses(v.record for v in views)

        if params.format == ExportFormat.JSON:
            return {"format": ExportFormat.JSON.value, "summary": summary, "data": render_json(views)}

        return {
            "format": ExportFormat.CSV.value,
            "summary": summary,
            "csv": render_csv(views),
            "total": len(views),
        }

    def get_course_attendance_stats(self, course_id: int, params: StatsParams, actor_id: int, role: Role) -> dict:
        course = self._gate.ensure_manage_permission(course_id, actor_id, role)
        window = clamp_date_range_to_course(course, params.from_date, params.to_date)

        flt = AttendanceFilter(course_id=int(course_id), date_range=build_date_range_filter(window.start, window.end))
        records = self._attendance.list_records(flt, sort=_BY_DATE_ASC)
        grouped = group_by_student(records)
        profiles = self._load_profiles(list(grouped))

        student_stats = [
            build_student_stats(sid, recs, threshold=params.threshold, student=profiles.get(sid))
            for sid, recs in grouped.items()
        ]

        return {
            "course_id": int(course_id),
            "total_students": len(student_stats),
            "total_records": len(records),
            "class_attendance_rate": compute_class_attendance_rate(records),
            "students_at_risk": [s for s in student_stats if s["alerts"]["high_absence"]],
            "student_stats": student_stats,
            "threshold": params.threshold,
        }

    def get_student_attendance_stats(
        self,
        course_id: int,
        student_id: int,
        params: StatsParams,
        actor_id: int,
        role: Role,
    ) -> dict:
        course = self._gate.ensure_manage_permission(course_id, actor_id, role)
        self._gate.verify_students_belong_to_course(course_id, [int(student_id)])
        window = clamp_date_range_to_course(course, params.from_date, params.to_date)

        flt = AttendanceFilter(
            course_id=int(course_id),
            student_id=int(student_id),
            date_range=build_date_range_filter(window.start, window.end),
        )
        records = self._attendance.list_records(flt, sort=_BY_DATE_ASC)

        stats = build_student_stats(
            int(student_id),
            records,
            threshold=params.threshold,
            student=self._load_profile(int(student_id)),
        )
        stats["course_id"] = int(course_id)
        stats["threshold"] = params.threshold
        return stats

    def _load_profile(self, user_id: int) -> Optional[UserProfile]:
        try:
            return self._users.get_by_id(user_id)
        except Exception:
            logger.warning("Profile lookup failed for user %s", user_id, exc_info=True)
            return None

    def _load_profiles(self, user_ids: Sequence[int]) -> Dict[int, UserProfile]:
        if not user_ids:
            return {}
        try:
            return dict(self._users.get_many(user_ids))
        except Exception:
            logger.warning("Profile lookup failed for %d users", len(user_ids), exc_info=True)
            return {}

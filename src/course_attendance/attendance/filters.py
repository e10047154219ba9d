from __future__ import annotations

from typing import Optional

from ..common.validators import require
from ..core.enums import Role, SortOrder
from ..core.exceptions import ValidationError
from .model import AttendanceFilter, SortSpec
from .params import ListAttendanceParams
from .permissions import PermissionGate
from .temporal import build_date_range_filter, clamp_date_range_to_course

SORTABLE_FIELDS = ("date", "created_at", "updated_at")


def build_attendance_filter(
    gate: PermissionGate,
    params: ListAttendanceParams,
    actor_id: int,
    role: Role,
) -> AttendanceFilter:
    """Compose the query for management listings.

    With a course the clamped course window replaces the caller's from/to.
    Without one only admins may query, across all courses.
    """
    course_range = None
    if params.course_id is not None:
        course = gate.ensure_manage_permission(params.course_id, actor_id, role)
        course_range = clamp_date_range_to_course(course, params.from_date, params.to_date)
    else:
        require(role == Role.ADMIN, ValidationError, "courseId is required unless you are an admin")

    date_range = (
        build_date_range_filter(course_range.start, course_range.end)
        if course_range
        else build_date_range_filter(params.from_date, params.to_date)
    )

    return AttendanceFilter(
        course_id=params.course_id,
        student_id=params.student_id,
        marked_by=params.teacher_id,
        status=params.status,
        date_range=date_range,
    )


def get_sort_spec(sort_by: Optional[str] = None, sort_order: Optional[SortOrder] = None) -> SortSpec:
    field = sort_by or "date"
    require(field in SORTABLE_FIELDS, ValidationError, f"Cannot sort by {field!r}")
    return SortSpec(field=field, order=SortOrder.ASC if sort_order == SortOrder.ASC else SortOrder.DESC)

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from ..attendance.permissions import PermissionGate
from ..attendance.repository import AttendanceRepository
from ..common.validators import parse_id_batch
from ..core.enums import Role
from ..users.repository import UserRepository
from .mailer import AbsenceMailer, MailResult

logger = logging.getLogger(__name__)


class AbsenceNotificationService:
    """Decides who gets an absence mail and hands delivery to the mailer."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        gate: PermissionGate,
        mailer: AbsenceMailer,
    ):
        self._attendance = attendance
        self._users = users
        self._gate = gate
        self._mailer = mailer

    def send_absence_notification_emails(
        self,
        course_id: int,
        student_ids: Sequence[Any],
        actor_id: int,
        role: Role,
    ) -> dict:
        ids = parse_id_batch(
            student_ids,
            field_name="student id",
            empty_message="At least one student ID is required",
            too_many_message="Cannot send emails to more than 100 students at once",
        )

        course = self._gate.ensure_manage_permission(course_id, actor_id, role)
        self._gate.verify_students_belong_to_course(course.course_id, ids)
        profiles = self._users.get_many(ids)

        results: List[Dict[str, Any]] = []
        for student_id in ids:
            absent_count = self._attendance.count_absences(course_id=course.course_id, student_id=student_id)
            profile = profiles.get(student_id)
            if profile is None:
                outcome = MailResult(success=False, error="Student not found")
            else:
                try:
                    outcome = self._mailer.send_absence_notification(
                        recipient=profile, course=course, absent_count=absent_count
                    )
                except Exception as e:
                    logger.exception("Absence mail to student %s failed", student_id)
                    outcome = MailResult(success=False, error=str(e))

            entry: Dict[str, Any] = {
                "student_id": student_id,
                "student_name": (profile.fullname or profile.email or profile.username) if profile else None,
                "email": profile.email if profile else None,
                "absent_count": absent_count,
                "success": outcome.success,
            }
            if outcome.success:
                entry["message"] = outcome.message
            else:
                entry["error"] = outcome.error
            results.append(entry)

        succeeded = sum(1 for r in results if r["success"])
        logger.info("Absence mails for course %s: %d sent, %d failed", course.course_id, succeeded, len(results) - succeeded)
        return {
            "total": len(ids),
            "success": succeeded,
            "failed": len(results) - succeeded,
            "results": results,
        }

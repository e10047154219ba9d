from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.bulk import AttendanceMutationService
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.permissions import PermissionGate
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_ESCALATION_ABSENCES
from .courses.mysql_course_repository import MySQLCourseRepository
from .database.connection import DatabaseConnection, DBConfig
from .enrollments.mysql_enrollment_repository import MySQLEnrollmentRepository
from .notifications.mailer import SmtpAbsenceMailer
from .notifications.service import AbsenceNotificationService
from .users.mysql_user_repository import MySQLUserRepository


@dataclass(frozen=True)
class Container:
    attendance_service: AttendanceService
    mutation_service: AttendanceMutationService
    notification_service: AbsenceNotificationService
    conn: Optional[DatabaseConnection] = None


def build_container(
    *,
    db_config: dict,
    mail_config: Optional[dict] = None,
    escalation_count: int = DEFAULT_ESCALATION_ABSENCES,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    users_repo = MySQLUserRepository(conn)
    courses_repo = MySQLCourseRepository(conn)
    enrollments_repo = MySQLEnrollmentRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)

    gate = PermissionGate(courses_repo, enrollments_repo)
    mailer = SmtpAbsenceMailer(mail_config, escalation_count=escalation_count)

    return Container(
        attendance_service=AttendanceService(attendance_repo, users_repo, gate),
        mutation_service=AttendanceMutationService(attendance_repo, gate),
        notification_service=AbsenceNotificationService(attendance_repo, users_repo, gate, mailer),
        conn=conn,
    )

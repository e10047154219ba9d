from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Actor role used for authorization."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class AttendanceStatus(str, Enum):
    """Attendance status as stored in the database."""

    NOT_YET = "not-yet"
    PRESENT = "present"
    ABSENT = "absent"


class EnrollmentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ExportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class NotificationTier(str, Enum):
    """Which absence mail a student receives."""

    WARNING = "warning"
    ESCALATION = "escalation"

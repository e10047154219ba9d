"""Absence mail delivery over SMTP.

The mailer owns template choice: below ``escalation_count`` absences a student
gets a warning, at or above it an escalation notice. Delivery errors are
returned as a failed ``MailResult``, never raised.
"""
from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, Optional, Protocol

from ..core.constants import DEFAULT_ESCALATION_ABSENCES
from ..core.enums import NotificationTier
from ..courses.model import Course
from ..users.model import UserProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailResult:
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None


class AbsenceMailer(Protocol):
    def send_absence_notification(self, *, recipient: UserProfile, course: Course, absent_count: int) -> MailResult:
        raise NotImplementedError


TEMPLATES = {
    NotificationTier.WARNING: {
        "subject": "Attendance warning - {course_title}",
        "body": (
            "Dear {student_name},\n\n"
            "You have been marked absent {absent_count} time(s) in {course_title}.\n"
            "Please make sure to attend the upcoming sessions.\n"
        ),
    },
    NotificationTier.ESCALATION: {
        "subject": "Urgent: repeated absences in {course_title}",
        "body": (
            "Dear {student_name},\n\n"
            "You have been marked absent {absent_count} times in {course_title}.\n"
            "This exceeds the allowed number of absences. Please contact your teacher as soon as possible.\n"
        ),
    },
}


def choose_tier(absent_count: int, escalation_count: int = DEFAULT_ESCALATION_ABSENCES) -> NotificationTier:
    return NotificationTier.ESCALATION if absent_count >= escalation_count else NotificationTier.WARNING


class SmtpAbsenceMailer(AbsenceMailer):
    def __init__(self, config: Optional[Dict[str, Any]] = None, *, escalation_count: int = DEFAULT_ESCALATION_ABSENCES):
        self.config = config or {}
        self.smtp_host = self.config.get("SMTP_HOST", "localhost")
        self.smtp_port = int(self.config.get("SMTP_PORT", 587))
        self.smtp_user = self.config.get("SMTP_USER", "")
        self.smtp_password = self.config.get("SMTP_PASSWORD", "")
        self.from_email = self.config.get("FROM_EMAIL") or self.smtp_user
        self.from_name = self.config.get("FROM_NAME", "Course Attendance")
        self.use_tls = bool(self.config.get("USE_TLS", True))
        self.timeout = float(self.config.get("TIMEOUT", 10))
        self.escalation_count = int(escalation_count)

    def send_absence_notification(self, *, recipient: UserProfile, course: Course, absent_count: int) -> MailResult:
        if not recipient.email:
            return MailResult(success=False, error="Student has no email address")

        tier = choose_tier(absent_count, self.escalation_count)
        template = TEMPLATES[tier]
        context = {
            "student_name": recipient.display_name,
            "course_title": course.title,
            "absent_count": absent_count,
        }
        return self.send_email(
            recipient.email,
            template["subject"].format(**context),
            template["body"].format(**context),
        )

    def send_email(self, to_email: str, subject: str, body: str) -> MailResult:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email
        msg.attach(MIMEText(body, "plain"))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.smtp_user and self.smtp_password:
                    smtp.login(self.smtp_user, self.smtp_password)
                smtp.sendmail(self.from_email, [to_email], msg.as_string())
        except smtplib.SMTPAuthenticationError:
            logger.error("SMTP authentication failed")
            return MailResult(success=False, error="Authentication failed")
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP error sending to %s: %s", to_email, e)
            return MailResult(success=False, error=str(e))

        logger.info("Email sent successfully to %s", to_email)
        return MailResult(success=True, message="Email sent successfully")

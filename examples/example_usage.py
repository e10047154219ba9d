"""Example: use the service layer directly (no Flask).

Controllers are a thin layer; business rules live in the services.
"""

import importlib

from config import get_settings_module

from course_attendance.attendance.params import StatsParams
from course_attendance.container import build_container
from course_attendance.core.enums import Role


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, mail_config=getattr(settings, "MAIL_CONFIG", None))
    stats = container.attendance_service.get_course_attendance_stats(1, StatsParams(), actor_id=1, role=Role.ADMIN)
    print(stats["class_attendance_rate"], len(stats["students_at_risk"]))


if __name__ == "__main__":
    main()

from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Course
from .repository import CourseRepository


class MySQLCourseRepository(CourseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, course_id: int) -> Optional[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT course_id, title, code, start_date, end_date
                FROM courses
                WHERE course_id=%s
                """,
                (int(course_id),),
            )
            row = fetchone(cur)
            if not row:
                return None

            cur.execute("SELECT teacher_id FROM course_teachers WHERE course_id=%s", (int(course_id),))
            teacher_ids = frozenset(int(r["teacher_id"]) for r in fetchall(cur))

            return Course(
                course_id=int(row["course_id"]),
                title=row["title"],
                code=row.get("code"),
                start_date=row["start_date"],
                end_date=row["end_date"],
                teacher_ids=teacher_ids,
            )

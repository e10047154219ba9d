from __future__ import annotations

from typing import Sequence, Set

from ..core.enums import EnrollmentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, in_clause
from .repository import EnrollmentRepository


class MySQLEnrollmentRepository(EnrollmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_approved_student_ids(self, *, course_id: int, student_ids: Sequence[int]) -> Set[int]:
        if not student_ids:
            return set()

        ids_sql, ids_params = in_clause("student_id", [int(s) for s in student_ids])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT student_id
                FROM enrollments
                WHERE course_id=%s AND status=%s AND {ids_sql}
                """,
                (int(course_id), EnrollmentStatus.APPROVED.value, *ids_params),
            )
            return {int(r["student_id"]) for r in fetchall(cur)}

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import mysql.connector

from ..common.datetime_utils import now_local
from ..core.enums import AttendanceStatus, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, join_where
from ..users.model import UserProfile
from .model import (
    AttendanceEntry,
    AttendanceFilter,
    AttendanceRecord,
    AttendanceView,
    CourseSummary,
    SortSpec,
    UpsertOutcome,
)
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "date": "ar.attendance_date",
    "created_at": "ar.created_at",
    "updated_at": "ar.updated_at",
}

_RECORD_COLUMNS = """
    ar.attendance_id, ar.course_id, ar.student_id, ar.attendance_date,
    ar.status, ar.marked_by, ar.created_at, ar.updated_at
"""


def _where(filter: AttendanceFilter) -> Tuple[str, List[Any]]:
    clauses: List[str] = []
    params: List[Any] = []

    if filter.course_id is not None:
        clauses.append("ar.course_id=%s")
        params.append(int(filter.course_id))
    if filter.student_id is not None:
        clauses.append("ar.student_id=%s")
        params.append(int(filter.student_id))
    if filter.marked_by is not None:
        clauses.append("ar.marked_by=%s")
        params.append(int(filter.marked_by))
    if filter.status is not None:
        clauses.append("ar.status=%s")
        params.append(filter.status.value)
    if filter.date_range is not None:
        if filter.date_range.start is not None:
            clauses.append("ar.attendance_date >= %s")
            params.append(filter.date_range.start)
        if filter.date_range.end is not None:
            clauses.append("ar.attendance_date <= %s")
            params.append(filter.date_range.end)

    return join_where(clauses), params


def _order_by(sort: SortSpec) -> str:
    column = SORT_COLUMNS.get(sort.field, SORT_COLUMNS["date"])
    direction = "DESC" if sort.descending else "ASC"
    return f"{column} {direction}, ar.attendance_id {direction}"


def _to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        course_id=int(r["course_id"]),
        student_id=int(r["student_id"]),
        date=r["attendance_date"],
        status=AttendanceStatus(r["status"]),
        marked_by=int(r["marked_by"]) if r.get("marked_by") is not None else None,
        created_at=r["created_at"],
        updated_at=r["updated_at"],
    )


def _to_view(r: Dict[str, Any]) -> AttendanceView:
    student = None
    if r.get("s_user_id") is not None:
        student = UserProfile(
            user_id=int(r["s_user_id"]),
            username=r["s_username"],
            fullname=r.get("s_fullname"),
            email=r.get("s_email"),
        )
    marker = None
    if r.get("m_user_id") is not None:
        marker = UserProfile(
            user_id=int(r["m_user_id"]),
            username=r["m_username"],
            fullname=r.get("m_fullname"),
            email=r.get("m_email"),
            role=Role(r["m_role"]) if r.get("m_role") else None,
        )
    course = None
    if r.get("c_course_id") is not None:
        course = CourseSummary(course_id=int(r["c_course_id"]), title=r["c_title"], code=r.get("c_code"))
    return AttendanceView(record=_to_record(r), student=student, course=course, marker=marker)


class MySQLAttendanceRepository(AttendanceRepository):
    """Timestamps come from ``clock``, the same clock the teacher edit window reads."""

    def __init__(self, conn_factory: DatabaseConnection, *, clock: Callable[[], datetime] = now_local):
        self._conn_factory = conn_factory
        self._clock = clock

    def find(
        self,
        filter: AttendanceFilter,
        *,
        sort: SortSpec,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceView]:
        where, params = _where(filter)
        paging = ""
        if limit is not None:
            paging = "LIMIT %s OFFSET %s"
            params.extend([int(limit), int(skip)])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    {_RECORD_COLUMNS},
                    s.user_id AS s_user_id, s.fullname AS s_fullname, s.username AS s_username, s.email AS s_email,
                    c.course_id AS c_course_id, c.title AS c_title, c.code AS c_code,
                    m.user_id AS m_user_id, m.fullname AS m_fullname, m.username AS m_username,
                    m.email AS m_email, m.role AS m_role
                FROM attendance_records ar
                LEFT JOIN users s ON s.user_id = ar.student_id
                LEFT JOIN courses c ON c.course_id = ar.course_id
                LEFT JOIN users m ON m.user_id = ar.marked_by
                WHERE {where}
                ORDER BY {_order_by(sort)}
                {paging}
                """,
                tuple(params),
            )
            return [_to_view(r) for r in fetchall(cur)]

    def count(self, filter: AttendanceFilter) -> int:
        where, params = _where(filter)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM attendance_records ar WHERE {where}", tuple(params))
            row = fetchone(cur)
            return int(row["total"]) if row else 0

    def count_by_status(self, filter: AttendanceFilter) -> Dict[AttendanceStatus, int]:
        where, params = _where(filter)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT ar.status, COUNT(*) AS total
                FROM attendance_records ar
                WHERE {where}
                GROUP BY ar.status
                """,
                tuple(params),
            )
            return {AttendanceStatus(r["status"]): int(r["total"]) for r in fetchall(cur)}

    def list_records(self, filter: AttendanceFilter, *, sort: SortSpec) -> Sequence[AttendanceRecord]:
        where, params = _where(filter)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records ar WHERE {where} ORDER BY {_order_by(sort)}",
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records ar WHERE ar.attendance_id=%s",
                (int(attendance_id),),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_by_ids(self, attendance_ids: Sequence[int]) -> Sequence[AttendanceRecord]:
        ids_sql, params = in_clause("ar.attendance_id", [int(i) for i in attendance_ids])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records ar WHERE {ids_sql} ORDER BY ar.attendance_id",
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def upsert_many(
        self,
        *,
        course_id: int,
        attendance_date: date,
        entries: Sequence[AttendanceEntry],
        marked_by: int,
    ) -> Sequence[UpsertOutcome]:
        """Each entry is committed on its own, so a rollback only loses that entry."""
        outcomes: List[UpsertOutcome] = []
        with db_cursor(self._conn_factory) as (conn, cur):
            for entry in entries:
                stamp = self._clock()
                try:
                    cur.execute(
                        """
                        INSERT INTO attendance_records(
                            course_id, student_id, attendance_date, status, marked_by, created_at, updated_at
                        )
                        VALUES(%s,%s,%s,%s,%s,%s,%s)
                        ON DUPLICATE KEY UPDATE
                            status=VALUES(status), marked_by=VALUES(marked_by), updated_at=VALUES(updated_at)
                        """,
                        (
                            int(course_id),
                            int(entry.student_id),
                            attendance_date,
                            entry.status.value,
                            int(marked_by),
                            stamp,
                            stamp,
                        ),
                    )
                    conn.commit()
                    outcomes.append(UpsertOutcome(student_id=entry.student_id, ok=True))
                except mysql.connector.Error as e:
                    conn.rollback()
                    logger.warning("Upsert failed for student %s on %s: %s", entry.student_id, attendance_date, e)
                    outcomes.append(UpsertOutcome(student_id=entry.student_id, ok=False, error=str(e)))
        return outcomes

    def update_status(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        marked_by: int,
    ) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, marked_by=%s, updated_at=%s
                WHERE attendance_id=%s
                """,
                (status.value, int(marked_by), self._clock(), int(attendance_id)),
            )
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records ar WHERE ar.attendance_id=%s",
                (int(attendance_id),),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def delete_one(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def delete_many(self, attendance_ids: Sequence[int]) -> int:
        if not attendance_ids:
            return 0
        ids_sql, params = in_clause("attendance_id", [int(i) for i in attendance_ids])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM attendance_records WHERE {ids_sql}", tuple(params))
            return int(cur.rowcount)

    def count_absences(self, *, course_id: int, student_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS total
                FROM attendance_records
                WHERE course_id=%s AND student_id=%s AND status=%s
                """,
                (int(course_id), int(student_id), AttendanceStatus.ABSENT.value),
            )
            row = fetchone(cur)
            return int(row["total"]) if row else 0

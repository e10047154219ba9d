from datetime import date, datetime

import mysql.connector

from course_attendance.attendance.model import AttendanceEntry
from course_attendance.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from course_attendance.core.enums import AttendanceStatus
from tests.conftest import COURSE_ID, STUDENT_A, STUDENT_B, STUDENT_C, TEACHER_ID

APP_NOW = datetime(2025, 3, 10, 9, 0, 0)


class RecordingCursor:
    def __init__(self, conn):
        self._conn = conn
        self.rowcount = 0

    def execute(self, sql, params=()):
        self._conn.log.append(("execute", params))
        if self._conn.fail_on and params and params[1] in self._conn.fail_on:
            raise mysql.connector.Error(msg="Deadlock found when trying to get lock", errno=1213)

    def fetchone(self):
        return None

    def fetchall(self):
        return []

    def close(self):
        pass


class RecordingConnection:
    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.log = []

    def cursor(self, dictionary=True):
        return RecordingCursor(self)

    def commit(self):
        self.log.append(("commit",))

    def rollback(self):
        self.log.append(("rollback",))

    def close(self):
        pass


class ConnectionFactory:
    def __init__(self, conn):
        self._conn = conn

    def connect(self):
        return self._conn


def _entries(*student_ids):
    return [AttendanceEntry(student_id=sid, status=AttendanceStatus.PRESENT) for sid in student_ids]


def test_each_upsert_is_committed_on_its_own():
    conn = RecordingConnection(fail_on={STUDENT_B})
    repo = MySQLAttendanceRepository(ConnectionFactory(conn), clock=lambda: APP_NOW)

    outcomes = repo.upsert_many(
        course_id=COURSE_ID,
        attendance_date=date(2025, 3, 10),
        entries=_entries(STUDENT_A, STUDENT_B, STUDENT_C),
        marked_by=TEACHER_ID,
    )

    assert [(o.student_id, o.ok) for o in outcomes] == [(STUDENT_A, True), (STUDENT_B, False), (STUDENT_C, True)]
    assert "1213" in outcomes[1].error
    kinds = [entry[0] for entry in conn.log]
    # A committed before B failed; B's rollback cannot take A with it
    assert kinds[:4] == ["execute", "commit", "execute", "rollback"]
    assert kinds[4:6] == ["execute", "commit"]


def test_upsert_writes_timestamps_from_app_clock():
    conn = RecordingConnection()
    repo = MySQLAttendanceRepository(ConnectionFactory(conn), clock=lambda: APP_NOW)

    repo.upsert_many(
        course_id=COURSE_ID,
        attendance_date=date(2025, 3, 10),
        entries=_entries(STUDENT_A),
        marked_by=TEACHER_ID,
    )

    params = conn.log[0][1]
    assert params[-2:] == (APP_NOW, APP_NOW)


def test_update_status_stamps_updated_at_from_app_clock():
    conn = RecordingConnection()
    repo = MySQLAttendanceRepository(ConnectionFactory(conn), clock=lambda: APP_NOW)

    repo.update_status(attendance_id=7, status=AttendanceStatus.ABSENT, marked_by=TEACHER_ID)

    assert conn.log[0] == ("execute", ("absent", TEACHER_ID, APP_NOW, 7))

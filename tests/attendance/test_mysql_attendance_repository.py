from datetime import date

import mysql.connector
import pytest

from src.school_attendance.school_attendance.attendance.model import AttendanceRecord, HistoryChange
from src.school_attendance.school_attendance.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from src.school_attendance.school_attendance.core.enums import AttendanceStatus
from src.school_attendance.school_attendance.core.exceptions import StaleHistoryError
from src.school_attendance.school_attendance.roster.model import Student


class FakeCursor:
    def __init__(self, rows=(), fail_on=None, error=None, affected=None):
        self.rows = list(rows)
        self.fail_on = fail_on
        self.error = error or RuntimeError("constraint violated")
        self.affected = affected
        self.rowcount = 0
        self.batches = []

    def execute(self, sql, params=None):
        self.batches.append((sql, params))

    def executemany(self, sql, params):
        if self.fail_on and self.fail_on in sql:
            raise self.error
        params = list(params)
        self.rowcount = len(params) if self.affected is None else self.affected
        self.batches.append((sql, params))

    def fetchall(self):
        return self.rows

    def close(self):
        pass


class FakeConnection:
    def __init__(self, cursor):
        self._cursor = cursor
        self.committed = False
        self.rolled_back = False

    def cursor(self, dictionary=True):
        return self._cursor

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        pass


class FakeFactory:
    def __init__(self, conn):
        self.conn = conn

    def connect(self):
        return self.conn


def _change():
    rec = AttendanceRecord(student_id="s1", date=date(2025, 3, 10), status=AttendanceStatus.ABSENT, record_id="r2")
    old = AttendanceRecord(student_id="s1", date=date(2025, 3, 10), status=AttendanceStatus.PRESENT, record_id="r1")
    return HistoryChange(removed=(old,), added=(rec,))


def _student():
    return Student(student_id="s1", first_name="A", last_name="B", student_code="X", class_id="c1", absence_count=1, risk_score=100)


def test_commit_writes_history_and_students_in_one_transaction():
    cur = FakeCursor()
    conn = FakeConnection(cur)

    MySQLAttendanceRepository(FakeFactory(conn)).commit(_change(), students=[_student()])

    statements = [sql.split()[0] for sql, _ in cur.batches]
    assert statements == ["DELETE", "INSERT", "UPDATE"]
    assert cur.batches[2][1] == [(1, 100, "s1")]
    assert conn.committed
    assert not conn.rolled_back


def test_failed_insert_rolls_back():
    cur = FakeCursor(fail_on="INSERT")
    conn = FakeConnection(cur)

    with pytest.raises(RuntimeError):
        MySQLAttendanceRepository(FakeFactory(conn)).commit(_change(), students=[_student()])

    assert conn.rolled_back
    assert not conn.committed


def test_load_history_maps_rows():
    cur = FakeCursor(
        rows=[
            {
                "record_id": "r1",
                "student_id": "s1",
                "att_date": date(2025, 3, 10),
                "status": "late",
                "source": "ocr",
                "minutes_late": 5,
                "notes": None,
                "subject": "English",
                "session_duration": None,
            }
        ]
    )

    (rec,) = MySQLAttendanceRepository(FakeFactory(FakeConnection(cur))).load_history()

    assert rec.status == AttendanceStatus.LATE
    assert rec.minutes_late == 5
    assert rec.session_duration == 60


def test_record_already_deleted_elsewhere_is_stale():
    cur = FakeCursor(affected=0)
    conn = FakeConnection(cur)

    with pytest.raises(StaleHistoryError):
        MySQLAttendanceRepository(FakeFactory(conn)).commit(_change(), students=[_student()])

    assert conn.rolled_back
    assert not conn.committed
    assert [sql.split()[0] for sql, _ in cur.batches] == ["DELETE"]


def test_key_collision_is_stale():
    cur = FakeCursor(fail_on="INSERT", error=mysql.connector.IntegrityError(msg="Duplicate entry"))
    conn = FakeConnection(cur)

    with pytest.raises(StaleHistoryError):
        MySQLAttendanceRepository(FakeFactory(conn)).commit(_change(), students=[_student()])

    assert conn.rolled_back

from __future__ import annotations

from typing import Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus, RecordSource
from ..core.exceptions import StaleHistoryError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, normalize_mysql_date
from ..roster.model import Student
from .model import AttendanceRecord, History, HistoryChange
from .repository import AttendanceRepository


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def load_history(self) -> History:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT record_id, student_id, att_date, status, source,
                       minutes_late, notes, subject, session_duration
                FROM attendance_records
                ORDER BY att_date ASC, student_id ASC
                """
            )
            rows = fetchall(cur)
            return tuple(
                AttendanceRecord(
                    record_id=str(r["record_id"]),
                    student_id=str(r["student_id"]),
                    date=normalize_mysql_date(r["att_date"]),
                    status=AttendanceStatus(r["status"]),
                    source=RecordSource(r.get("source") or RecordSource.MANUAL.value),
                    minutes_late=int(r.get("minutes_late") or 0),
                    notes=r.get("notes"),
                    subject=r.get("subject"),
                    session_duration=int(r.get("session_duration") or 0) or 60,
                )
                for r in rows
            )

    def commit(
        self,
        change: HistoryChange,
        *,
        students: Sequence[Student],
        base: Optional[History] = None,
    ) -> None:
        # The table is the source of truth here, so `base` is not compared;
        # a concurrent writer shows up as a missing row or a key collision.
        try:
            self._write(change, students)
        except mysql.connector.IntegrityError as e:
            raise StaleHistoryError() from e

    def _write(self, change: HistoryChange, students: Sequence[Student]) -> None:
        # One transaction: db_cursor rolls everything back if any statement fails.
        with db_cursor(self._conn_factory) as (_, cur):
            if change.removed:
                cur.executemany(
                    "DELETE FROM attendance_records WHERE record_id=%s",
                    [(r.record_id,) for r in change.removed],
                )
                if cur.rowcount != len(change.removed):
                    raise StaleHistoryError()

            if change.added:
                # uq_attendance_student_date rejects a concurrent writer on the same key.
                cur.executemany(
                    """
                    INSERT INTO attendance_records(
                        record_id, student_id, att_date, status, source,
                        minutes_late, notes, subject, session_duration
                    ) VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    [
                        (
                            r.record_id,
                            r.student_id,
                            r.date,
                            r.status.value,
                            r.source.value,
                            int(r.minutes_late),
                            r.notes,
                            r.subject,
                            int(r.session_duration),
                        )
                        for r in change.added
                    ],
                )

            if students:
                cur.executemany(
                    "UPDATE students SET absence_count=%s, risk_score=%s WHERE student_id=%s",
                    [(int(s.absence_count), int(s.risk_score), s.student_id) for s in students],
                )

from __future__ import annotations

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import ClassGroup, Roster, Student, SubjectConfig
from .repository import RosterRepository


class MySQLRosterRepository(RosterRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, fallback_subject_hours: dict | None = None):
        self._conn_factory = conn_factory
        self._fallback_subject_hours = dict(fallback_subject_hours or {})

    def get_roster(self) -> Roster:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT class_id, name, grade FROM classes ORDER BY name")
            classes = tuple(
                ClassGroup(class_id=str(r["class_id"]), name=r["name"], grade=r.get("grade") or "")
                for r in fetchall(cur)
            )

            cur.execute(
                """
                SELECT student_id, first_name, last_name, student_code, class_id,
                       parent_phone, absence_count, risk_score
                FROM students
                ORDER BY last_name, first_name
                """
            )
            students = tuple(
                Student(
                    student_id=str(r["student_id"]),
                    first_name=r["first_name"],
                    last_name=r["last_name"],
                    student_code=r["student_code"],
                    class_id=str(r["class_id"]),
                    parent_phone=r.get("parent_phone"),
                    absence_count=int(r.get("absence_count") or 0),
                    risk_score=int(r.get("risk_score") or 0),
                )
                for r in fetchall(cur)
            )
        return Roster(students=students, classes=classes)

    def get_subject_config(self) -> SubjectConfig:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT name, total_hours FROM subjects")
            rows = fetchall(cur)

        hours = dict(self._fallback_subject_hours)
        for r in rows:
            if r.get("total_hours") is not None:
                hours[r["name"]] = float(r["total_hours"])
        return SubjectConfig(hours)

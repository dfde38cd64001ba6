from __future__ import annotations

from datetime import date

import pytest

from src.school_attendance.school_attendance.attendance.memory_repository import InMemoryAttendanceStore
from src.school_attendance.school_attendance.attendance.service import AttendanceService
from src.school_attendance.school_attendance.roster.model import ClassGroup, Roster, Student


@pytest.fixture
def session_date() -> date:
    return date(2025, 3, 10)


@pytest.fixture
def classes() -> list[ClassGroup]:
    return [
        ClassGroup(class_id="c1", name="Grade 5 A", grade="5"),
        ClassGroup(class_id="c2", name="Grade 6 B", grade="6"),
    ]


@pytest.fixture
def students() -> list[Student]:
    return [
        Student(student_id="s1", first_name="Ahmed", last_name="Alami", student_code="A001", class_id="c1"),
        Student(student_id="s2", first_name="Sara", last_name="Bennani", student_code="A002", class_id="c1"),
        Student(student_id="s3", first_name="Ahmed", last_name="Tazi", student_code="B001", class_id="c2"),
        Student(student_id="s4", first_name="Yasmine", last_name="Idrissi", student_code="B002", class_id="c2"),
    ]


@pytest.fixture
def roster(students, classes) -> Roster:
    return Roster(students=tuple(students), classes=tuple(classes))


@pytest.fixture
def store(students, classes) -> InMemoryAttendanceStore:
    return InMemoryAttendanceStore(students=students, classes=classes, subject_hours={"English": 30})


@pytest.fixture
def service(store) -> AttendanceService:
    return AttendanceService(store, store)

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from ..core.constants import MAX_RISK_SCORE


@dataclass(frozen=True)
class Student:
    """Domain entity: a student on the roster.

    `absence_count` and `risk_score` are derived from attendance history by the
    statistics engine; nothing else writes them.
    """

    student_id: str
    first_name: str
    last_name: str
    student_code: str
    class_id: str
    parent_phone: Optional[str] = None
    absence_count: int = 0
    risk_score: int = 0

    def __post_init__(self):
        if not 0 <= self.risk_score <= MAX_RISK_SCORE:
            raise ValueError(f"risk_score out of range: {self.risk_score}")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class ClassGroup:
    class_id: str
    name: str
    grade: str


@dataclass(frozen=True)
class Roster:
    """Read-only view of the students and classes the core works against."""

    students: tuple[Student, ...] = ()
    classes: tuple[ClassGroup, ...] = ()

    def get_student(self, student_id: str) -> Optional[Student]:
        for s in self.students:
            if s.student_id == student_id:
                return s
        return None

    def get_class(self, class_id: str) -> Optional[ClassGroup]:
        for c in self.classes:
            if c.class_id == class_id:
                return c
        return None

    def students_in_class(self, class_id: str) -> tuple[Student, ...]:
        return tuple(s for s in self.students if s.class_id == class_id)

    def student_ids_in_class(self, class_id: str) -> frozenset[str]:
        return frozenset(s.student_id for s in self.students if s.class_id == class_id)


@dataclass(frozen=True)
class SubjectConfig:
    """Subject name -> total expected hours, used only as a percentage denominator."""

    hours: Mapping[str, float] = field(default_factory=dict)

    def expected_hours(self, subject: str) -> Optional[float]:
        value = self.hours.get(subject)
        if value is None or value <= 0:
            return None
        return float(value)

    @property
    def subjects(self) -> tuple[str, ...]:
        return tuple(self.hours)

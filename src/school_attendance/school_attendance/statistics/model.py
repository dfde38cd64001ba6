from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Mapping, Optional

from ..common.numbers import round_half_up
from ..roster.model import Student


@dataclass(frozen=True)
class StudentStats:
    student_id: str
    total_sessions: int = 0
    absence_count: int = 0

    @property
    def absence_ratio(self) -> float:
        if not self.total_sessions:
            return 0.0
        return self.absence_count / self.total_sessions


@dataclass(frozen=True)
class SubjectLostTime:
    """Per-subject lost time for one student.

    `percentage` is None when the subject has no configured hours; it is never
    defaulted to 0.
    """

    subject: str
    total_records: int
    absent_records: int
    lost_minutes: int
    expected_hours: Optional[float] = None
    percentage: Optional[float] = None

    @property
    def lost_hours(self) -> float:
        return round_half_up(self.lost_minutes / 60, 1)


@dataclass(frozen=True)
class DailyTrendPoint:
    """Day-level counts for charting; excused is grouped with absent."""

    date: date
    present: int = 0
    late: int = 0
    absent: int = 0
    total: int = 0


@dataclass(frozen=True)
class Metrics:
    total_students: int
    attendance_rate: float
    chronic_absenteeism_rate: float
    lost_instructional_time: int
    per_student_subject_breakdown: Mapping[str, tuple[SubjectLostTime, ...]] = field(default_factory=dict)
    at_risk_list: tuple[Student, ...] = ()
    daily_trend: tuple[DailyTrendPoint, ...] = ()

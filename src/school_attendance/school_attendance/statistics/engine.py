"""Statistics engine.

Everything here is recomputed from the full history on each call; no counter is
kept between calls, so identical inputs always give identical outputs.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Optional, Sequence

from ..attendance.model import History
from ..common.numbers import percentage, round_half_up
from ..core.constants import CHRONIC_ABSENCE_RATIO, GENERAL_SUBJECT, MAX_RISK_SCORE
from ..core.enums import AttendanceStatus
from ..roster.model import Student, SubjectConfig
from .calculator.base import LostTimeCalculator
from .calculator.standard_calculator import StandardLostTimeCalculator
from .model import DailyTrendPoint, Metrics, StudentStats, SubjectLostTime


def risk_score(stats: StudentStats) -> int:
    if not stats.total_sessions:
        return 0
    return int(round_half_up(min(MAX_RISK_SCORE, 100 * stats.absence_count / stats.total_sessions)))


class StatisticsEngine:
    def __init__(
        self,
        *,
        calculator: Optional[LostTimeCalculator] = None,
        chronic_ratio: float = CHRONIC_ABSENCE_RATIO,
    ):
        self._calculator = calculator or StandardLostTimeCalculator()
        self._chronic_ratio = float(chronic_ratio)

    def student_stats(self, history: History, students: Iterable[Student] = ()) -> dict[str, StudentStats]:
        """Per-student session and absence counts.

        Every given student gets an entry, including those without records.
        """

        totals: dict[str, int] = {s.student_id: 0 for s in students}
        absences: dict[str, int] = dict.fromkeys(totals, 0)

        for r in history:
            totals[r.student_id] = totals.get(r.student_id, 0) + 1
            absences.setdefault(r.student_id, 0)
            if r.status == AttendanceStatus.ABSENT:
                absences[r.student_id] += 1

        return {
            sid: StudentStats(student_id=sid, total_sessions=total, absence_count=absences[sid])
            for sid, total in totals.items()
        }

    def recompute_students(self, history: History, students: Sequence[Student]) -> tuple[Student, ...]:
        """Regenerate the derived fields of every student from history."""

        stats = self.student_stats(history, students)
        return tuple(
            replace(
                s,
                absence_count=stats[s.student_id].absence_count,
                risk_score=risk_score(stats[s.student_id]),
            )
            for s in students
        )

    def is_chronic(self, stats: StudentStats) -> bool:
        return stats.total_sessions > 0 and stats.absence_ratio > self._chronic_ratio

    def attendance_rate(self, history: History) -> float:
        attended = sum(1 for r in history if r.status in (AttendanceStatus.PRESENT, AttendanceStatus.LATE))
        return percentage(attended, len(history))

    def chronic_absenteeism_rate(self, history: History, students: Sequence[Student]) -> float:
        stats = self.student_stats(history, students)
        roster_ids = {s.student_id for s in students}
        active = [st for sid, st in stats.items() if sid in roster_ids and st.total_sessions > 0]
        chronic = [st for st in active if self.is_chronic(st)]
        return percentage(len(chronic), len(active))

    def lost_instructional_time(self, history: History) -> int:
        return sum(self._calculator.lost_minutes(r) for r in history)

    def subject_breakdown(
        self,
        history: History,
        student_id: str,
        subject_config: Optional[SubjectConfig] = None,
    ) -> tuple[SubjectLostTime, ...]:
        config = subject_config or SubjectConfig()
        groups: dict[str, dict[str, int]] = {}

        for r in history:
            if r.student_id != student_id:
                continue
            g = groups.setdefault(r.subject or GENERAL_SUBJECT, {"total": 0, "absent": 0, "lost": 0})
            g["total"] += 1
            if r.status == AttendanceStatus.ABSENT:
                g["absent"] += 1
            g["lost"] += self._calculator.lost_minutes(r)

        out = []
        for subject, g in groups.items():
            hours = config.expected_hours(subject)
            pct = round_half_up(g["lost"] / (hours * 60) * 100, 1) if hours else None
            out.append(
                SubjectLostTime(
                    subject=subject,
                    total_records=g["total"],
                    absent_records=g["absent"],
                    lost_minutes=g["lost"],
                    expected_hours=hours,
                    percentage=pct,
                )
            )
        return tuple(out)

    def at_risk(self, history: History, students: Sequence[Student]) -> tuple[Student, ...]:
        stats = self.student_stats(history, students)
        flagged = [
            replace(s, absence_count=stats[s.student_id].absence_count, risk_score=risk_score(stats[s.student_id]))
            for s in students
            if self.is_chronic(stats[s.student_id])
        ]
        flagged.sort(key=lambda s: (-s.risk_score, s.last_name.casefold(), s.first_name.casefold()))
        return tuple(flagged)

    def daily_trend(self, history: History) -> tuple[DailyTrendPoint, ...]:
        days: dict = {}
        for r in history:
            d = days.setdefault(r.date, {"present": 0, "late": 0, "absent": 0, "total": 0})
            d["total"] += 1
            if r.status == AttendanceStatus.PRESENT:
                d["present"] += 1
            elif r.status == AttendanceStatus.LATE:
                d["late"] += 1
            else:
                d["absent"] += 1

        return tuple(DailyTrendPoint(date=k, **v) for k, v in sorted(days.items()))

    def compute_metrics(
        self,
        history: History,
        students: Sequence[Student],
        subject_config: Optional[SubjectConfig] = None,
    ) -> Metrics:
        with_records = sorted({r.student_id for r in history})
        return Metrics(
            total_students=len(students),
            attendance_rate=self.attendance_rate(history),
            chronic_absenteeism_rate=self.chronic_absenteeism_rate(history, students),
            lost_instructional_time=self.lost_instructional_time(history),
            per_student_subject_breakdown={
                sid: self.subject_breakdown(history, sid, subject_config) for sid in with_records
            },
            at_risk_list=self.at_risk(history, students),
            daily_trend=self.daily_trend(history),
        )

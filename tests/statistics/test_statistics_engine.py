from dataclasses import replace
from datetime import date, timedelta

from src.school_attendance.school_attendance.attendance.model import AttendanceRecord
from src.school_attendance.school_attendance.core.enums import AttendanceStatus
from src.school_attendance.school_attendance.roster.model import SubjectConfig
from src.school_attendance.school_attendance.statistics.engine import StatisticsEngine, risk_score
from src.school_attendance.school_attendance.statistics.model import StudentStats

DAY = date(2025, 3, 10)


def _rec(student_id, offset, status=AttendanceStatus.PRESENT, **kw):
    return AttendanceRecord(student_id=student_id, date=DAY + timedelta(days=offset), status=status, **kw)


def test_risk_score_is_absence_percentage():
    assert risk_score(StudentStats("s1", total_sessions=5, absence_count=2)) == 40
    assert risk_score(StudentStats("s1", total_sessions=3, absence_count=1)) == 33
    assert risk_score(StudentStats("s1", total_sessions=8, absence_count=1)) == 13
    assert risk_score(StudentStats("s1")) == 0


def test_excused_does_not_count_as_absence(students):
    history = (_rec("s1", 0, AttendanceStatus.EXCUSED), _rec("s1", 1, AttendanceStatus.ABSENT))
    (s1,) = [s for s in StatisticsEngine().recompute_students(history, students) if s.student_id == "s1"]
    assert s1.absence_count == 1
    assert s1.risk_score == 50


def test_students_without_records_are_reset(students):
    engine = StatisticsEngine()
    stale = [replace(s, absence_count=4, risk_score=80) for s in students]

    fresh = engine.recompute_students((), stale)

    assert {(s.absence_count, s.risk_score) for s in fresh} == {(0, 0)}


def test_lost_time_example():
    history = (
        _rec("s1", 0, AttendanceStatus.ABSENT, session_duration=60),
        _rec("s1", 1, AttendanceStatus.LATE, minutes_late=15),
        _rec("s1", 2, AttendanceStatus.EXCUSED),
        _rec("s1", 3, AttendanceStatus.PRESENT),
    )
    assert StatisticsEngine().lost_instructional_time(history) == 75


def test_attendance_rate_counts_late_as_attended():
    history = (
        _rec("s1", 0),
        _rec("s1", 1, AttendanceStatus.LATE, minutes_late=5),
        _rec("s1", 2, AttendanceStatus.ABSENT),
    )
    assert StatisticsEngine().attendance_rate(history) == 66.7
    assert StatisticsEngine().attendance_rate(()) == 0.0


def test_chronic_threshold_is_strictly_above_ten_percent(students):
    engine = StatisticsEngine()
    # s1: 1 of 10 absent -> exactly 10%, not chronic; s2: 2 of 10 -> chronic
    history = tuple(
        _rec(sid, i, AttendanceStatus.ABSENT if i < absences else AttendanceStatus.PRESENT)
        for sid, absences in (("s1", 1), ("s2", 2))
        for i in range(10)
    )

    assert engine.chronic_absenteeism_rate(history, students) == 50.0
    assert [s.student_id for s in engine.at_risk(history, students)] == ["s2"]


def test_chronic_rate_ignores_students_without_sessions(students):
    history = (_rec("s1", 0, AttendanceStatus.ABSENT),)
    assert StatisticsEngine().chronic_absenteeism_rate(history, students) == 100.0
    assert StatisticsEngine().chronic_absenteeism_rate((), students) == 0.0


def test_subject_percentage_undefined_without_hours():
    history = (
        _rec("s1", 0, AttendanceStatus.ABSENT, subject="English"),
        _rec("s1", 1, AttendanceStatus.PRESENT, subject="Art"),
        _rec("s1", 2, AttendanceStatus.LATE, minutes_late=10),
    )
    rows = {r.subject: r for r in StatisticsEngine().subject_breakdown(history, "s1", SubjectConfig({"English": 20}))}

    assert rows["English"].percentage == 5.0
    assert rows["English"].lost_hours == 1.0
    assert rows["Art"].lost_minutes == 0
    assert rows["Art"].percentage is None
    assert rows["General"].lost_minutes == 10
    assert rows["General"].percentage is None


def test_at_risk_sorted_by_score_then_name(students):
    history = (
        _rec("s1", 0, AttendanceStatus.ABSENT),
        _rec("s2", 0, AttendanceStatus.ABSENT),
        _rec("s3", 0, AttendanceStatus.ABSENT),
        _rec("s3", 1),
    )
    ranked = StatisticsEngine().at_risk(history, students)
    assert [s.student_id for s in ranked] == ["s1", "s2", "s3"]
    assert [s.risk_score for s in ranked] == [100, 100, 50]


def test_daily_trend_groups_excused_with_absent():
    history = (
        _rec("s1", 1, AttendanceStatus.EXCUSED),
        _rec("s2", 1, AttendanceStatus.LATE, minutes_late=3),
        _rec("s1", 0),
    )
    trend = StatisticsEngine().daily_trend(history)

    assert [p.date for p in trend] == [DAY, DAY + timedelta(days=1)]
    assert (trend[1].present, trend[1].late, trend[1].absent, trend[1].total) == (0, 1, 1, 2)


def test_compute_metrics_is_idempotent(students):
    history = (
        _rec("s1", 0, AttendanceStatus.ABSENT, subject="English"),
        _rec("s2", 0, AttendanceStatus.PRESENT, subject="English"),
    )
    engine = StatisticsEngine()
    config = SubjectConfig({"English": 10})
    assert engine.compute_metrics(history, students, config) == engine.compute_metrics(history, students, config)

from __future__ import annotations

from typing import Any, Optional

from ..common.datetime_utils import coerce_date
from ..common.validators import optional_text, require_non_empty, require_non_negative_int, require_status
from ..core.constants import DEFAULT_SESSION_MINUTES
from ..core.enums import AttendanceStatus, RecordSource
from ..core.exceptions import ValidationError
from ..matching.model import Ambiguous, ExtractedItem, MatchedItem
from ..roster.model import Student
from ..statistics.model import DailyTrendPoint, Metrics, SubjectLostTime
from .model import AttendanceRecord, new_record_id


def _get(raw: dict, *names: str, default=None):
    for n in names:
        if n in raw and raw[n] is not None:
            return raw[n]
    return default


def record_from_dict(raw: Any) -> AttendanceRecord:
    if not isinstance(raw, dict):
        raise ValidationError("Each record must be an object")

    status = require_status(_get(raw, "status", default=""))
    source_raw = _get(raw, "source", default=RecordSource.MANUAL.value)
    try:
        source = RecordSource(str(source_raw).lower())
    except ValueError:
        raise ValidationError(f"Unknown record source: {source_raw!r}")

    minutes_late = 0
    if status == AttendanceStatus.LATE:
        minutes_late = require_non_negative_int(_get(raw, "minutes_late", "minutesLate", default=0), "minutes_late")

    duration = require_non_negative_int(
        _get(raw, "session_duration", "sessionDuration", default=DEFAULT_SESSION_MINUTES), "session_duration"
    )

    return AttendanceRecord(
        record_id=str(_get(raw, "record_id", "id", default="") or new_record_id()),
        student_id=require_non_empty(_get(raw, "student_id", "studentId"), "student_id"),
        date=coerce_date(require_non_empty(str(_get(raw, "date", default="")), "date")),
        status=status,
        source=source,
        minutes_late=minutes_late,
        notes=optional_text(_get(raw, "notes"), "notes"),
        subject=optional_text(_get(raw, "subject"), "subject"),
        session_duration=duration or DEFAULT_SESSION_MINUTES,
    )


def record_to_dict(r: AttendanceRecord) -> dict:
    return {
        "record_id": r.record_id,
        "student_id": r.student_id,
        "date": r.date.strftime("%Y-%m-%d"),
        "status": r.status.value,
        "source": r.source.value,
        "minutes_late": r.minutes_late,
        "notes": r.notes,
        "subject": r.subject,
        "session_duration": r.session_duration,
    }


def student_to_dict(s: Student) -> dict:
    return {
        "student_id": s.student_id,
        "first_name": s.first_name,
        "last_name": s.last_name,
        "student_code": s.student_code,
        "class_id": s.class_id,
        "parent_phone": s.parent_phone,
        "absence_count": s.absence_count,
        "risk_score": s.risk_score,
    }


def subject_to_dict(row: SubjectLostTime) -> dict:
    return {
        "subject": row.subject,
        "total_records": row.total_records,
        "absent_records": row.absent_records,
        "lost_minutes": row.lost_minutes,
        "lost_hours": row.lost_hours,
        "expected_hours": row.expected_hours,
        "percentage": row.percentage,
    }


def trend_to_dict(p: DailyTrendPoint) -> dict:
    return {
        "date": p.date.strftime("%Y-%m-%d"),
        "present": p.present,
        "late": p.late,
        "absent": p.absent,
        "total": p.total,
    }


def metrics_to_dict(m: Metrics) -> dict:
    return {
        "total_students": m.total_students,
        "attendance_rate": m.attendance_rate,
        "chronic_absenteeism_rate": m.chronic_absenteeism_rate,
        "lost_instructional_time": m.lost_instructional_time,
        "per_student_subject_breakdown": {
            sid: [subject_to_dict(row) for row in rows] for sid, rows in m.per_student_subject_breakdown.items()
        },
        "at_risk_list": [student_to_dict(s) for s in m.at_risk_list],
        "daily_trend": [trend_to_dict(p) for p in m.daily_trend],
    }


def extracted_item_to_dict(item: ExtractedItem) -> dict:
    return {
        "student_name": item.extracted_name,
        "status": item.status.value,
        "minutes_late": item.minutes_late,
        "notes": item.notes,
    }


def matched_item_to_dict(m: MatchedItem) -> dict:
    out = {
        "item": extracted_item_to_dict(m.item),
        "match": m.outcome.kind,
        "student_id": m.student_id,
    }
    if isinstance(m.outcome, Ambiguous):
        out["candidates"] = list(m.outcome.candidate_ids)
    return out


def optional_student_id(raw: dict) -> Optional[str]:
    value = _get(raw, "student_id", "studentId")
    return str(value) if value else None

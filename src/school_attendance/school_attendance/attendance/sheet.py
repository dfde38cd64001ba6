from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from typing import Optional, Union

from ..common.validators import optional_text, require_non_empty, require_non_negative_int, require_status
from ..core.constants import DEFAULT_LATE_MINUTES
from ..core.enums import AttendanceStatus, DefaultFillPolicy, RecordSource
from ..core.exceptions import ValidationError
from ..roster.model import Roster
from ..timing.resolver import resolve_session_duration
from .model import AttendanceRecord, History, new_record_id
from .reconciler import session_records


@dataclass(frozen=True)
class SheetMark:
    status: AttendanceStatus
    minutes_late: int = 0
    notes: Optional[str] = None
    record_id: Optional[str] = None


@dataclass
class AttendanceSheet:
    """Manual attendance sheet for one class session.

    Holds the marks entered by hand until `build` turns them into records for every
    student of the class.
    """

    class_id: Optional[str]
    subject: Optional[str]
    date: date
    start_time: Union[time, str, None] = "08:00"
    end_time: Union[time, str, None] = "09:00"
    marks: dict[str, SheetMark] = field(default_factory=dict)

    @property
    def session_duration(self) -> int:
        return resolve_session_duration(self.start_time, self.end_time)

    @property
    def is_editing(self) -> bool:
        return any(m.record_id for m in self.marks.values())

    def mark(
        self,
        student_id: str,
        status: AttendanceStatus | str,
        *,
        minutes_late: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> SheetMark:
        status = require_status(status)
        previous = self.marks.get(student_id)

        if status == AttendanceStatus.LATE:
            if minutes_late is None:
                minutes_late = previous.minutes_late if previous and previous.minutes_late else DEFAULT_LATE_MINUTES
            late = require_non_negative_int(minutes_late, "minutes_late")
        else:
            late = 0

        if notes is None:
            notes = previous.notes if previous else None
        else:
            notes = optional_text(notes, "notes")

        m = SheetMark(
            status=status,
            minutes_late=late,
            notes=notes,
            record_id=previous.record_id if previous else None,
        )
        self.marks[student_id] = m
        return m

    def mark_all(self, roster: Roster, status: AttendanceStatus | str) -> None:
        for s in roster.students_in_class(self._require_class()):
            self.mark(s.student_id, status)

    def unmarked(self, roster: Roster) -> list[str]:
        return [
            s.student_id
            for s in roster.students_in_class(self._require_class())
            if s.student_id not in self.marks
        ]

    def build(self, roster: Roster, *, policy: DefaultFillPolicy = DefaultFillPolicy.PRESENT) -> list[AttendanceRecord]:
        class_id = self._require_class()
        if roster.get_class(class_id) is None:
            raise ValidationError(f"Unknown class: {class_id}")
        subject = require_non_empty(self.subject, "subject")

        missing = self.unmarked(roster)
        if missing and policy == DefaultFillPolicy.REQUIRE_EXPLICIT:
            raise ValidationError(f"Unmarked students: {', '.join(missing)}")

        duration = self.session_duration
        records: list[AttendanceRecord] = []
        for s in roster.students_in_class(class_id):
            m = self.marks.get(s.student_id) or SheetMark(status=AttendanceStatus.PRESENT)
            records.append(
                AttendanceRecord(
                    record_id=m.record_id or new_record_id(),
                    student_id=s.student_id,
                    date=self.date,
                    status=m.status,
                    source=RecordSource.MANUAL,
                    minutes_late=m.minutes_late if m.status == AttendanceStatus.LATE else 0,
                    notes=m.notes,
                    subject=subject,
                    session_duration=duration,
                )
            )
        return records

    def _require_class(self) -> str:
        return require_non_empty(self.class_id, "class")

    @classmethod
    def from_history(
        cls,
        history: History,
        roster: Roster,
        *,
        class_id: str,
        subject: Optional[str],
        session_date: date,
        start_time: Union[time, str, None] = "08:00",
        end_time: Union[time, str, None] = "09:00",
    ) -> "AttendanceSheet":
        """Reopen a stored session for editing, keeping record ids and marks."""

        sheet = cls(class_id=class_id, subject=subject, date=session_date, start_time=start_time, end_time=end_time)
        for r in session_records(history, roster, class_id, session_date):
            sheet.marks[r.student_id] = SheetMark(
                status=r.status,
                minutes_late=r.minutes_late,
                notes=r.notes,
                record_id=r.record_id,
            )
        return sheet

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Optional, Sequence

from ..common.validators import optional_text, require_non_negative_int, require_status
from ..core.constants import DEFAULT_SESSION_MINUTES, MANUAL_ENTRY_LABEL
from ..core.enums import AttendanceStatus, RecordSource
from ..core.exceptions import CommitWithoutMatches, ValidationError
from ..roster.model import Roster
from ..attendance.model import AttendanceRecord
from .matcher import IdentityMatcher
from .model import ExtractedItem, MatchedItem, NoMatch, Resolved


@dataclass
class ExtractionBatch:
    """Review list between optical extraction and commit.

    Rows may be matched by hand, edited, added or withdrawn; only rows with a
    resolved student are committed.
    """

    roster: Roster
    rows: list[MatchedItem] = field(default_factory=list)

    @classmethod
    def from_items(
        cls,
        items: Sequence[ExtractedItem],
        roster: Roster,
        matcher: Optional[IdentityMatcher] = None,
    ) -> "ExtractionBatch":
        matcher = matcher or IdentityMatcher()
        return cls(roster=roster, rows=matcher.match_items(items, roster.students))

    def _row(self, index: int) -> MatchedItem:
        if not 0 <= index < len(self.rows):
            raise ValidationError(f"No row at position {index}")
        return self.rows[index]

    def add_manual_row(self) -> MatchedItem:
        row = MatchedItem(
            item=ExtractedItem(extracted_name=MANUAL_ENTRY_LABEL, status=AttendanceStatus.PRESENT),
            outcome=NoMatch(),
        )
        self.rows.insert(0, row)
        return row

    def remove_row(self, index: int) -> MatchedItem:
        self._row(index)
        return self.rows.pop(index)

    def assign(self, index: int, student_id: Optional[str]) -> MatchedItem:
        row = self._row(index)
        if not student_id:
            outcome = NoMatch()
        elif self.roster.get_student(student_id) is None:
            raise ValidationError(f"Unknown student: {student_id}")
        else:
            outcome = Resolved(student_id)

        self.rows[index] = replace(row, outcome=outcome)
        return self.rows[index]

    def update_row(
        self,
        index: int,
        *,
        status: AttendanceStatus | str | None = None,
        minutes_late: Optional[int] = None,
        notes: Optional[str] = None,
        label: Optional[str] = None,
    ) -> MatchedItem:
        row = self._row(index)
        item = row.item

        new_status = require_status(status) if status is not None else item.status
        if new_status == AttendanceStatus.LATE:
            late = require_non_negative_int(minutes_late, "minutes_late") if minutes_late is not None else item.minutes_late
        else:
            late = 0

        item = replace(
            item,
            status=new_status,
            minutes_late=late,
            notes=optional_text(notes, "notes") if notes is not None else item.notes,
            extracted_name=label if label is not None else item.extracted_name,
        )
        self.rows[index] = replace(row, item=item)
        return self.rows[index]

    @property
    def unresolved(self) -> list[MatchedItem]:
        return [r for r in self.rows if not r.is_resolved]

    def commit(
        self,
        session_date: date,
        *,
        subject: Optional[str] = None,
        session_duration: int = DEFAULT_SESSION_MINUTES,
    ) -> list[AttendanceRecord]:
        records = [
            AttendanceRecord(
                student_id=r.student_id,
                date=session_date,
                status=r.item.status,
                source=RecordSource.OCR,
                minutes_late=r.item.minutes_late if r.item.status == AttendanceStatus.LATE else 0,
                notes=r.item.notes,
                subject=optional_text(subject, "subject"),
                session_duration=session_duration if session_duration and session_duration > 0 else DEFAULT_SESSION_MINUTES,
            )
            for r in self.rows
            if r.is_resolved
        ]
        if not records:
            raise CommitWithoutMatches("No students matched. Please select students manually.")
        return records

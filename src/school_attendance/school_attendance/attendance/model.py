from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..core.constants import DEFAULT_SESSION_MINUTES
from ..core.enums import AttendanceStatus, RecordSource
from ..roster.model import Student


def new_record_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's attendance for one attendance-taking date.

    `(student_id, date)` is the natural key; history never holds two records
    with the same key.
    """

    student_id: str
    date: date
    status: AttendanceStatus
    source: RecordSource = RecordSource.MANUAL
    minutes_late: int = 0
    notes: Optional[str] = None
    subject: Optional[str] = None
    session_duration: int = DEFAULT_SESSION_MINUTES
    record_id: str = field(default_factory=new_record_id)

    def __post_init__(self):
        if self.status != AttendanceStatus.LATE and self.minutes_late:
            raise ValueError("minutes_late must be 0 unless status is late")
        if self.minutes_late < 0:
            raise ValueError("minutes_late must not be negative")

    @property
    def key(self) -> tuple[str, date]:
        return (self.student_id, self.date)


History = tuple[AttendanceRecord, ...]


@dataclass(frozen=True)
class HistoryChange:
    """Difference between two history snapshots, as persisted by repositories."""

    removed: tuple[AttendanceRecord, ...] = ()
    added: tuple[AttendanceRecord, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.removed and not self.added


@dataclass(frozen=True)
class SubmitResult:
    history: History
    students: tuple[Student, ...]
    change: HistoryChange

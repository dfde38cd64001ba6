"""Record reconciliation: upsert by (student, date) and session deletion.

Both operations are pure: they take a history snapshot and return a new one.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from ..core.exceptions import ValidationError
from ..roster.model import Roster
from .model import AttendanceRecord, History, HistoryChange


def _last_per_key(records: Iterable[AttendanceRecord]) -> list[AttendanceRecord]:
    by_key: dict[tuple[str, date], AttendanceRecord] = {}
    for r in records:
        by_key.pop(r.key, None)
        by_key[r.key] = r
    return list(by_key.values())


def submit(history: History, records: Iterable[AttendanceRecord]) -> History:
    """Merge incoming records into history, replacing any record with the same key.

    If the incoming batch repeats a key, the later record wins. A record id may
    only be carried over to the same key.
    """

    incoming = _last_per_key(records)
    incoming_keys = {r.key for r in incoming}
    remaining = [r for r in history if r.key not in incoming_keys]
    merged = tuple(remaining + incoming)

    reused = duplicate_record_ids(merged)
    if reused:
        raise ValidationError(f"record_id already used by another student or date: {', '.join(sorted(reused))}")
    return merged


def delete_session(history: History, roster: Roster, class_id: str, session_date: date) -> History:
    """Remove the records of `class_id`'s current students dated `session_date`."""

    class_student_ids = roster.student_ids_in_class(class_id)
    return tuple(
        r for r in history if not (r.date == session_date and r.student_id in class_student_ids)
    )


def session_records(history: History, roster: Roster, class_id: str, session_date: date) -> History:
    class_student_ids = roster.student_ids_in_class(class_id)
    return tuple(r for r in history if r.date == session_date and r.student_id in class_student_ids)


def diff(before: History, after: History) -> HistoryChange:
    after_set = set(after)
    before_set = set(before)
    return HistoryChange(
        removed=tuple(r for r in before if r not in after_set),
        added=tuple(r for r in after if r not in before_set),
    )


def duplicate_keys(history: History) -> set[tuple[str, date]]:
    seen: set[tuple[str, date]] = set()
    dupes: set[tuple[str, date]] = set()
    for r in history:
        if r.key in seen:
            dupes.add(r.key)
        seen.add(r.key)
    return dupes


def duplicate_record_ids(history: History) -> set[str]:
    seen: set[str] = set()
    dupes: set[str] = set()
    for r in history:
        if r.record_id in seen:
            dupes.add(r.record_id)
        seen.add(r.record_id)
    return dupes

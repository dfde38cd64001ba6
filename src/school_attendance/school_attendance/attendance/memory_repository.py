from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import Iterable, Mapping, Optional, Sequence

from ..core.exceptions import StaleHistoryError
from ..roster.model import ClassGroup, Roster, Student, SubjectConfig
from .model import AttendanceRecord, History, HistoryChange
from .reconciler import duplicate_keys, duplicate_record_ids


@dataclass(frozen=True)
class _Snapshot:
    history: History
    roster: Roster


class InMemoryAttendanceStore:
    """History + roster held as one immutable snapshot, swapped on commit.

    Serves both the attendance and roster repository roles, for tests and
    hosts that keep their own storage.
    """

    def __init__(
        self,
        *,
        students: Iterable[Student] = (),
        classes: Iterable[ClassGroup] = (),
        history: Iterable[AttendanceRecord] = (),
        subject_hours: Optional[Mapping[str, float]] = None,
    ):
        history = tuple(history)
        dupes = duplicate_keys(history)
        if dupes:
            raise ValueError(f"History has duplicate (student, date) keys: {sorted(dupes)}")

        self._lock = threading.Lock()
        self._snapshot = _Snapshot(history=history, roster=Roster(students=tuple(students), classes=tuple(classes)))
        self._subjects = SubjectConfig(dict(subject_hours or {}))

    def load_history(self) -> History:
        return self._snapshot.history

    def get_roster(self) -> Roster:
        return self._snapshot.roster

    def get_subject_config(self) -> SubjectConfig:
        return self._subjects

    def commit(
        self,
        change: HistoryChange,
        *,
        students: Sequence[Student],
        base: Optional[History] = None,
    ) -> None:
        with self._lock:
            current = self._snapshot
            if base is not None and base != current.history:
                raise StaleHistoryError()

            stored = set(current.history)
            if any(r not in stored for r in change.removed):
                raise StaleHistoryError()

            removed = set(change.removed)
            history = tuple(r for r in current.history if r not in removed) + tuple(change.added)
            if duplicate_keys(history) or duplicate_record_ids(history):
                raise StaleHistoryError()

            derived = {s.student_id: s for s in students}
            roster_students = tuple(
                replace(
                    s,
                    absence_count=derived[s.student_id].absence_count,
                    risk_score=derived[s.student_id].risk_score,
                )
                if s.student_id in derived
                else s
                for s in current.roster.students
            )
            self._snapshot = _Snapshot(history=history, roster=replace(current.roster, students=roster_students))

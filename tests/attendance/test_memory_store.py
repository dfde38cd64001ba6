from __future__ import annotations

import pytest

from src.school_attendance.school_attendance.attendance import reconciler
from src.school_attendance.school_attendance.attendance.memory_repository import InMemoryAttendanceStore
from src.school_attendance.school_attendance.attendance.model import AttendanceRecord, HistoryChange
from src.school_attendance.school_attendance.attendance.service import AttendanceService
from src.school_attendance.school_attendance.core.enums import AttendanceStatus
from src.school_attendance.school_attendance.core.exceptions import StaleHistoryError


class LaggingHistory:
    """Attendance repository view that keeps returning an old history snapshot."""

    def __init__(self, store, history):
        self._store = store
        self._history = history

    def load_history(self):
        return self._history

    def commit(self, change, *, students, base=None):
        self._store.commit(change, students=students, base=base)


def _rec(student_id, day, status=AttendanceStatus.PRESENT, **kw):
    return AttendanceRecord(student_id=student_id, date=day, status=status, **kw)


def test_writer_on_old_snapshot_is_rejected(store, session_date):
    old = store.load_history()
    first = AttendanceService(store, store)
    late_writer = AttendanceService(LaggingHistory(store, old), store)

    first.submit_attendance([_rec("s1", session_date, AttendanceStatus.ABSENT)])

    with pytest.raises(StaleHistoryError):
        late_writer.submit_attendance([_rec("s1", session_date, AttendanceStatus.PRESENT)])

    history = store.load_history()
    assert [(r.student_id, r.status) for r in history] == [("s1", AttendanceStatus.ABSENT)]
    assert not reconciler.duplicate_keys(history)
    assert store.get_roster().get_student("s1").risk_score == 100


def test_old_snapshot_rejected_even_for_other_keys(store, session_date):
    old = store.load_history()
    AttendanceService(store, store).submit_attendance([_rec("s1", session_date, AttendanceStatus.ABSENT)])

    with pytest.raises(StaleHistoryError):
        AttendanceService(LaggingHistory(store, old), store).submit_attendance([_rec("s2", session_date)])

    assert store.get_roster().get_student("s1").absence_count == 1


def test_commit_without_base_still_guards_keys_and_removals(store, session_date):
    stored = _rec("s1", session_date, AttendanceStatus.ABSENT)
    store.commit(HistoryChange(added=(stored,)), students=())

    with pytest.raises(StaleHistoryError):
        store.commit(HistoryChange(added=(_rec("s1", session_date),)), students=())

    with pytest.raises(StaleHistoryError):
        store.commit(HistoryChange(removed=(_rec("s2", session_date),)), students=())

    assert store.load_history() == (stored,)


def test_seeded_history_must_be_unique(students, classes, session_date):
    with pytest.raises(ValueError):
        InMemoryAttendanceStore(
            students=students,
            classes=classes,
            history=[_rec("s1", session_date), _rec("s1", session_date, AttendanceStatus.ABSENT)],
        )

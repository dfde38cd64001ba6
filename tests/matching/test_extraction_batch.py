from datetime import date

import pytest

from src.school_attendance.school_attendance.core.enums import AttendanceStatus, RecordSource
from src.school_attendance.school_attendance.core.exceptions import CommitWithoutMatches, ValidationError
from src.school_attendance.school_attendance.matching.batch import ExtractionBatch
from src.school_attendance.school_attendance.matching.model import ExtractedItem

DAY = date(2025, 3, 10)


def _batch(roster):
    items = [
        ExtractedItem(extracted_name="Sara", status=AttendanceStatus.ABSENT),
        ExtractedItem(extracted_name="Ahmed", status=AttendanceStatus.LATE, minutes_late=10),
        ExtractedItem(extracted_name="Zed", status=AttendanceStatus.PRESENT),
    ]
    return ExtractionBatch.from_items(items, roster)


def test_only_resolved_rows_are_committed(roster):
    batch = _batch(roster)
    assert len(batch.unresolved) == 2

    records = batch.commit(DAY, subject="English", session_duration=45)

    assert [r.student_id for r in records] == ["s2"]
    assert records[0].source == RecordSource.OCR
    assert records[0].session_duration == 45


def test_manual_assignment(roster):
    batch = _batch(roster)
    batch.assign(1, "s3")
    batch.assign(0, None)

    records = batch.commit(DAY)

    assert [(r.student_id, r.minutes_late) for r in records] == [("s3", 10)]


def test_assign_unknown_student(roster):
    with pytest.raises(ValidationError):
        _batch(roster).assign(0, "ghost")


def test_manual_row_goes_first(roster):
    batch = _batch(roster)
    row = batch.add_manual_row()

    assert batch.rows[0] is row
    assert row.item.extracted_name == "Manual Entry"
    assert row.item.status == AttendanceStatus.PRESENT
    assert not row.is_resolved


def test_update_and_remove_rows(roster):
    batch = _batch(roster)
    batch.update_row(0, status="late", minutes_late=5, notes="rain")
    assert batch.rows[0].item.minutes_late == 5
    assert batch.rows[0].item.notes == "rain"

    batch.update_row(0, status="present")
    assert batch.rows[0].item.minutes_late == 0

    batch.remove_row(0)
    assert len(batch.rows) == 2
    with pytest.raises(ValidationError):
        batch.remove_row(5)


def test_commit_with_nothing_resolved(roster):
    batch = _batch(roster)
    batch.assign(0, None)
    with pytest.raises(CommitWithoutMatches, match="No students matched"):
        batch.commit(DAY)


def test_zero_duration_falls_back(roster):
    records = _batch(roster).commit(DAY, session_duration=0)
    assert records[0].session_duration == 60


def test_subject_must_be_text(roster):
    with pytest.raises(ValidationError):
        _batch(roster).commit(DAY, subject=["English"])

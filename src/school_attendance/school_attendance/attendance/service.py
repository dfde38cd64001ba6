from __future__ import annotations

import logging
import threading
from datetime import date
from typing import Callable, Iterable, Optional, Sequence, Union

from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_SESSION_MINUTES
from ..core.enums import DefaultFillPolicy
from ..core.exceptions import ValidationError
from ..matching.batch import ExtractionBatch
from ..matching.extraction import ExtractionClient, RawPayload, parse_extraction_payload, run_extraction
from ..matching.matcher import IdentityMatcher
from ..matching.model import ExtractedItem, MatchedItem
from ..roster.model import Roster
from ..roster.repository import RosterRepository
from ..statistics.engine import StatisticsEngine
from ..statistics.model import Metrics, SubjectLostTime
from . import reconciler
from .model import AttendanceRecord, History, SubmitResult
from .repository import AttendanceRepository
from .sheet import AttendanceSheet

logger = logging.getLogger(__name__)


def _require_known_class(roster: Roster, class_id: str) -> None:
    if roster.get_class(class_id) is None:
        raise ValidationError(f"Unknown class: {class_id}")


class AttendanceService:
    """Entry point for every attendance mutation and metric query.

    Mutations run under one lock: load snapshot, reconcile, recompute student
    statistics, then commit history and student fields together.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        roster: RosterRepository,
        *,
        engine: Optional[StatisticsEngine] = None,
        matcher: Optional[IdentityMatcher] = None,
        fill_policy: DefaultFillPolicy = DefaultFillPolicy.PRESENT,
        extraction_client: Optional[ExtractionClient] = None,
    ):
        self._attendance = attendance
        self._roster = roster
        self._engine = engine or StatisticsEngine()
        self._matcher = matcher or IdentityMatcher()
        self._fill_policy = DefaultFillPolicy(fill_policy)
        self._extraction_client = extraction_client
        self._lock = threading.RLock()

    @property
    def fill_policy(self) -> DefaultFillPolicy:
        return self._fill_policy

    def _apply(self, transform: Callable[[History, Roster], History], *, action: str) -> SubmitResult:
        with self._lock:
            history = self._attendance.load_history()
            roster = self._roster.get_roster()

            new_history = transform(history, roster)
            students = self._engine.recompute_students(new_history, roster.students)
            change = reconciler.diff(history, new_history)

            self._attendance.commit(change, students=students, base=history)
            logger.info(
                "%s: -%d +%d records (history=%d)",
                action,
                len(change.removed),
                len(change.added),
                len(new_history),
            )
            return SubmitResult(history=new_history, students=students, change=change)

    def submit_attendance(self, records: Iterable[AttendanceRecord]) -> SubmitResult:
        records = list(records)

        def transform(history: History, roster: Roster) -> History:
            known = {s.student_id for s in roster.students}
            unknown = sorted({r.student_id for r in records if r.student_id not in known})
            if unknown:
                raise ValidationError(f"Unknown students: {', '.join(unknown)}")
            return reconciler.submit(history, records)

        return self._apply(transform, action="submit")

    def submit_sheet(self, sheet: AttendanceSheet) -> SubmitResult:
        records = sheet.build(self._roster.get_roster(), policy=self._fill_policy)
        return self.submit_attendance(records)

    def open_sheet(
        self,
        *,
        class_id: str,
        session_date: date,
        subject: Optional[str] = None,
        start_time=None,
        end_time=None,
    ) -> AttendanceSheet:
        """Sheet pre-filled with whatever is stored for (class, date)."""

        class_id = require_non_empty(class_id, "class")
        roster = self._roster.get_roster()
        _require_known_class(roster, class_id)

        kwargs = {}
        if start_time is not None:
            kwargs["start_time"] = start_time
        if end_time is not None:
            kwargs["end_time"] = end_time
        return AttendanceSheet.from_history(
            self._attendance.load_history(),
            roster,
            class_id=class_id,
            subject=subject,
            session_date=session_date,
            **kwargs,
        )

    def delete_session(self, class_id: str, session_date: date) -> SubmitResult:
        class_id = require_non_empty(class_id, "class")

        def transform(history: History, roster: Roster) -> History:
            _require_known_class(roster, class_id)
            return reconciler.delete_session(history, roster, class_id, session_date)

        return self._apply(
            transform,
            action=f"delete session {class_id}/{session_date.isoformat()}",
        )

    def history(self) -> History:
        return self._attendance.load_history()

    def compute_metrics(self) -> Metrics:
        with self._lock:
            history = self._attendance.load_history()
            roster = self._roster.get_roster()
        return self._engine.compute_metrics(history, roster.students, self._roster.get_subject_config())

    def subject_breakdown(self, student_id: str) -> tuple[SubjectLostTime, ...]:
        roster = self._roster.get_roster()
        if roster.get_student(student_id) is None:
            raise ValidationError(f"Unknown student: {student_id}")
        return self._engine.subject_breakdown(
            self._attendance.load_history(), student_id, self._roster.get_subject_config()
        )

    def match_identities(self, items: Union[RawPayload, Sequence[ExtractedItem]]) -> list[MatchedItem]:
        return self.start_extraction_batch(items).rows

    def start_extraction_batch(self, items: Union[RawPayload, Sequence[ExtractedItem]]) -> ExtractionBatch:
        if not isinstance(items, (list, tuple)) or not all(isinstance(i, ExtractedItem) for i in items):
            items = parse_extraction_payload(items)
        return ExtractionBatch.from_items(items, self._roster.get_roster(), self._matcher)

    def extract_from_image(self, image: bytes, mime_type: str = "image/jpeg") -> ExtractionBatch:
        if self._extraction_client is None:
            raise ValidationError("No extraction service configured")
        return self.start_extraction_batch(run_extraction(self._extraction_client, image, mime_type))

    def resolve_name(self, name: str) -> str:
        return self._matcher.resolve_strict(name, self._roster.get_roster().students)

    def commit_extraction(
        self,
        batch: ExtractionBatch,
        session_date: date,
        *,
        subject: Optional[str] = None,
        session_duration: int = DEFAULT_SESSION_MINUTES,
    ) -> SubmitResult:
        records = batch.commit(session_date, subject=subject, session_duration=session_duration)
        return self.submit_attendance(records)

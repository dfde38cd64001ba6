from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class ExtractedItem:
    """One row read off a photographed sign-in sheet."""

    extracted_name: str
    status: AttendanceStatus
    minutes_late: int = 0
    notes: Optional[str] = None


@dataclass(frozen=True)
class Resolved:
    resolved_id: str
    kind: str = "resolved"

    @property
    def student_id(self) -> Optional[str]:
        return self.resolved_id


@dataclass(frozen=True)
class Ambiguous:
    candidate_ids: tuple[str, ...]
    kind: str = "ambiguous"

    @property
    def student_id(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class NoMatch:
    kind: str = "no_match"

    @property
    def student_id(self) -> Optional[str]:
        return None


MatchOutcome = Union[Resolved, Ambiguous, NoMatch]


@dataclass(frozen=True)
class MatchedItem:
    item: ExtractedItem
    outcome: MatchOutcome

    @property
    def student_id(self) -> Optional[str]:
        return self.outcome.student_id

    @property
    def is_resolved(self) -> bool:
        return isinstance(self.outcome, Resolved)

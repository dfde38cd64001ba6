from __future__ import annotations

import logging
from typing import Iterable, Sequence

from ..core.exceptions import AmbiguousMatchError
from ..roster.model import Student
from .model import Ambiguous, ExtractedItem, MatchedItem, MatchOutcome, NoMatch, Resolved

logger = logging.getLogger(__name__)


class IdentityMatcher:
    """Token-inclusion fuzzy matching of extracted names against the roster.

    A student matches when every whitespace token of the extracted name is a
    substring of the student's "first last" name (both case-folded). Exactly one
    match resolves; zero or several are reported as-is, never guessed.
    """

    @staticmethod
    def tokens(name: str) -> list[str]:
        return (name or "").casefold().split()

    def candidates(self, name: str, students: Iterable[Student]) -> list[Student]:
        parts = self.tokens(name)
        if not parts:
            return []

        found = []
        for s in students:
            full_name = f"{s.first_name} {s.last_name}".casefold()
            if all(p in full_name for p in parts):
                found.append(s)
        return found

    def match(self, name: str, students: Iterable[Student]) -> MatchOutcome:
        found = self.candidates(name, students)
        if len(found) == 1:
            return Resolved(found[0].student_id)
        if found:
            return Ambiguous(tuple(s.student_id for s in found))
        return NoMatch()

    def match_items(self, items: Sequence[ExtractedItem], students: Sequence[Student]) -> list[MatchedItem]:
        matched = [MatchedItem(item=item, outcome=self.match(item.extracted_name, students)) for item in items]

        unresolved = sum(1 for m in matched if not m.is_resolved)
        if unresolved:
            logger.warning("%d of %d extracted names need manual matching", unresolved, len(matched))
        return matched

    def resolve_strict(self, name: str, students: Iterable[Student]) -> str:
        outcome = self.match(name, students)
        if not isinstance(outcome, Resolved):
            raise AmbiguousMatchError(name, outcome)
        return outcome.resolved_id

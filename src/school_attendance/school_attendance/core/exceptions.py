from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..matching.model import MatchOutcome


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class CommitWithoutMatches(ValidationError):
    """Raised when an extraction batch is committed with no resolved student."""


class AmbiguousMatchError(DomainError):
    """Raised when a name cannot be tied to exactly one roster entry.

    Soft error: batch matching reports the outcome per row instead of raising.
    """

    def __init__(self, name: str, outcome: "MatchOutcome"):
        super().__init__(f"Cannot resolve '{name}' to a single student ({outcome.kind})")
        self.name = name
        self.outcome = outcome


class ExternalServiceFailure(DomainError):
    """Raised when the optical extraction collaborator fails or returns malformed data."""


class StaleHistoryError(DomainError):
    """Raised when a commit was computed from a history that has since changed."""

    def __init__(self, message: str = "Attendance history changed since it was read; reload and retry"):
        super().__init__(message)

from __future__ import annotations

from typing import Protocol

from .model import Roster, SubjectConfig


class RosterRepository(Protocol):
    """Roster source owned by the roster-management collaborator.

    The core only reads from it; derived student fields are written back through
    the attendance repository commit so history and scores change together.
    """

    def get_roster(self) -> Roster:
        raise NotImplementedError

    def get_subject_config(self) -> SubjectConfig:
        raise NotImplementedError

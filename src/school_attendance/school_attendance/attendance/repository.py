from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..roster.model import Student
from .model import History, HistoryChange


class AttendanceRepository(Protocol):
    def load_history(self) -> History:
        raise NotImplementedError

    def commit(
        self,
        change: HistoryChange,
        *,
        students: Sequence[Student],
        base: Optional[History] = None,
    ) -> None:
        """Persist a history change and the recomputed student fields as one unit.

        Implementations must apply both or neither, and raise StaleHistoryError
        when `change` no longer applies to what is stored (`base` is the history
        the change was computed from, when the caller has it).
        """

        raise NotImplementedError

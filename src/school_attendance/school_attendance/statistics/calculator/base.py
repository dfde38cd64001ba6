from __future__ import annotations

from abc import ABC, abstractmethod

from ...attendance.model import AttendanceRecord


class LostTimeCalculator(ABC):
    """Calculator interface (Strategy Pattern for lost instructional time)."""

    @abstractmethod
    def lost_minutes(self, record: AttendanceRecord) -> int:
        raise NotImplementedError

from __future__ import annotations

from .base import LostTimeCalculator
from ...attendance.model import AttendanceRecord
from ...core.constants import DEFAULT_SESSION_MINUTES
from ...core.enums import AttendanceStatus


class StandardLostTimeCalculator(LostTimeCalculator):
    """Standard rule: absent loses the whole session, late loses the minutes missed.

    Present and excused records lose nothing.
    """

    def lost_minutes(self, record: AttendanceRecord) -> int:
        if record.status == AttendanceStatus.ABSENT:
            return int(record.session_duration or DEFAULT_SESSION_MINUTES)
        if record.status == AttendanceStatus.LATE:
            return int(record.minutes_late or 0)
        return 0

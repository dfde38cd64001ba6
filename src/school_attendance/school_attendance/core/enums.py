from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Attendance status stored on every record."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class RecordSource(str, Enum):
    """Where a record was captured."""

    MANUAL = "manual"
    OCR = "ocr"


class DefaultFillPolicy(str, Enum):
    """What a manual sheet does with roster members nobody marked."""

    PRESENT = "present"
    REQUIRE_EXPLICIT = "require_explicit"

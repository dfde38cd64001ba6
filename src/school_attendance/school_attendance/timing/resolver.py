from __future__ import annotations

from datetime import datetime, time
from typing import Optional, Union

from ..core.constants import DEFAULT_SESSION_MINUTES

ClockValue = Union[time, str, None]


def parse_clock(value: ClockValue) -> Optional[time]:
    """Parse 'HH:MM' (or 'HH:MM:SS') into a time; None when missing or unreadable."""

    if value is None:
        return None
    if isinstance(value, time):
        return value

    v = str(value).strip()
    if not v:
        return None
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(v, fmt).time()
        except ValueError:
            continue
    return None


def resolve_session_duration(start: ClockValue, end: ClockValue) -> int:
    """Minutes between start and end on the same day.

    Falls back to DEFAULT_SESSION_MINUTES when either side is missing or the
    span is not positive; never raises.
    """

    start_t = parse_clock(start)
    end_t = parse_clock(end)
    if start_t is None or end_t is None:
        return DEFAULT_SESSION_MINUTES

    minutes = (end_t.hour * 60 + end_t.minute) - (start_t.hour * 60 + start_t.minute)
    return minutes if minutes > 0 else DEFAULT_SESSION_MINUTES

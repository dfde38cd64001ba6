from datetime import time

import pytest

from src.school_attendance.school_attendance.timing.resolver import parse_clock, resolve_session_duration


def test_duration_is_minutes_between_start_and_end():
    assert resolve_session_duration("08:00", "09:30") == 90
    assert resolve_session_duration(time(13, 15), time(14, 0)) == 45


@pytest.mark.parametrize(
    "start,end",
    [
        (None, "09:00"),
        ("08:00", None),
        ("", ""),
        ("9h", "10h"),
        ("10:00", "09:00"),
        ("09:00", "09:00"),
    ],
)
def test_duration_falls_back_to_sixty(start, end):
    assert resolve_session_duration(start, end) == 60


def test_parse_clock_accepts_seconds():
    assert parse_clock("08:05:30") == time(8, 5, 30)
    assert parse_clock("25:00") is None

"""
Time parsing utilities for doctor schedules and appointment requests.

Schedules and bookings arrive as free-form strings ("09:00", "9:00 AM",
"2:30 pm", "17:00:00"). Everything is normalized to ``datetime.time`` at the
model boundary so the matching code compares real values, never strings.
"""

import re
from datetime import date, datetime, time
from typing import Union

WEEKDAY_KEYS = (
    "monday", "tuesday", "wednesday", "thursday",
    "friday", "saturday", "sunday"
)

_TIME_PATTERN = re.compile(
    r"^\s*(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?(?::(?P<second>\d{2}))?\s*(?P<meridiem>am|pm)?\s*$",
    re.IGNORECASE
)


def parse_time_of_day(value: Union[str, time]) -> time:
    """
    Parse a wall-clock time in 24-hour or 12-hour notation.

    Args:
        value: "HH:MM", "HH:MM:SS", "H:MM AM/PM" or a ``time`` instance

    Returns:
        Naive ``datetime.time``

    Raises:
        ValueError: If the string is not a recognizable time
    """
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unsupported time value: {value!r}")

    match = _TIME_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid time format: {value!r}")

    hour = int(match.group("hour"))
    minute = int(match.group("minute") or 0)
    second = int(match.group("second") or 0)
    meridiem = (match.group("meridiem") or "").lower()

    if meridiem:
        if not 1 <= hour <= 12:
            raise ValueError(f"Invalid 12-hour time: {value!r}")
        if meridiem == "pm" and hour < 12:
            hour += 12
        elif meridiem == "am" and hour == 12:
            hour = 0

    return time(hour, minute, second)


def parse_calendar_date(value: Union[str, date, datetime]) -> date:
    """Parse an ISO calendar date ("YYYY-MM-DD")."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unsupported date value: {value!r}")
    return date.fromisoformat(value.strip())


def weekday_key(day: date) -> str:
    """Lowercase weekday name used as the schedule key (Monday first)."""
    return WEEKDAY_KEYS[day.weekday()]


def format_time(value: time) -> str:
    """Render a time as "HH:MM" for storage and messages."""
    return value.strftime("%H:%M")

"""
Duration calculator for screening operations.

Business rule:
    duration = end - start (minutes) when end > start, otherwise 0.

Equal times, missing times and spans that would cross midnight all yield 0.
Overnight operations are not supported.
"""

import re
from datetime import time

from app.core.exceptions import ValidationError

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_time(value):
    """Parse an "HH:MM" value into (hour, minute).

    Accepts a ``datetime.time`` as well. Returns None for empty input.

    Raises:
        ValidationError: If the value is not a valid time of day.
    """
    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value.hour, value.minute
    match = _TIME_RE.match(str(value).strip())
    if not match:
        raise ValidationError(
            f"Invalid time: {value!r}. Use HH:MM.", details={"time": str(value)}
        )
    hour, minute = int(match.group(1)), int(match.group(2))
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValidationError(
            f"Invalid time: {value!r}. Hour must be 0-23, minute 0-59.",
            details={"time": str(value)},
        )
    return hour, minute


def normalize_time(value):
    """Return value as a zero-padded "HH:MM" string, or None when empty."""
    parsed = parse_time(value)
    if parsed is None:
        return None
    return f"{parsed[0]:02d}:{parsed[1]:02d}"


def calculate_duration(start_time, end_time) -> int:
    """Return elapsed minutes between two times of day (0 if not positive)."""
    start = parse_time(start_time)
    end = parse_time(end_time)
    if start is None or end is None:
        return 0
    start_min = start[0] * 60 + start[1]
    end_min = end[0] * 60 + end[1]
    return end_min - start_min if end_min > start_min else 0


def format_duration(minutes) -> str:
    """Render minutes as "X sa Y dk", dropping a zero part.

    >>> format_duration(480)
    '8 sa'
    >>> format_duration(45)
    '45 dk'
    >>> format_duration(90)
    '1 sa 30 dk'
    """
    minutes = max(int(minutes or 0), 0)
    hours, mins = divmod(minutes, 60)
    if hours == 0:
        return f"{mins} dk"
    if mins == 0:
        return f"{hours} sa"
    return f"{hours} sa {mins} dk"

# fitsched/core/time_interval.py
"""
Time-of-day helpers for "HH:mm" window boundaries.

Windows are same-day intervals on a day of week, compared on minute-of-day
with half-open semantics: a window ending at 10:00 and one starting at 10:00
do not overlap.
"""

from datetime import datetime, time
import re
from typing import Union

from .exceptions import ValidationException

HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

TimeLike = Union[str, time]


def parse_time(value: TimeLike) -> int:
    """Return minute-of-day for an "HH:mm" string or a ``datetime.time``."""
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if not isinstance(value, str):
        raise ValidationException(
            f"Time must be an HH:mm string, got {type(value).__name__}",
            code="INVALID_TIME",
        )
    match = HHMM_PATTERN.match(value.strip())
    if not match:
        raise ValidationException(
            f"Invalid time '{value}', expected HH:mm", code="INVALID_TIME", details={"value": value}
        )
    return int(match.group(1)) * 60 + int(match.group(2))


def format_time(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize(value: TimeLike) -> str:
    """Canonical zero-padded "HH:mm" form."""
    return format_time(parse_time(value))


def compare(t1: TimeLike, t2: TimeLike) -> int:
    a, b = parse_time(t1), parse_time(t2)
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def is_valid(start: TimeLike, end: TimeLike) -> bool:
    try:
        return parse_time(start) < parse_time(end)
    except ValidationException:
        return False


def validate_range(start: TimeLike, end: TimeLike) -> None:
    """Raise ValidationException unless both parse and start < end."""
    start_minutes = parse_time(start)
    end_minutes = parse_time(end)
    if start_minutes >= end_minutes:
        raise ValidationException(
            "End time must be after start time",
            code="INVALID_TIME_RANGE",
            details={"start_time": str(start), "end_time": str(end)},
        )


def overlaps(a_start: TimeLike, a_end: TimeLike, b_start: TimeLike, b_end: TimeLike) -> bool:
    return parse_time(a_start) < parse_time(b_end) and parse_time(b_start) < parse_time(a_end)


def fits_within(
    start: TimeLike, end: TimeLike, outer_start: TimeLike, outer_end: TimeLike
) -> bool:
    """Inclusive containment of [start, end] in [outer_start, outer_end]."""
    return parse_time(outer_start) <= parse_time(start) and parse_time(end) <= parse_time(outer_end)


def minutes_until(start: TimeLike, now: Union[datetime, time]) -> int:
    """
    Minutes from ``now`` to ``start`` comparing time of day only.

    The date component is ignored, so a window at 00:30 seen at 23:45 yields a
    negative value. Cancellation notice depends on this single function.
    """
    now_time = now.time() if isinstance(now, datetime) else now
    return parse_time(start) - (now_time.hour * 60 + now_time.minute)

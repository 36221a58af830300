"""
Time-of-day helpers for weekly availability windows.

Times are "HH:MM" strings on a 24-hour clock with minute precision. A window
never wraps past midnight, so everything here works in minutes since 00:00.
"""

import re
from datetime import datetime

from ...errors import TimeFormatError, TimeOrderError, TimeRangeError

TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"
_TIME_RE = re.compile(TIME_PATTERN)

MINUTES_PER_DAY = 24 * 60


def is_valid_time(value) -> bool:
    return isinstance(value, str) and bool(_TIME_RE.match(value))


def parse_time_to_minutes(value: str, field: str = "time") -> int:
    """
    Parse "HH:MM" into minutes since midnight.

    Single-digit hours are accepted, so "9:30" and "09:30" both give 570.

    Raises:
        TimeFormatError: If the value is not a valid 24-hour time
    """
    if not is_valid_time(value):
        raise TimeFormatError(
            f"Invalid {field} format: {value}. Expected HH:MM format (24-hour)",
            details={"field": field, "value": value},
        )
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_minutes(total_minutes: int) -> str:
    """Format minutes since midnight as zero-padded "HH:MM" """
    if total_minutes < 0 or total_minutes >= MINUTES_PER_DAY:
        raise TimeRangeError(f"{total_minutes} minutes is outside a single day")
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def normalize_time(value: str, field: str = "time") -> str:
    """Canonical zero-padded form, e.g. "9:05" -> "09:05" """
    return format_minutes(parse_time_to_minutes(value, field))


def validate_time_order(start: str, end: str) -> None:
    if parse_time_to_minutes(start, "start_time") >= parse_time_to_minutes(end, "end_time"):
        raise TimeOrderError(
            "Start time must be before end time",
            details={"start_time": start, "end_time": end},
        )


def ranges_overlap(a_start: str, a_end: str, b_start: str, b_end: str) -> bool:
    # Half-open: windows that only touch at an endpoint do not overlap
    return parse_time_to_minutes(a_start) < parse_time_to_minutes(b_end) and parse_time_to_minutes(
        b_start
    ) < parse_time_to_minutes(a_end)


def range_contains(outer_start: str, outer_end: str, inner_start: str, inner_end: str) -> bool:
    """True when the inner window lies entirely inside the outer one (endpoints inclusive)"""
    return parse_time_to_minutes(outer_start) <= parse_time_to_minutes(
        inner_start
    ) and parse_time_to_minutes(inner_end) <= parse_time_to_minutes(outer_end)


def add_minutes(value: str, minutes: int) -> str:
    """
    Shift a time of day by a number of minutes.

    There is no day rollover: a result at or past 24:00 raises
    TimeRangeError, so "23:30" + 30 is rejected rather than giving "00:00".
    """
    total = parse_time_to_minutes(value) + minutes
    if total >= MINUTES_PER_DAY:
        raise TimeRangeError(
            f"End time exceeds 24 hours ({value} + {minutes} minutes)",
            details={"time": value, "minutes": minutes},
        )
    if total < 0:
        raise TimeRangeError(f"{value} - {-minutes} minutes is before midnight")
    return format_minutes(total)


def day_of_week_for(moment: datetime) -> int:
    """Sunday-based day index (0 = Sunday ... 6 = Saturday)"""
    return (moment.weekday() + 1) % 7


def time_of_day(moment: datetime) -> str:
    return f"{moment.hour:02d}:{moment.minute:02d}"

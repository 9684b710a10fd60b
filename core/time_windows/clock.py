"""
Wall-Clock Time Utilities

Converts between "HH:mm" strings, minute-of-day integers and 12-hour display
labels, and buckets minutes into fixed 5-minute intervals.
"""

from datetime import datetime
from typing import Optional

import pandas as pd
import pytz
from dateutil import parser as dateutil_parser

from core.exceptions import EmptyTimeString, InvalidTimeFormat, TimeOutOfRange

MINUTES_PER_DAY = 24 * 60
BUCKET_MINUTES = 5


def parse_time_to_minutes(time_str: Optional[str], field: Optional[str] = None) -> int:
    """
    Parse a 24-hour "HH:mm" string into minutes since midnight.

    Args:
        time_str: Time string such as "08:00" or "22:30"
        field: Optional name of the parameter being parsed, carried on errors

    Returns:
        Minutes since midnight (0-1439)

    Raises:
        EmptyTimeString: If time_str is None or blank
        InvalidTimeFormat: If time_str is not two colon-separated integers
        TimeOutOfRange: If hours are outside 0-23 or minutes outside 0-59

    Examples:
        >>> parse_time_to_minutes("08:30")
        510
    """
    if time_str is None or not str(time_str).strip():
        raise EmptyTimeString("Time string cannot be null or empty", time_str, field)

    parts = str(time_str).split(":")
    if len(parts) != 2:
        raise InvalidTimeFormat(
            f"Invalid time format: '{time_str}'. Expected format: 'HH:mm'", time_str, field
        )

    try:
        hours = int(parts[0])
        minutes = int(parts[1])
    except ValueError:
        raise InvalidTimeFormat(f"Invalid time values in: '{time_str}'", time_str, field)

    if not 0 <= hours <= 23 or not 0 <= minutes <= 59:
        raise TimeOutOfRange(f"Time values out of range: '{time_str}'", time_str, field)

    return hours * 60 + minutes


def normalize_minutes(minutes: int) -> int:
    """Wrap any minute value into [0, 1440)."""
    return minutes % MINUTES_PER_DAY


def format_minutes_to_12_hour(minutes: int) -> str:
    """
    Format minutes since midnight as a 12-hour label, e.g. "3:05 PM".

    Negative values and values past midnight are wrapped first, so this
    never fails.
    """
    minutes = normalize_minutes(minutes)
    hours, mins = divmod(minutes, 60)

    if hours == 0:
        display_hour = 12
    elif hours > 12:
        display_hour = hours - 12
    else:
        display_hour = hours
    period = "PM" if hours >= 12 else "AM"

    return f"{display_hour}:{mins:02d} {period}"


def parse_clock_label(label: str) -> int:
    """
    Parse a 12-hour label produced by format_minutes_to_12_hour back to minutes.

    Args:
        label: Label such as "12:05 AM" or "3:40 PM"

    Returns:
        Minutes since midnight (0-1439)

    Raises:
        InvalidTimeFormat: If the label is not "h:mm AM/PM"
    """
    tokens = label.replace(":", " ").split()
    if len(tokens) != 3 or tokens[2] not in ("AM", "PM"):
        raise InvalidTimeFormat(f"Invalid formatted time: '{label}'", label)

    try:
        hour = int(tokens[0])
        minute = int(tokens[1])
    except ValueError:
        raise InvalidTimeFormat(f"Invalid formatted time: '{label}'", label)

    if tokens[2] == "PM" and hour != 12:
        hour += 12
    elif tokens[2] == "AM" and hour == 12:
        hour = 0

    return hour * 60 + minute


def bucket_of(total_minutes: int) -> int:
    """Floor a minute value to the preceding 5-minute mark."""
    return (total_minutes // BUCKET_MINUTES) * BUCKET_MINUTES


def is_overnight(start_minutes: int, end_minutes: int) -> bool:
    """A shift whose end is at or before its start runs past midnight."""
    return end_minutes <= start_minutes


def is_within_window(start: int, end: int, value: int) -> bool:
    """
    Check window membership in minute-of-day space.

    When start > end the window wraps past midnight, so a value is inside
    if it is after start OR before end.
    """
    if start <= end:
        return start <= value <= end
    return value >= start or value <= end


def to_local_wall_clock(timestamp, timezone: Optional[str] = None) -> datetime:
    """
    Convert an event timestamp into a naive local wall-clock datetime.

    Accepts datetimes, pandas Timestamps and ISO strings. Timezone-aware
    values are converted to the given timezone first; naive values are
    taken as already local.

    Args:
        timestamp: Event timestamp
        timezone: Plant timezone name, e.g. "Europe/Copenhagen"

    Returns:
        Naive datetime in local wall-clock time
    """
    if isinstance(timestamp, str):
        timestamp = dateutil_parser.isoparse(timestamp)
    elif isinstance(timestamp, pd.Timestamp):
        timestamp = timestamp.to_pydatetime()

    if timestamp.tzinfo is not None:
        if timezone:
            timestamp = timestamp.astimezone(pytz.timezone(timezone))
        timestamp = timestamp.replace(tzinfo=None)

    return timestamp


def minute_of_day(timestamp: datetime) -> int:
    """Minutes since midnight of a wall-clock datetime, seconds dropped."""
    return timestamp.hour * 60 + timestamp.minute

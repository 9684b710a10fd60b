"""
Shift Time Window Models

Shift parameters, break intervals and the resolved shift window:
- Regular shifts that start and end on the selected date
- Overnight shifts that run past midnight into the next day
- Named breaks inside the shift
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterator, List, Optional, Sequence, Tuple

from .clock import (
    MINUTES_PER_DAY,
    BUCKET_MINUTES,
    is_overnight,
    normalize_minutes,
    parse_time_to_minutes,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BreakInterval:
    """
    A named pause inside the shift, in "HH:mm" wall-clock times.

    Breaks with a blank start or end are invalid and get dropped before
    the target curve is built.
    """
    start_time: str
    end_time: str
    name: str = "Break"
    id: Optional[int] = None

    @property
    def is_blank(self) -> bool:
        return not (self.start_time or "").strip() or not (self.end_time or "").strip()

    def to_range(self) -> Tuple[int, int, str]:
        """Return (start_minutes, end_minutes, name); raises TimeParseError."""
        return (
            parse_time_to_minutes(self.start_time, field="breaks.startTime"),
            parse_time_to_minutes(self.end_time, field="breaks.endTime"),
            self.name,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "BreakInterval":
        name = data.get("name")
        return cls(
            start_time=data.get("startTime") or "",
            end_time=data.get("endTime") or "",
            name="Break" if name is None else str(name),
            id=data.get("id"),
        )

    def to_dict(self) -> dict:
        return {
            "startTime": self.start_time,
            "endTime": self.end_time,
            "name": self.name,
            "id": self.id,
        }


def parse_breaks_payload(payload) -> List[BreakInterval]:
    """
    Parse the break list sent by the client.

    Accepts a JSON string, a list of dicts or a list of BreakInterval.
    A payload that is not valid structured data is treated as "no breaks";
    blank entries are dropped.

    Args:
        payload: Raw breaks payload

    Returns:
        List of BreakInterval with non-blank start and end
    """
    if payload is None or payload == "":
        return []

    items = payload
    if isinstance(payload, str):
        try:
            items = json.loads(payload)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring malformed breaks payload: {e}")
            return []

    if not isinstance(items, list):
        logger.warning(f"Ignoring breaks payload of type {type(items).__name__}")
        return []

    breaks = []
    for item in items:
        if isinstance(item, BreakInterval):
            interval = item
        elif isinstance(item, dict):
            interval = BreakInterval.from_dict(item)
        else:
            continue
        if not interval.is_blank:
            breaks.append(interval)

    logger.debug(f"Parsed {len(items)} breaks, {len(breaks)} valid")
    return breaks


@dataclass(frozen=True)
class ShiftParameters:
    """Everything needed to compute one shift chart."""
    selected_date: date
    shift: str
    target_parts: int
    cycle_time_seconds: float
    start_time: str
    end_time: str
    breaks: Tuple[BreakInterval, ...] = ()
    form_id: Optional[int] = None
    group_by_field: Optional[str] = None

    def cache_key(self) -> tuple:
        """Full parameter tuple used to key the short-lived result cache."""
        return (
            self.form_id,
            self.selected_date.isoformat(),
            self.shift,
            self.target_parts,
            self.cycle_time_seconds,
            self.start_time,
            self.end_time,
            tuple((b.start_time, b.end_time, b.name) for b in self.breaks),
            self.group_by_field or "none",
        )


@dataclass(frozen=True)
class TimeSegment:
    """
    Absolute half-open datetime range [start, end) for event queries.
    """
    start: datetime
    end: datetime
    description: str = ""

    def __post_init__(self):
        if self.end <= self.start:
            raise ValueError(
                f"End time ({self.end}) must be after start time ({self.start})"
            )

    def contains(self, timestamp: datetime) -> bool:
        return self.start <= timestamp < self.end

    def __repr__(self) -> str:
        desc = f" ({self.description})" if self.description else ""
        return (
            f"TimeSegment({self.start.strftime('%Y-%m-%d %H:%M')} → "
            f"{self.end.strftime('%Y-%m-%d %H:%M')}{desc})"
        )


@dataclass(frozen=True)
class ShiftWindow:
    """
    A shift resolved to minute-of-day bounds.

    When end is before start, grid_end is end_minutes + 1440, so walking
    from start_minutes to grid_end stays strictly ascending across midnight.
    """
    start_minutes: int
    end_minutes: int
    overnight: bool = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "overnight", is_overnight(self.start_minutes, self.end_minutes))

    @classmethod
    def from_times(cls, start_time: str, end_time: str) -> "ShiftWindow":
        """Resolve "HH:mm" strings; raises TimeParseError on bad input."""
        return cls(
            parse_time_to_minutes(start_time, field="startTime"),
            parse_time_to_minutes(end_time, field="endTime"),
        )

    @property
    def grid_end(self) -> int:
        # start == end is a zero-length window with a single bucket
        if self.end_minutes < self.start_minutes:
            return self.end_minutes + MINUTES_PER_DAY
        return self.end_minutes

    @property
    def duration_minutes(self) -> int:
        return self.grid_end - self.start_minutes

    def iter_steps(self) -> Iterator[Tuple[int, int]]:
        """
        Yield (raw_minute, minute_of_day) for every 5-minute step,
        both ends inclusive.
        """
        for raw in range(self.start_minutes, self.grid_end + 1, BUCKET_MINUTES):
            yield raw, normalize_minutes(raw)

    def to_segment(self, selected_date: date) -> TimeSegment:
        """
        Absolute datetime range covered by the shift on selected_date.

        The end minute is inclusive, so the segment ends one minute after it.
        """
        day_start = datetime(selected_date.year, selected_date.month, selected_date.day)
        start = day_start + timedelta(minutes=self.start_minutes)
        end = day_start + timedelta(minutes=self.grid_end + 1)
        label = "overnight shift" if self.overnight else "shift"
        return TimeSegment(start, end, label)


def resolve_break_ranges(breaks: Sequence[BreakInterval]) -> List[Tuple[int, int, str]]:
    """
    Convert breaks to (start, end, name) minute ranges.

    Blank breaks are skipped and a break that fails to parse is dropped on
    its own; the remaining breaks keep their order.
    """
    ranges = []
    for interval in breaks:
        if interval.is_blank:
            continue
        try:
            ranges.append(interval.to_range())
        except ValueError:
            continue
    return ranges

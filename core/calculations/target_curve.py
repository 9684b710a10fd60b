"""
Target Curve Calculation

Builds the expected cumulative production curve for a shift in 5-minute
buckets, pausing during breaks and capping at the shift target.
"""

import math
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence

from core.time_windows.clock import BUCKET_MINUTES, format_minutes_to_12_hour
from core.time_windows.models import BreakInterval, ShiftWindow, resolve_break_ranges

SECONDS_PER_BUCKET = BUCKET_MINUTES * 60


@dataclass(frozen=True)
class ChartDataPoint:
    """One 5-minute bucket of the shift chart."""
    time: str
    target_parts: int
    actual_parts: Optional[int] = 0
    is_break: bool = False
    break_name: Optional[str] = None
    new_parts_in_bucket: int = 0

    def with_actual(self, actual_parts: Optional[int], new_parts: int) -> "ChartDataPoint":
        return replace(self, actual_parts=actual_parts, new_parts_in_bucket=new_parts)

    def to_dict(self) -> Dict:
        """Serialise with the camelCase keys the chart client expects."""
        return {
            'time': self.time,
            'targetParts': self.target_parts,
            'actualParts': self.actual_parts,
            'isBreak': self.is_break,
            'breakName': self.break_name,
            'newPartsInBucket': self.new_parts_in_bucket,
        }


def round_half_away_from_zero(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def parts_per_interval(cycle_time_seconds: float) -> float:
    """
    Parts producible in one 5-minute bucket at the nominal cycle rate.

    Examples:
        >>> round(parts_per_interval(18), 2)
        16.67
    """
    return (1.0 / cycle_time_seconds) * SECONDS_PER_BUCKET


def build_target_curve(
    target_parts: int,
    cycle_time_seconds: float,
    start_time: str,
    end_time: str,
    breaks: Sequence[BreakInterval] = ()
) -> List[ChartDataPoint]:
    """
    Generate the target line for a shift.

    Walks the shift in 5-minute steps from start to end inclusive. Each
    step outside a break adds parts_per_interval to an unrounded
    accumulator; steps inside a break add nothing. The emitted target is
    the accumulator capped at target_parts and rounded once.

    Args:
        target_parts: Total parts expected over the shift
        cycle_time_seconds: Seconds to produce one part
        start_time: Shift start, "HH:mm"
        end_time: Shift end, "HH:mm" (at or before start means overnight)
        breaks: Break intervals; blank or unparseable ones are ignored

    Returns:
        List of ChartDataPoint in ascending time order, actual_parts = 0

    Raises:
        TimeParseError: If start_time or end_time is malformed

    Examples:
        >>> curve = build_target_curve(100, 18, "08:00", "09:00")
        >>> [p.target_parts for p in curve][:6]
        [17, 33, 50, 67, 83, 100]
    """
    rate = parts_per_interval(cycle_time_seconds)
    break_ranges = resolve_break_ranges(breaks)
    window = ShiftWindow.from_times(start_time, end_time)

    points = []
    cumulative_parts = 0.0

    for _, minute in window.iter_steps():
        # First matching break wins
        current_break = next(
            (r for r in break_ranges if r[0] <= minute <= r[1]),
            None
        )

        if current_break is None:
            cumulative_parts += rate

        points.append(ChartDataPoint(
            time=format_minutes_to_12_hour(minute),
            target_parts=round_half_away_from_zero(min(cumulative_parts, target_parts)),
            actual_parts=0,
            is_break=current_break is not None,
            break_name=current_break[2] if current_break else None,
            new_parts_in_bucket=0,
        ))

    return points

"""
Actual Production Curve

Maps submission timestamps onto the target curve's 5-minute grid and builds
cumulative actual production, with gaps outside the observed production
window and break-aware accumulation.

Break handling:
- Parts counted before a break are held at the value they had when the
  break started
- Submissions timestamped inside the break bump the line on top of that
  held value without resetting the baseline
- The first bucket after the break folds those break parts back into the
  running total
"""

from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from core.time_windows.clock import (
    bucket_of,
    format_minutes_to_12_hour,
    is_within_window,
    minute_of_day,
    parse_clock_label,
    to_local_wall_clock,
)
from .target_curve import ChartDataPoint

UNKNOWN_LINE = "Unknown"


def bucket_events(events: Iterable, timezone: Optional[str] = None) -> Tuple[Counter, List[int]]:
    """
    Bucket event timestamps by minute of day.

    Args:
        events: Event timestamps (datetime, pandas Timestamp or ISO string)
        timezone: Plant timezone for timezone-aware timestamps

    Returns:
        Tuple of (count per 12-hour label, list of every event's bucket)
    """
    counts: Counter = Counter()
    buckets = []
    for event in events:
        bucket = bucket_of(minute_of_day(to_local_wall_clock(event, timezone)))
        counts[format_minutes_to_12_hour(bucket)] += 1
        buckets.append(bucket)
    return counts, buckets


def production_bounds(
    buckets: Sequence[int],
    shift_start: int,
    shift_end: int
) -> Tuple[Optional[int], Optional[int]]:
    """
    First and last production bucket in shift order.

    For an overnight grid (shift_start > shift_end) late-night buckets come
    before early-morning ones, so the first bucket is the earliest at or
    after shift start and the last is the latest at or before shift end.

    Returns:
        (first_bucket, last_bucket), both None when there are no events
    """
    if not buckets:
        return None, None

    if shift_start > shift_end:
        late = [b for b in buckets if b >= shift_start]
        early = [b for b in buckets if b <= shift_end]
        if late and early:
            return min(late), max(early)
        if late:
            return min(late), max(late)
        if early:
            return min(early), max(early)

    return min(buckets), max(buckets)


def _shift_bounds(target_curve: Sequence[ChartDataPoint]) -> Tuple[int, int]:
    return (
        parse_clock_label(target_curve[0].time),
        parse_clock_label(target_curve[-1].time),
    )


def merge_actual_curve(
    target_curve: Sequence[ChartDataPoint],
    events: Iterable,
    timezone: Optional[str] = None
) -> List[ChartDataPoint]:
    """
    Merge actual production into the target curve.

    Each bucket gets one of:
    - 0 while production has not started (before the first event bucket)
    - the cumulative count inside [first_bucket, last_bucket]
    - None once production has started and ended, leaving a chart gap

    Args:
        target_curve: Output of build_target_curve
        events: Event timestamps for the shift window
        timezone: Plant timezone for timezone-aware timestamps

    Returns:
        New list of ChartDataPoint with actual_parts and new_parts_in_bucket set
    """
    if not target_curve:
        return []

    counts, buckets = bucket_events(events, timezone)
    shift_start, shift_end = _shift_bounds(target_curve)
    first_bucket, last_bucket = production_bounds(buckets, shift_start, shift_end)

    cumulative_total = 0
    production_held_during_break = 0
    pending_parts_from_break = 0
    any_actual_set = False
    merged = []

    for idx, point in enumerate(target_curve):
        chart_bucket = bucket_of(parse_clock_label(point.time))
        parts_in_bucket = counts.get(point.time, 0)
        previous_was_break = idx > 0 and target_curve[idx - 1].is_break

        in_window = first_bucket is not None and is_within_window(
            first_bucket, last_bucket, chart_bucket
        )

        if (not any_actual_set and first_bucket is not None
                and chart_bucket < first_bucket and not in_window):
            merged.append(point.with_actual(0, 0))

        elif in_window:
            if point.is_break:
                pending_parts_from_break += parts_in_bucket
                if not previous_was_break:
                    production_held_during_break = cumulative_total
                actual = production_held_during_break + pending_parts_from_break
            else:
                if previous_was_break:
                    cumulative_total += pending_parts_from_break
                    pending_parts_from_break = 0
                cumulative_total += parts_in_bucket
                actual = cumulative_total
            any_actual_set = True
            merged.append(point.with_actual(actual, parts_in_bucket))

        else:
            merged.append(point.with_actual(None if any_actual_set else 0, 0))

    return merged


@dataclass(frozen=True)
class LinePoint:
    """One bucket of a single production line in a multi-line chart."""
    time: str
    actual: int
    target: int
    cumulative: Optional[int]

    def to_dict(self) -> Dict:
        return {
            'time': self.time,
            'actual': self.actual,
            'target': self.target,
            'cumulative': self.cumulative,
        }


def group_events_by_line(rows: Iterable[Tuple[object, Optional[str]]]) -> Dict[str, List]:
    """
    Group (timestamp, line_value) rows by production line.

    Missing or blank line values fall into the "Unknown" line.
    """
    grouped: Dict[str, List] = {}
    for timestamp, value in rows:
        line = str(value).strip() if value is not None else ""
        grouped.setdefault(line or UNKNOWN_LINE, []).append(timestamp)
    return grouped


def build_multi_line_curves(
    grouped_events: Dict[str, Sequence],
    target_curve: Sequence[ChartDataPoint],
    timezone: Optional[str] = None
) -> Dict[str, List[LinePoint]]:
    """
    Build one cumulative series per production line over the shared grid.

    Per line:
    - a line without events is None everywhere
    - before its first bucket the line is 0
    - inside its own production window it accumulates like merge_actual_curve
    - after its last bucket it carries the last known value forward

    Args:
        grouped_events: Line name -> event timestamps
        target_curve: Output of build_target_curve
        timezone: Plant timezone for timezone-aware timestamps

    Returns:
        Line name -> list of LinePoint, one per target bucket
    """
    if not target_curve:
        return {line: [] for line in grouped_events}

    shift_start, shift_end = _shift_bounds(target_curve)
    chart_buckets = [bucket_of(parse_clock_label(p.time)) for p in target_curve]
    results = {}

    for line, events in grouped_events.items():
        counts, buckets = bucket_events(events, timezone)
        first_bucket, last_bucket = production_bounds(buckets, shift_start, shift_end)

        cumulative_total = 0
        held_at_break_start = 0
        pending_from_break = 0
        last_known: Optional[int] = None
        started = False
        series = []

        for idx, point in enumerate(target_curve):
            parts_in_bucket = counts.get(point.time, 0)
            previous_was_break = idx > 0 and target_curve[idx - 1].is_break

            if first_bucket is None:
                cumulative = None
            elif is_within_window(first_bucket, last_bucket, chart_buckets[idx]):
                if point.is_break:
                    if not previous_was_break:
                        held_at_break_start = cumulative_total
                    pending_from_break += parts_in_bucket
                    cumulative = held_at_break_start + pending_from_break
                else:
                    if previous_was_break:
                        cumulative_total += pending_from_break
                        pending_from_break = 0
                    cumulative_total += parts_in_bucket
                    cumulative = cumulative_total
                started = True
                last_known = cumulative
            elif not started:
                cumulative = 0
            else:
                cumulative = last_known if last_known is not None else cumulative_total

            series.append(LinePoint(
                time=point.time,
                actual=parts_in_bucket,
                target=point.target_parts,
                cumulative=cumulative,
            ))

        results[line] = series

    return results

"""
Shift Window Filtering Utilities

Filters submission DataFrames to a shift window and provides an in-memory
event source over such a DataFrame (e.g. an uploaded CSV export).
"""

import logging
from datetime import date, datetime
from typing import Any, List, Optional, Tuple

import pandas as pd

from .clock import to_local_wall_clock
from .models import ShiftWindow

logger = logging.getLogger(__name__)


def normalize_submissions(
    df: pd.DataFrame,
    timestamp_column: str = 'submitted_at',
    timezone: Optional[str] = None
) -> pd.DataFrame:
    """
    Ensure the timestamp column holds naive local wall-clock datetimes.

    Args:
        df: DataFrame with a timestamp column
        timestamp_column: Name of the datetime column
        timezone: Plant timezone used for timezone-aware values

    Returns:
        Copy of df with the timestamp column converted, rows without a
        parseable timestamp dropped
    """
    if timestamp_column not in df.columns:
        raise ValueError(
            f"Column '{timestamp_column}' not found in DataFrame. "
            f"Available columns: {list(df.columns)}"
        )

    df = df.copy()
    if df.empty:
        df[timestamp_column] = pd.to_datetime(df[timestamp_column])
        return df

    df[timestamp_column] = pd.to_datetime(
        df[timestamp_column].apply(lambda ts: _wall_clock_or_nat(ts, timezone))
    )
    return df[df[timestamp_column].notna()].copy()


def _wall_clock_or_nat(timestamp, timezone: Optional[str]):
    if timestamp is None or (not isinstance(timestamp, str) and pd.isna(timestamp)):
        return pd.NaT
    try:
        return to_local_wall_clock(timestamp, timezone)
    except (ValueError, TypeError, OverflowError):
        return pd.NaT


def filter_submissions_by_shift(
    df: pd.DataFrame,
    selected_date: date,
    start_time: str,
    end_time: str,
    timestamp_column: str = 'submitted_at'
) -> pd.DataFrame:
    """
    Keep submissions inside the shift window, at minute granularity.

    Regular shift: on selected_date with start <= minute <= end.
    Overnight shift: on selected_date from start onwards, or on the next
    day up to and including end.

    Args:
        df: DataFrame with naive local timestamps (see normalize_submissions)
        selected_date: Shift date
        start_time: Shift start, "HH:mm"
        end_time: Shift end, "HH:mm"
        timestamp_column: Name of the datetime column

    Returns:
        Filtered DataFrame sorted by timestamp

    Example:
        >>> shift_df = filter_submissions_by_shift(df, date(2025, 3, 4), "22:00", "06:00")
    """
    if df.empty:
        return df

    segment = ShiftWindow.from_times(start_time, end_time).to_segment(selected_date)
    # Seconds are ignored, a submission at hh:mm:59 of the end minute is in
    floored = df[timestamp_column].dt.floor('min')
    mask = (floored >= segment.start) & (floored < segment.end)

    return df[mask].sort_values(timestamp_column).copy()


def count_submissions_before_shift(
    df: pd.DataFrame,
    selected_date: date,
    start_time: str,
    end_time: str,
    timestamp_column: str = 'submitted_at'
) -> int:
    """
    Count submissions logged before the shift started.

    Regular shift: same date, before the start minute. Overnight shift:
    also every earlier date.
    """
    if df.empty:
        return 0

    window = ShiftWindow.from_times(start_time, end_time)
    shift_start = window.to_segment(selected_date).start
    floored = df[timestamp_column].dt.floor('min')
    before_start = floored < pd.Timestamp(shift_start)

    if window.overnight:
        mask = before_start
    else:
        mask = before_start & (df[timestamp_column].dt.date == selected_date)

    return int(mask.sum())


class DataFrameEventSource:
    """
    Event source over an in-memory submissions DataFrame.

    Expected columns: submitted_at, optional form_id, and any form field
    columns usable for multi-line grouping.
    """

    def __init__(
        self,
        submissions: pd.DataFrame,
        timestamp_column: str = 'submitted_at',
        timezone: Optional[str] = None
    ):
        self.timestamp_column = timestamp_column
        self.submissions = normalize_submissions(submissions, timestamp_column, timezone)
        logger.info(f"Loaded {len(self.submissions)} submissions into memory")

    def _for_form(self, form_id: Optional[int]) -> pd.DataFrame:
        if not form_id or 'form_id' not in self.submissions.columns:
            return self.submissions
        return self.submissions[self.submissions['form_id'] == form_id]

    def resolve_form_id(self, report_id: Optional[int]) -> Optional[int]:
        # No report templates in memory; the id is already a form id
        return report_id if report_id is not None else 0

    def fetch_events(self, selected_date: date, start_time: str, end_time: str, form_id: int) -> List[datetime]:
        shift_df = filter_submissions_by_shift(
            self._for_form(form_id), selected_date, start_time, end_time, self.timestamp_column
        )
        return [ts.to_pydatetime() for ts in shift_df[self.timestamp_column]]

    def count_events_before(self, selected_date: date, start_time: str, end_time: str, form_id: int) -> int:
        return count_submissions_before_shift(
            self._for_form(form_id), selected_date, start_time, end_time, self.timestamp_column
        )

    def fetch_line_values(
        self,
        selected_date: date,
        start_time: str,
        end_time: str,
        form_id: int,
        field_label: str
    ) -> Optional[List[Tuple[Any, Optional[str]]]]:
        if field_label not in self.submissions.columns:
            return None

        shift_df = filter_submissions_by_shift(
            self._for_form(form_id), selected_date, start_time, end_time, self.timestamp_column
        )
        return [
            (row[self.timestamp_column].to_pydatetime(),
             None if pd.isna(row[field_label]) else str(row[field_label]))
            for _, row in shift_df.iterrows()
        ]

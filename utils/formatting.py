"""
Formatting Utilities

Functions for formatting timestamps and shift metrics for display.
"""

import logging
from datetime import datetime
from typing import Optional

import pandas as pd
import pytz

logger = logging.getLogger(__name__)


def format_timestamp(iso_timestamp, timezone: Optional[str] = None) -> str:
    """
    Convert a timestamp to readable format (YYYY-MM-DD HH:MM:SS), handling potential errors.

    Args:
        iso_timestamp: ISO timestamp string, datetime object, or None
        timezone: Optional timezone to convert timezone-aware values into

    Returns:
        Formatted timestamp string or empty string if invalid
    """
    if iso_timestamp is None or (not isinstance(iso_timestamp, str) and pd.isna(iso_timestamp)):
        return ""
    try:
        if isinstance(iso_timestamp, str):
            # Handle potential 'Z' suffix for UTC
            dt_obj = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
        elif isinstance(iso_timestamp, datetime):
            dt_obj = iso_timestamp
        else:
            dt_obj = datetime.fromisoformat(str(iso_timestamp))

        if timezone and dt_obj.tzinfo is not None:
            dt_obj = dt_obj.astimezone(pytz.timezone(timezone))
        return dt_obj.strftime("%Y-%m-%d %H:%M:%S")

    except (ValueError, TypeError):
        # If parsing fails, return the original string
        return str(iso_timestamp)


def format_efficiency(efficiency: int) -> str:
    """Efficiency percentage with a status marker, e.g. "🟢 102%"."""
    if efficiency >= 100:
        marker = "🟢"
    elif efficiency >= 80:
        marker = "🟡"
    else:
        marker = "🔴"
    return f"{marker} {efficiency}%"


def format_breaks(breaks) -> str:
    """One-line description of a break schedule for captions."""
    if not breaks:
        return "No breaks"
    return "; ".join(f"{b.name or 'Break'} {b.start_time}-{b.end_time}" for b in breaks)


def chart_to_dataframe(chart_data) -> pd.DataFrame:
    """
    Convert chart points to a DataFrame for tables and CSV export.

    Args:
        chart_data: List of ChartDataPoint

    Returns:
        DataFrame with one row per bucket and camelCase columns
    """
    columns = ["time", "targetParts", "actualParts", "isBreak", "breakName", "newPartsInBucket"]
    df = pd.DataFrame([p.to_dict() for p in chart_data], columns=columns)
    # Keep gaps as missing values rather than NaN floats
    df["actualParts"] = df["actualParts"].astype("Int64")
    return df

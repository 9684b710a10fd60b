"""
Shift Selector UI Component

Sidebar form for the shift chart request: date, shift preset, target,
cycle time, window and break schedule. Values are returned raw; validation
happens in validate_shift_request.
"""

import streamlit as st
import logging
from datetime import date
from typing import Dict, List, Optional

from core.time_windows.clock import parse_time_to_minutes
from core.time_windows.models import BreakInterval, ShiftWindow

logger = logging.getLogger(__name__)

SHIFT_PRESETS: Dict[str, Dict] = {
    "Day": {
        "start_time": "06:00",
        "end_time": "14:00",
        "breaks": [BreakInterval("10:00", "10:30", "Lunch", 1)],
    },
    "Evening": {
        "start_time": "14:00",
        "end_time": "22:00",
        "breaks": [BreakInterval("18:00", "18:30", "Dinner", 1)],
    },
    "Night": {
        "start_time": "22:00",
        "end_time": "06:00",
        "breaks": [BreakInterval("02:00", "02:30", "Night break", 1)],
    },
}


def apply_shift_preset(name: str) -> Dict:
    """
    Return a fresh copy of a preset's window and breaks.

    Raises:
        ValueError: If the preset name is unknown
    """
    if name not in SHIFT_PRESETS:
        raise ValueError(f"Unknown shift preset: {name}. Valid options: {list(SHIFT_PRESETS)}")
    preset = SHIFT_PRESETS[name]
    return {
        "start_time": preset["start_time"],
        "end_time": preset["end_time"],
        "breaks": list(preset["breaks"]),
    }


def describe_window(start_time: str, end_time: str) -> Optional[str]:
    """Human summary of a shift window, None when the times do not parse."""
    try:
        window = ShiftWindow.from_times(start_time, end_time)
    except ValueError:
        return None
    hours = window.duration_minutes / 60.0
    kind = "overnight" if window.overnight else "same day"
    return f"{start_time} → {end_time} ({hours:.1f} hours, {kind})"


def render_break_editor(key_prefix: str) -> List[BreakInterval]:
    """
    Render the break list with add/remove controls.

    Returns:
        Breaks kept in session state
    """
    breaks_key = f"{key_prefix}_breaks"
    breaks: List[BreakInterval] = st.session_state[breaks_key]

    st.markdown("**Breaks:**")
    if breaks:
        for i, interval in enumerate(breaks):
            col1, col2 = st.columns([3, 1])
            with col1:
                st.write(f"{interval.name}: {interval.start_time} - {interval.end_time}")
            with col2:
                if st.button("Remove", key=f"{key_prefix}_remove_break_{i}"):
                    breaks.pop(i)
                    st.rerun()
    else:
        st.info("No breaks configured.")

    col1, col2, col3 = st.columns(3)
    with col1:
        new_start = st.text_input("Break start (HH:mm)", value="12:00", key=f"{key_prefix}_new_break_start")
    with col2:
        new_end = st.text_input("Break end (HH:mm)", value="12:30", key=f"{key_prefix}_new_break_end")
    with col3:
        new_name = st.text_input("Name", value="Break", key=f"{key_prefix}_new_break_name")

    if st.button("Add Break", key=f"{key_prefix}_add_break"):
        try:
            parse_time_to_minutes(new_start)
            parse_time_to_minutes(new_end)
        except ValueError as e:
            st.error(f"❌ Invalid break time: {e}")
        else:
            next_id = max((b.id or 0 for b in breaks), default=0) + 1
            breaks.append(BreakInterval(new_start.strip(), new_end.strip(), new_name or "Break", next_id))
            st.rerun()

    return list(breaks)


def render_shift_selector(defaults: Dict, key_prefix: str = "shift") -> Dict:
    """
    Render the shift request form.

    Args:
        defaults: Application defaults from get_app_config()
        key_prefix: Unique key prefix for Streamlit widgets

    Returns:
        Raw request values keyed like validate_shift_request's arguments
    """
    if f"{key_prefix}_breaks" not in st.session_state:
        st.session_state[f"{key_prefix}_breaks"] = []
        st.session_state[f"{key_prefix}_start"] = defaults["default_shift_start"]
        st.session_state[f"{key_prefix}_end"] = defaults["default_shift_end"]

    st.subheader("⏰ Shift")

    shift = st.selectbox("Shift preset:", options=list(SHIFT_PRESETS), key=f"{key_prefix}_preset")
    if st.button("Apply preset", key=f"{key_prefix}_apply_preset"):
        preset = apply_shift_preset(shift)
        st.session_state[f"{key_prefix}_start"] = preset["start_time"]
        st.session_state[f"{key_prefix}_end"] = preset["end_time"]
        st.session_state[f"{key_prefix}_breaks"] = preset["breaks"]
        st.rerun()

    selected_date = st.date_input("Date:", value=date.today(), key=f"{key_prefix}_date")

    col1, col2 = st.columns(2)
    with col1:
        start_time = st.text_input("Start (HH:mm)", key=f"{key_prefix}_start")
    with col2:
        end_time = st.text_input("End (HH:mm)", key=f"{key_prefix}_end")

    summary = describe_window(start_time, end_time)
    if summary:
        st.caption(summary)

    target_parts = st.number_input(
        "Target parts:", min_value=0, value=defaults["default_target_parts"], step=1,
        key=f"{key_prefix}_target"
    )
    cycle_time_seconds = st.number_input(
        "Cycle time (seconds):", min_value=0.0, value=defaults["default_cycle_time_seconds"],
        step=0.5, key=f"{key_prefix}_cycle"
    )
    form_id = st.number_input("Report id:", min_value=0, value=0, step=1, key=f"{key_prefix}_form")
    group_by_field = st.text_input(
        "Group by field (optional):", value="", key=f"{key_prefix}_group_by",
        help="Form field whose value splits submissions into production lines"
    )

    st.divider()
    breaks = render_break_editor(key_prefix)

    return {
        "selected_date": selected_date,
        "shift": shift,
        "target_parts": target_parts,
        "cycle_time_seconds": cycle_time_seconds,
        "start_time": start_time,
        "end_time": end_time,
        "breaks": breaks,
        "form_id": int(form_id) or None,
        "group_by_field": group_by_field,
    }

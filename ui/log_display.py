"""
Log Display UI Component

Collects shift chart service events and shows them in a compact processing
log below the chart.
"""

import logging
import streamlit as st
from typing import Any, Callable, Dict, List
from datetime import datetime

logger = logging.getLogger(__name__)

_EVENT_MESSAGES = {
    "request_received": ("info", "Chart requested for {date} ({start_time}-{end_time}), {breaks} break(s)"),
    "cache_hit": ("info", "Served from cache"),
    "form_not_found": ("warning", "No form found for report {report_id}"),
    "events_fetched": ("info", "Fetched {count} submission(s)"),
    "group_field_not_found": ("warning", "Field '{group_by_field}' not found, showing a single line"),
    "chart_computed": ("success", "Built {points} chart points, {current_production} part(s) produced"),
    "multi_line_computed": ("success", "Built {lines_count} production line(s)"),
    "computation_failed": ("error", "Failed at {field}: {error}"),
}


class LogCollector:
    """Collects log messages for display in a dedicated log area."""

    def __init__(self, session_key: str = "shift_chart_logs"):
        self.session_key = session_key
        if session_key not in st.session_state:
            st.session_state[session_key] = []

    def add_error(self, message: str):
        self._add_log("error", message)

    def _add_log(self, level: str, message: str):
        st.session_state[self.session_key].append({
            "timestamp": datetime.now().strftime("%H:%M:%S"),
            "level": level,
            "message": message,
        })

    def clear(self):
        st.session_state[self.session_key] = []

    def get_logs(self) -> List[Dict]:
        return st.session_state.get(self.session_key, [])

    def as_hook(self) -> Callable[[str, Dict[str, Any]], None]:
        """
        Observability hook for ShiftChartService.

        Each service event becomes a log entry here and is also written to
        the standard logger.
        """
        def hook(event: str, details: Dict[str, Any]):
            level, template = _EVENT_MESSAGES.get(event, ("info", event))
            values = dict(details)
            if "lines" in values:
                values["lines_count"] = len(values["lines"])
            try:
                message = template.format(**values)
            except (KeyError, IndexError):
                message = f"{event}: {details}"
            self._add_log(level, message)
            logger.info(f"[ShiftProduction] {event} {details}")

        return hook


def render_compact_log_area(log_collector: LogCollector):
    """
    Render a compact, collapsible log area.

    Args:
        log_collector: LogCollector instance with messages
    """
    logs = log_collector.get_logs()

    if not logs:
        return

    color_map = {
        "success": "🟢",
        "warning": "🟡",
        "error": "🔴",
        "info": "🔵"
    }

    with st.expander(f"📋 View Processing Log ({len(logs)} messages)", expanded=False):
        # Newest at top
        for log in reversed(logs):
            color_icon = color_map.get(log.get("level", "info"), "⚪")
            st.markdown(f"{color_icon} `[{log.get('timestamp', '')}]` {log.get('message', '')}")

        if st.button("Clear Log", key="clear_shift_log_button"):
            log_collector.clear()
            st.rerun()

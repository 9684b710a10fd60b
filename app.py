"""
Shift Production Dashboard - Main Application

Target vs actual production for a shift, in 5-minute buckets:
- Target line from target parts, cycle time and break schedule
- Actual line from form submissions (database or uploaded CSV)
- Optional split into production lines by a form field
"""

import streamlit as st
import pandas as pd
import logging

from utils.config import load_config, get_app_config, validate_config
from core.analysis.shift_chart import ShiftChartService, validate_shift_request
from core.cache import ResultCache
from core.db.fetchers import PostgresEventSource
from core.exceptions import ShiftChartComputationError, ShiftParameterError, TimeParseError, error_response
from core.time_windows.filters import DataFrameEventSource
from ui.log_display import LogCollector, render_compact_log_area
from ui.shift_chart import render_shift_chart
from ui.shift_selector import render_shift_selector
from utils.formatting import format_breaks

# Load configuration
load_config()
app_config = get_app_config()

# Configure logging
logging.basicConfig(
    level=getattr(logging, app_config["log_level"].upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@st.cache_resource
def get_result_cache(ttl_seconds: int) -> ResultCache:
    """One result cache per server process, shared across sessions."""
    return ResultCache(ttl_seconds=ttl_seconds)


# Streamlit page config
st.set_page_config(
    page_title="Shift Production",
    layout="wide",
    initial_sidebar_state="expanded"
)

st.title("🏭 Shift Production")
st.markdown("**Target vs actual cumulative production per shift**")

with st.sidebar:
    request_values = render_shift_selector(app_config)

    st.divider()
    st.subheader("📥 Data Source")
    config_errors = validate_config()
    source_options = ["Upload CSV"] if config_errors else ["Database", "Upload CSV"]
    source_choice = st.radio("Submissions from:", source_options, key="source_choice")
    uploaded = None
    if source_choice == "Upload CSV":
        if config_errors:
            st.caption("Database not configured: " + "; ".join(config_errors))
        uploaded = st.file_uploader("Submissions CSV (needs a submitted_at column)", type=["csv"])

log_collector = LogCollector()

if st.button("📊 Load Shift Chart", type="primary", use_container_width=True):
    log_collector.clear()

    try:
        params = validate_shift_request(**request_values)
    except ShiftParameterError as e:
        log_collector.add_error(str(e))
        st.error(f"❌ Invalid input: {e}")
        st.stop()

    if source_choice == "Database":
        event_source = PostgresEventSource()
    elif uploaded is not None:
        try:
            event_source = DataFrameEventSource(pd.read_csv(uploaded), timezone=app_config["timezone"])
        except (ValueError, pd.errors.ParserError) as e:
            st.error(f"❌ Could not read CSV: {e}")
            st.stop()
    else:
        st.error("❌ Please upload a submissions CSV.")
        st.stop()

    service = ShiftChartService(
        event_source,
        cache=get_result_cache(app_config["chart_cache_ttl_seconds"]),
        timezone=app_config["timezone"],
        hook=log_collector.as_hook()
    )

    with st.spinner("Building shift chart..."):
        try:
            st.session_state["shift_chart_result"] = service.get_shift_chart(params)
            st.session_state["shift_chart_breaks"] = format_breaks(params.breaks)
        except TimeParseError as e:
            st.session_state.pop("shift_chart_result", None)
            st.session_state.pop("shift_chart_breaks", None)
            status, body = error_response(e)
            st.error(f"❌ Invalid input ({status}): {body['error']}")
        except ShiftChartComputationError as e:
            st.session_state.pop("shift_chart_result", None)
            st.session_state.pop("shift_chart_breaks", None)
            status, body = error_response(e)
            logger.error(f"Shift chart error response {status}: {body}")
            st.error(f"❌ Internal error at {body['field']}: {body['error']}")

result = st.session_state.get("shift_chart_result")
if result is not None:
    st.caption(st.session_state.get("shift_chart_breaks", ""))
    render_shift_chart(result, app_config["timezone"])
else:
    st.info("Configure the shift in the sidebar and press **Load Shift Chart**.")

render_compact_log_area(log_collector)

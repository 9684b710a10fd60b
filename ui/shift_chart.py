"""
Shift Chart Display

Plotly figures and Streamlit components for the shift production chart:
- Target vs actual cumulative production
- Break periods shaded on the timeline
- Headline metrics: produced, target, efficiency, remaining
"""

import logging
from typing import Dict, List, Tuple

import plotly.graph_objects as go
import streamlit as st

from core.calculations.shift_metrics import MultiLineChartResult, ShiftChartResult
from utils.formatting import chart_to_dataframe, format_efficiency, format_timestamp

logger = logging.getLogger(__name__)

LINE_COLORS = ['#1f77b4', '#ff7f0e', '#2ca02c', '#9467bd', '#8c564b', '#e377c2', '#17becf']


def break_spans(chart_data) -> List[Tuple[str, str, str]]:
    """
    Collapse consecutive break buckets into (first_label, last_label, name) spans.
    """
    spans = []
    current = None
    for point in chart_data:
        if point.is_break:
            if current is not None and current[2] == point.break_name:
                current = (current[0], point.time, current[2])
            else:
                if current is not None:
                    spans.append(current)
                current = (point.time, point.time, point.break_name)
        elif current is not None:
            spans.append(current)
            current = None
    if current is not None:
        spans.append(current)
    return spans


def _add_break_shading(fig: go.Figure, chart_data):
    for first, last, name in break_spans(chart_data):
        fig.add_vrect(
            x0=first,
            x1=last,
            fillcolor='#6c757d',
            opacity=0.15,
            line_width=0,
            annotation_text=name or 'Break',
            annotation_position='top left'
        )


def build_shift_figure(result: ShiftChartResult) -> go.Figure:
    """
    Build the target vs actual chart for a single-line shift.

    Gaps (actual None) are left unconnected so production that stopped
    does not appear to continue.
    """
    times = [p.time for p in result.chart_data]
    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=times,
        y=[p.target_parts for p in result.chart_data],
        name='Target',
        mode='lines',
        line=dict(color='#6c757d', dash='dash'),
        hovertemplate='%{x}<br>Target: %{y}<extra></extra>'
    ))

    fig.add_trace(go.Scatter(
        x=times,
        y=[p.actual_parts for p in result.chart_data],
        name='Actual',
        mode='lines+markers',
        line=dict(color='#28a745'),
        connectgaps=False,
        customdata=[p.new_parts_in_bucket for p in result.chart_data],
        hovertemplate='%{x}<br>Actual: %{y}<br>New: %{customdata}<extra></extra>'
    ))

    _add_break_shading(fig, result.chart_data)
    fig.update_layout(
        xaxis_title='Time',
        yaxis_title='Cumulative parts',
        height=450,
        hovermode='x unified',
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
        xaxis=dict(type='category')
    )
    return fig


def build_multi_line_figure(result: MultiLineChartResult) -> go.Figure:
    """Build one cumulative trace per production line plus the shared target."""
    times = [p.time for p in result.target_line_data]
    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=times,
        y=[p.target_parts for p in result.target_line_data],
        name='Target (per line)',
        mode='lines',
        line=dict(color='#6c757d', dash='dash')
    ))

    for i, (line_name, points) in enumerate(result.lines.items()):
        fig.add_trace(go.Scatter(
            x=[p.time for p in points],
            y=[p.cumulative for p in points],
            name=line_name,
            mode='lines',
            line=dict(color=LINE_COLORS[i % len(LINE_COLORS)]),
            connectgaps=False
        ))

    _add_break_shading(fig, result.target_line_data)
    fig.update_layout(
        xaxis_title='Time',
        yaxis_title='Cumulative parts',
        height=450,
        hovermode='x unified',
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
        xaxis=dict(type='category')
    )
    return fig


def summary_metrics(result) -> Dict[str, str]:
    """Headline values shown above the chart."""
    return {
        'Produced': str(result.current_production),
        'Target': str(result.target_parts),
        'Efficiency': format_efficiency(result.efficiency),
        'Remaining': str(result.remaining_parts),
    }


def render_shift_chart(result, timezone: str = None):
    """
    Render metrics, chart and the bucket table for a shift chart result.

    Args:
        result: ShiftChartResult or MultiLineChartResult
        timezone: Plant timezone for the last update timestamp
    """
    cols = st.columns(4)
    for col, (label, value) in zip(cols, summary_metrics(result).items()):
        with col:
            st.metric(label, value)

    st.caption(
        f"Last update: {format_timestamp(result.last_update, timezone)} · "
        f"Submissions before shift: {result.initial_count}"
    )

    if isinstance(result, MultiLineChartResult):
        st.plotly_chart(build_multi_line_figure(result), use_container_width=True)
        st.caption(f"Lines: {', '.join(result.line_names) or 'none'}")
        return

    st.plotly_chart(build_shift_figure(result), use_container_width=True)

    with st.expander("📄 Bucket details", expanded=False):
        df = chart_to_dataframe(result.chart_data)
        st.dataframe(df, use_container_width=True, hide_index=True)
        st.download_button(
            "Download CSV",
            df.to_csv(index=False).encode("utf-8"),
            file_name="shift_chart.csv",
            mime="text/csv"
        )

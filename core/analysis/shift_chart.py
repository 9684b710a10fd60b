"""
Shift Production Chart

Entry point for shift charts:
1. Request validation: turns raw request values into ShiftParameters
2. Pure computation: target curve + actual curve + summary metrics
3. Service: fetches events from an event source, applies the result
   cache and reports progress through an observability hook
"""

import logging
import math
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from dateutil import parser as dateutil_parser

from core.cache import ResultCache
from core.calculations.actual_curve import (
    build_multi_line_curves,
    group_events_by_line,
    merge_actual_curve,
)
from core.calculations.shift_metrics import (
    MultiLineChartResult,
    ShiftChartResult,
    summarize_production,
)
from core.calculations.target_curve import build_target_curve
from core.exceptions import ShiftChartComputationError, ShiftParameterError, TimeParseError
from core.time_windows.models import ShiftParameters, parse_breaks_payload

logger = logging.getLogger(__name__)

ShiftChartHook = Callable[[str, Dict[str, Any]], None]
ChartResult = Union[ShiftChartResult, MultiLineChartResult]


def logging_hook(event: str, details: Dict[str, Any]):
    """Default observability hook: one structured log line per event."""
    level = logging.WARNING if event.endswith(("_failed", "_not_found")) else logging.INFO
    logger.log(level, f"[ShiftProduction] {event}", extra={"shift_chart": details})


# ============================================================
# REQUEST VALIDATION
# ============================================================

def _coerce_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return dateutil_parser.parse(value).date()
        except (ValueError, OverflowError):
            pass
    raise ShiftParameterError(f"selectedDate is not a valid date: {value!r}", "selectedDate")


def _coerce_number(value, name: str, cast):
    try:
        return cast(value)
    except (TypeError, ValueError, OverflowError):
        raise ShiftParameterError(f"{name} must be a number", name)


def validate_shift_request(
    selected_date,
    shift: str,
    target_parts,
    cycle_time_seconds,
    start_time: Optional[str],
    end_time: Optional[str],
    breaks=None,
    form_id: Optional[int] = None,
    group_by_field: Optional[str] = None
) -> ShiftParameters:
    """
    Validate raw request values and build ShiftParameters.

    Violations are client input errors and never reach the engine. The
    breaks payload is tolerant: malformed data becomes an empty list.

    Raises:
        ShiftParameterError: On missing times, a non-positive target or a
            non-positive / non-finite cycle time
    """
    if start_time is None or not str(start_time).strip():
        raise ShiftParameterError("startTime parameter is required", "startTime")
    if end_time is None or not str(end_time).strip():
        raise ShiftParameterError("endTime parameter is required", "endTime")

    target = _coerce_number(target_parts, "targetParts", int)
    if target <= 0:
        raise ShiftParameterError("targetParts must be greater than 0", "targetParts")

    cycle = _coerce_number(cycle_time_seconds, "cycleTimeSeconds", float)
    if not math.isfinite(cycle) or cycle <= 0:
        raise ShiftParameterError("cycleTimeSeconds must be greater than 0", "cycleTimeSeconds")

    return ShiftParameters(
        selected_date=_coerce_date(selected_date),
        shift=shift or "",
        target_parts=target,
        cycle_time_seconds=cycle,
        start_time=str(start_time).strip(),
        end_time=str(end_time).strip(),
        breaks=tuple(parse_breaks_payload(breaks)),
        form_id=form_id,
        group_by_field=(group_by_field or "").strip() or None,
    )


# ============================================================
# PURE COMPUTATION
# ============================================================

def compute_shift_chart(
    params: ShiftParameters,
    events: Sequence,
    timezone: Optional[str] = None,
    initial_count: int = 0,
    last_update: Optional[datetime] = None
) -> ShiftChartResult:
    """
    Compute the single-line shift chart.

    Args:
        params: Validated shift parameters
        events: Event timestamps already filtered to the shift window
        timezone: Plant timezone for timezone-aware timestamps
        initial_count: Submissions before the shift start, passed through
        last_update: Response timestamp, defaults to now

    Returns:
        ShiftChartResult

    Raises:
        TimeParseError: If the shift start or end time is malformed
    """
    target_curve = build_target_curve(
        params.target_parts,
        params.cycle_time_seconds,
        params.start_time,
        params.end_time,
        params.breaks,
    )
    chart_data = merge_actual_curve(target_curve, events, timezone)
    summary = summarize_production(len(events), params.target_parts)

    return ShiftChartResult(
        chart_data=chart_data,
        current_production=summary.current_production,
        target_parts=summary.target_parts,
        efficiency=summary.efficiency,
        remaining_parts=summary.remaining_parts,
        last_update=last_update or datetime.now(),
        initial_count=initial_count,
    )


def compute_multi_line_chart(
    params: ShiftParameters,
    grouped_events: Dict[str, Sequence],
    timezone: Optional[str] = None,
    initial_count: int = 0,
    last_update: Optional[datetime] = None
) -> MultiLineChartResult:
    """
    Compute one cumulative series per production line.

    The target line is shared; totals scale with the number of lines.
    """
    target_curve = build_target_curve(
        params.target_parts,
        params.cycle_time_seconds,
        params.start_time,
        params.end_time,
        params.breaks,
    )
    lines = build_multi_line_curves(grouped_events, target_curve, timezone)
    current_production = sum(len(events) for events in grouped_events.values())
    summary = summarize_production(current_production, params.target_parts, len(grouped_events))

    return MultiLineChartResult(
        lines=lines,
        target_line_data=target_curve,
        current_production=summary.current_production,
        target_parts=summary.target_parts,
        efficiency=summary.efficiency,
        remaining_parts=summary.remaining_parts,
        last_update=last_update or datetime.now(),
        initial_count=initial_count,
    )


# ============================================================
# SERVICE
# ============================================================

class EventSource:
    """
    Read-only access to production events.

    Implementations: core.db.fetchers.PostgresEventSource and
    core.time_windows.filters.DataFrameEventSource.
    """

    def resolve_form_id(self, report_id: Optional[int]) -> Optional[int]:
        raise NotImplementedError

    def fetch_events(self, selected_date: date, start_time: str, end_time: str, form_id: int) -> List:
        """Event timestamps inside the (possibly overnight) window, ordered."""
        raise NotImplementedError

    def count_events_before(self, selected_date: date, start_time: str, end_time: str, form_id: int) -> int:
        raise NotImplementedError

    def fetch_line_values(
        self,
        selected_date: date,
        start_time: str,
        end_time: str,
        form_id: int,
        field_label: str
    ) -> Optional[List[Tuple[Any, Optional[str]]]]:
        """(timestamp, field value) rows, or None when the field does not exist."""
        raise NotImplementedError


class ShiftChartService:
    """Fetches events, applies the cache and computes shift charts."""

    def __init__(
        self,
        event_source: EventSource,
        cache: Optional[ResultCache] = None,
        timezone: Optional[str] = None,
        hook: Optional[ShiftChartHook] = None
    ):
        self.event_source = event_source
        self.cache = cache
        self.timezone = timezone
        self.hook = hook or logging_hook

    def _emit(self, event: str, **details):
        try:
            self.hook(event, details)
        except Exception as e:
            logger.warning(f"Shift chart hook failed on '{event}': {e}")

    def get_shift_chart(self, params: ShiftParameters) -> ChartResult:
        """
        Build the shift chart for validated parameters.

        Returns:
            ShiftChartResult, or MultiLineChartResult when group_by_field
            names an existing field

        Raises:
            TimeParseError: If the shift start or end time is malformed (client error)
            ShiftChartComputationError: On any unexpected fault, with the
                originating field and the original exception as __cause__
        """
        self._emit(
            "request_received",
            date=params.selected_date.isoformat(),
            shift=params.shift,
            target_parts=params.target_parts,
            cycle_time_seconds=params.cycle_time_seconds,
            start_time=params.start_time,
            end_time=params.end_time,
            breaks=len(params.breaks),
            group_by_field=params.group_by_field,
        )

        cache_key = params.cache_key()
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                self._emit("cache_hit", key=str(cache_key))
                return cached

        stage = "formId"
        try:
            form_id = self.event_source.resolve_form_id(params.form_id)
            if form_id is None:
                self._emit("form_not_found", report_id=params.form_id)

            stage = "events"
            events = self._fetch(params, form_id)
            self._emit("events_fetched", count=len(events))

            stage = "initialCount"
            initial_count = 0
            if form_id is not None:
                initial_count = self.event_source.count_events_before(
                    params.selected_date, params.start_time, params.end_time, form_id
                )

            result = None
            if params.group_by_field and form_id is not None:
                stage = "groupByField"
                result = self._multi_line(params, form_id, initial_count)

            if result is None:
                stage = "chartData"
                result = compute_shift_chart(params, events, self.timezone, initial_count)
                self._emit("chart_computed", points=len(result.chart_data),
                           current_production=result.current_production)

        except (TimeParseError, ShiftParameterError):
            raise
        except Exception as e:
            logger.error(f"Shift chart failed at '{stage}': {e}", exc_info=True)
            self._emit("computation_failed", field=stage, error=str(e))
            raise ShiftChartComputationError(f"Failed to compute shift chart: {e}", stage) from e

        if self.cache is not None:
            self.cache.set(cache_key, result)
        return result

    def _fetch(self, params: ShiftParameters, form_id: Optional[int]) -> List:
        if form_id is None:
            return []
        return list(self.event_source.fetch_events(
            params.selected_date, params.start_time, params.end_time, form_id
        ))

    def _multi_line(self, params: ShiftParameters, form_id: int, initial_count: int) -> Optional[MultiLineChartResult]:
        rows = self.event_source.fetch_line_values(
            params.selected_date, params.start_time, params.end_time,
            form_id, params.group_by_field
        )
        if rows is None:
            self._emit("group_field_not_found", group_by_field=params.group_by_field)
            return None

        grouped = group_events_by_line(rows)
        result = compute_multi_line_chart(params, grouped, self.timezone, initial_count)
        self._emit("multi_line_computed", lines=result.line_names,
                   current_production=result.current_production)
        return result

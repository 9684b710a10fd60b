from datetime import date, datetime

import pytest

from core.analysis.shift_chart import (
    EventSource,
    ShiftChartService,
    compute_shift_chart,
    validate_shift_request,
)
from core.cache import ResultCache
from core.calculations.shift_metrics import MultiLineChartResult, ShiftChartResult
from core.exceptions import (
    ShiftChartComputationError,
    ShiftParameterError,
    TimeOutOfRange,
    error_response,
)


class FakeEventSource(EventSource):
    def __init__(self, events=(), initial_count=0, line_rows=None, form_id=7, fail_on=None):
        self.events = list(events)
        self.initial_count = initial_count
        self.line_rows = line_rows
        self.form_id = form_id
        self.fail_on = fail_on
        self.calls = []

    def _record(self, name):
        self.calls.append(name)
        if self.fail_on == name:
            raise RuntimeError(f"{name} exploded")

    def resolve_form_id(self, report_id):
        self._record("resolve_form_id")
        return self.form_id

    def fetch_events(self, selected_date, start_time, end_time, form_id):
        self._record("fetch_events")
        return self.events

    def count_events_before(self, selected_date, start_time, end_time, form_id):
        self._record("count_events_before")
        return self.initial_count

    def fetch_line_values(self, selected_date, start_time, end_time, form_id, field_label):
        self._record("fetch_line_values")
        return self.line_rows


class RecordingHook:
    def __init__(self):
        self.events = []

    def __call__(self, event, details):
        self.events.append((event, details))

    @property
    def names(self):
        return [name for name, _ in self.events]


def request(**overrides):
    values = dict(
        selected_date="2025-03-04",
        shift="Day",
        target_parts=100,
        cycle_time_seconds=18,
        start_time="08:00",
        end_time="09:00",
        form_id=12,
    )
    values.update(overrides)
    return validate_shift_request(**values)


def at(hour, minute):
    return datetime(2025, 3, 4, hour, minute)


# ============================================================
# VALIDATION
# ============================================================

def test_validate_shift_request_builds_parameters():
    params = request(breaks='[{"startTime": "08:20", "endTime": "08:30", "name": "Tea"}]',
                     group_by_field="  Line ")

    assert params.selected_date == date(2025, 3, 4)
    assert params.target_parts == 100
    assert params.cycle_time_seconds == 18.0
    assert len(params.breaks) == 1
    assert params.breaks[0].name == "Tea"
    assert params.group_by_field == "Line"


def test_validate_shift_request_accepts_datetime_and_blank_group_field():
    params = request(selected_date=datetime(2025, 3, 4, 13, 0), group_by_field="   ")

    assert params.selected_date == date(2025, 3, 4)
    assert params.group_by_field is None


def test_malformed_breaks_payload_means_no_breaks():
    assert request(breaks="not json").breaks == ()


@pytest.mark.parametrize("overrides, field", [
    ({"start_time": ""}, "startTime"),
    ({"start_time": None}, "startTime"),
    ({"end_time": "  "}, "endTime"),
    ({"target_parts": 0}, "targetParts"),
    ({"target_parts": "many"}, "targetParts"),
    ({"cycle_time_seconds": -1}, "cycleTimeSeconds"),
    ({"cycle_time_seconds": "abc"}, "cycleTimeSeconds"),
    ({"cycle_time_seconds": "nan"}, "cycleTimeSeconds"),
    ({"cycle_time_seconds": float("nan")}, "cycleTimeSeconds"),
    ({"cycle_time_seconds": float("inf")}, "cycleTimeSeconds"),
    ({"cycle_time_seconds": "-inf"}, "cycleTimeSeconds"),
    ({"target_parts": float("inf")}, "targetParts"),
    ({"target_parts": float("nan")}, "targetParts"),
    ({"selected_date": "not a date"}, "selectedDate"),
    ({"selected_date": None}, "selectedDate"),
])
def test_validate_shift_request_rejects_bad_input(overrides, field):
    with pytest.raises(ShiftParameterError) as excinfo:
        request(**overrides)
    assert excinfo.value.field == field
    assert error_response(excinfo.value)[0] == 400


# ============================================================
# COMPUTATION
# ============================================================

def test_compute_shift_chart_summarizes_events():
    events = [at(8, 5), at(8, 10), at(8, 22)]
    result = compute_shift_chart(request(), events, initial_count=4, last_update=at(9, 0))

    assert isinstance(result, ShiftChartResult)
    assert result.current_production == 3
    assert result.target_parts == 100
    assert result.efficiency == 3
    assert result.remaining_parts == 97
    assert result.initial_count == 4
    assert result.last_update == at(9, 0)
    assert len(result.chart_data) == 13


# ============================================================
# SERVICE
# ============================================================

def test_service_returns_single_line_chart():
    source = FakeEventSource(events=[at(8, 5), at(8, 10)], initial_count=5)
    hook = RecordingHook()

    result = ShiftChartService(source, hook=hook).get_shift_chart(request())

    assert isinstance(result, ShiftChartResult)
    assert result.current_production == 2
    assert result.initial_count == 5
    assert hook.names == ["request_received", "events_fetched", "chart_computed"]
    assert dict(hook.events)["events_fetched"] == {"count": 2}


def test_service_uses_cache_for_identical_requests():
    source = FakeEventSource(events=[at(8, 5)])
    hook = RecordingHook()
    service = ShiftChartService(source, cache=ResultCache(ttl_seconds=30), hook=hook)

    first = service.get_shift_chart(request())
    second = service.get_shift_chart(request())

    assert first is second
    assert source.calls.count("fetch_events") == 1
    assert "cache_hit" in hook.names


def test_service_cache_distinguishes_breaks():
    source = FakeEventSource(events=[at(8, 5)])
    service = ShiftChartService(source, cache=ResultCache(ttl_seconds=30))

    service.get_shift_chart(request())
    service.get_shift_chart(request(breaks=[{"startTime": "08:20", "endTime": "08:30"}]))

    assert source.calls.count("fetch_events") == 2


def test_service_with_unresolved_report_returns_empty_chart():
    source = FakeEventSource(events=[at(8, 5)], form_id=None)
    hook = RecordingHook()

    result = ShiftChartService(source, hook=hook).get_shift_chart(request())

    assert result.current_production == 0
    assert all(p.actual_parts == 0 for p in result.chart_data)
    assert "form_not_found" in hook.names
    assert "fetch_events" not in source.calls
    assert "count_events_before" not in source.calls


def test_service_builds_multi_line_chart():
    rows = [(at(8, 10), "A"), (at(8, 20), "A"), (at(8, 30), "B"), (at(8, 5), None)]
    source = FakeEventSource(events=[r[0] for r in rows], line_rows=rows)
    hook = RecordingHook()

    result = ShiftChartService(source, hook=hook).get_shift_chart(request(group_by_field="Line"))

    assert isinstance(result, MultiLineChartResult)
    assert result.line_names == ["A", "B", "Unknown"]
    assert result.current_production == 4
    assert result.target_parts == 300
    assert result.efficiency == 1
    assert result.remaining_parts == 296
    assert "multi_line_computed" in hook.names


def test_service_falls_back_when_group_field_is_missing():
    source = FakeEventSource(events=[at(8, 10)], line_rows=None)
    hook = RecordingHook()

    result = ShiftChartService(source, hook=hook).get_shift_chart(request(group_by_field="Line"))

    assert isinstance(result, ShiftChartResult)
    assert result.current_production == 1
    assert "group_field_not_found" in hook.names


def test_service_wraps_source_failures():
    source = FakeEventSource(fail_on="fetch_events")
    hook = RecordingHook()
    cache = ResultCache()

    with pytest.raises(ShiftChartComputationError) as excinfo:
        ShiftChartService(source, cache=cache, hook=hook).get_shift_chart(request())

    error = excinfo.value
    assert error.field == "events"
    assert isinstance(error.__cause__, RuntimeError)
    assert "computation_failed" in hook.names
    assert cache.get_stats()["entries"] == 0

    status, body = error_response(error)
    assert status == 500
    assert body["field"] == "events"
    assert body["innerError"] == "fetch_events exploded"
    assert body["type"] == "RuntimeError"


def test_service_names_the_failing_stage():
    source = FakeEventSource(fail_on="count_events_before")

    with pytest.raises(ShiftChartComputationError) as excinfo:
        ShiftChartService(source).get_shift_chart(request())

    assert excinfo.value.field == "initialCount"


def test_malformed_shift_time_is_a_client_error():
    source = FakeEventSource()

    with pytest.raises(TimeOutOfRange) as excinfo:
        ShiftChartService(source).get_shift_chart(request(start_time="25:00"))

    status, body = error_response(excinfo.value)
    assert status == 400
    assert body["field"] == "startTime"


def test_failing_hook_does_not_break_the_request():
    def broken_hook(event, details):
        raise RuntimeError("hook down")

    result = ShiftChartService(FakeEventSource(), hook=broken_hook).get_shift_chart(request())

    assert result.current_production == 0

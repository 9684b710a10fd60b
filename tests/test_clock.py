import pytest
from datetime import datetime

import pandas as pd

from core.exceptions import EmptyTimeString, InvalidTimeFormat, TimeOutOfRange, TimeParseError
from core.time_windows.clock import (
    bucket_of,
    format_minutes_to_12_hour,
    is_overnight,
    is_within_window,
    minute_of_day,
    parse_clock_label,
    parse_time_to_minutes,
    to_local_wall_clock,
)


@pytest.mark.parametrize("value, expected", [
    ("00:00", 0),
    ("08:30", 510),
    ("23:59", 1439),
    ("8:5", 485),
    (" 22:00 ", 1320),
])
def test_parse_time_to_minutes(value, expected):
    assert parse_time_to_minutes(value) == expected


@pytest.mark.parametrize("value, error", [
    (None, EmptyTimeString),
    ("", EmptyTimeString),
    ("   ", EmptyTimeString),
    ("0800", InvalidTimeFormat),
    ("9:5:3", InvalidTimeFormat),
    ("ab:cd", InvalidTimeFormat),
    ("25:00", TimeOutOfRange),
    ("12:60", TimeOutOfRange),
    ("-1:30", TimeOutOfRange),
])
def test_parse_time_to_minutes_errors(value, error):
    with pytest.raises(error):
        parse_time_to_minutes(value)


def test_time_parse_errors_are_value_errors_and_carry_field():
    with pytest.raises(ValueError) as excinfo:
        parse_time_to_minutes("25:00", field="startTime")
    assert isinstance(excinfo.value, TimeParseError)
    assert excinfo.value.field == "startTime"
    assert excinfo.value.value == "25:00"


@pytest.mark.parametrize("minutes, label", [
    (0, "12:00 AM"),
    (5, "12:05 AM"),
    (720, "12:00 PM"),
    (785, "1:05 PM"),
    (1439, "11:59 PM"),
    (-5, "11:55 PM"),
    (1440, "12:00 AM"),
    (1445, "12:05 AM"),
])
def test_format_minutes_to_12_hour(minutes, label):
    assert format_minutes_to_12_hour(minutes) == label


def test_clock_label_round_trip_for_every_minute():
    for minutes in range(1440):
        assert parse_clock_label(format_minutes_to_12_hour(minutes)) == minutes


@pytest.mark.parametrize("label", ["13:00", "", "1:00 XM", "a:00 PM"])
def test_parse_clock_label_rejects_bad_labels(label):
    with pytest.raises(InvalidTimeFormat):
        parse_clock_label(label)


def test_bucket_of_floors_to_five_minutes():
    assert bucket_of(487) == 485
    assert bucket_of(485) == 485
    assert bucket_of(4) == 0


def test_is_overnight():
    assert is_overnight(1320, 360)
    assert is_overnight(480, 480)
    assert not is_overnight(480, 960)


def test_is_within_window_regular_and_wrapping():
    assert is_within_window(480, 960, 480)
    assert is_within_window(480, 960, 960)
    assert not is_within_window(480, 960, 965)

    assert is_within_window(1320, 360, 1380)
    assert is_within_window(1320, 360, 0)
    assert is_within_window(1320, 360, 360)
    assert not is_within_window(1320, 360, 720)


def test_to_local_wall_clock_converts_aware_values():
    local = to_local_wall_clock("2025-03-04T07:00:00Z", "Europe/Copenhagen")
    assert local == datetime(2025, 3, 4, 8, 0)
    assert local.tzinfo is None


def test_to_local_wall_clock_keeps_naive_values():
    naive = datetime(2025, 3, 4, 8, 7, 30)
    assert to_local_wall_clock(naive, "Europe/Copenhagen") == naive
    assert to_local_wall_clock(pd.Timestamp(naive)) == naive


def test_minute_of_day_drops_seconds():
    assert minute_of_day(datetime(2025, 3, 4, 8, 7, 59)) == 487

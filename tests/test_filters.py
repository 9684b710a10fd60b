from datetime import date, datetime

import pandas as pd
import pytest

from core.time_windows.filters import (
    DataFrameEventSource,
    count_submissions_before_shift,
    filter_submissions_by_shift,
    normalize_submissions,
)

SHIFT_DATE = date(2025, 3, 4)


@pytest.fixture
def overnight_submissions():
    return pd.DataFrame({
        'submitted_at': [
            "2025-03-04T21:59:00",
            "2025-03-04T22:00:00",
            "2025-03-05T03:00:00",
            "2025-03-05T06:00:59",
            "2025-03-05T06:01:00",
        ],
        'form_id': [1, 1, 1, 2, 1],
        'line': ["A", "A", None, "B", "A"],
    })


def test_normalize_submissions_converts_to_local_wall_clock():
    df = pd.DataFrame({'submitted_at': ["2025-03-04T07:00:00Z", "2025-03-04T08:30:00", "garbage", None]})

    normalized = normalize_submissions(df, timezone="Europe/Copenhagen")

    assert list(normalized['submitted_at']) == [
        pd.Timestamp(2025, 3, 4, 8, 0),
        pd.Timestamp(2025, 3, 4, 8, 30),
    ]


def test_normalize_submissions_requires_column():
    with pytest.raises(ValueError):
        normalize_submissions(pd.DataFrame({'other': [1]}))


def test_normalize_submissions_handles_empty_frame():
    normalized = normalize_submissions(pd.DataFrame({'submitted_at': []}))
    assert normalized.empty


def test_filter_overnight_shift(overnight_submissions):
    df = normalize_submissions(overnight_submissions)

    shift_df = filter_submissions_by_shift(df, SHIFT_DATE, "22:00", "06:00")

    assert list(shift_df['submitted_at'].dt.strftime("%d %H:%M")) == ["04 22:00", "05 03:00", "05 06:00"]


def test_filter_regular_shift_ignores_other_days():
    df = normalize_submissions(pd.DataFrame({'submitted_at': [
        "2025-03-03T09:00:00",
        "2025-03-04T16:00:30",
        "2025-03-04T09:00:00",
        "2025-03-04T16:01:00",
    ]}))

    shift_df = filter_submissions_by_shift(df, SHIFT_DATE, "08:00", "16:00")

    assert list(shift_df['submitted_at'].dt.strftime("%H:%M")) == ["09:00", "16:00"]


def test_count_submissions_before_shift():
    df = normalize_submissions(pd.DataFrame({'submitted_at': [
        "2025-03-03T23:00:00",
        "2025-03-04T07:59:00",
        "2025-03-04T08:00:00",
        "2025-03-04T21:00:00",
    ]}))

    assert count_submissions_before_shift(df, SHIFT_DATE, "08:00", "16:00") == 1
    assert count_submissions_before_shift(df, SHIFT_DATE, "22:00", "06:00") == 4


def test_dataframe_event_source(overnight_submissions):
    source = DataFrameEventSource(overnight_submissions)

    assert source.resolve_form_id(None) == 0
    assert source.resolve_form_id(3) == 3
    assert source.fetch_events(SHIFT_DATE, "22:00", "06:00", 1) == [
        datetime(2025, 3, 4, 22, 0),
        datetime(2025, 3, 5, 3, 0),
    ]
    assert len(source.fetch_events(SHIFT_DATE, "22:00", "06:00", 0)) == 3
    assert source.count_events_before(SHIFT_DATE, "22:00", "06:00", 1) == 1


def test_dataframe_event_source_line_values(overnight_submissions):
    source = DataFrameEventSource(overnight_submissions)

    rows = source.fetch_line_values(SHIFT_DATE, "22:00", "06:00", 0, "line")

    assert rows == [
        (datetime(2025, 3, 4, 22, 0), "A"),
        (datetime(2025, 3, 5, 3, 0), None),
        (datetime(2025, 3, 5, 6, 0, 59), "B"),
    ]
    assert source.fetch_line_values(SHIFT_DATE, "22:00", "06:00", 0, "station") is None

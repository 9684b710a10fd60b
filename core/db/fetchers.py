"""
Data Fetching Module

Database fetchers for shift production charts. Each fetcher runs a single
read-only query against the forms database; PostgresEventSource wraps them
as the event source used by ShiftChartService.
"""

import logging
from datetime import date
from typing import Any, Callable, List, Optional, Tuple

import pandas as pd

from .pool import get_forms_connection
from .queries import secure_query_builder

logger = logging.getLogger(__name__)


def _run_query(connection_factory: Callable, query: str, parameters: List[Any]):
    with connection_factory() as conn:
        with conn.cursor() as cursor:
            cursor.execute(query, parameters)
            rows = cursor.fetchall()
            columns = [desc[0] for desc in cursor.description] if cursor.description else []
    return rows, columns


def fetch_form_id_for_report(
    report_id: int,
    connection_factory: Callable = get_forms_connection
) -> Optional[int]:
    """Resolve the form behind a report template, None if there is none."""
    query, parameters = secure_query_builder.build_form_for_report_query(report_id)
    rows, _ = _run_query(connection_factory, query, parameters)
    if not rows:
        logger.warning(f"No report template found for id {report_id}")
        return None
    return int(rows[0][0])


def fetch_shift_submissions(
    selected_date: date,
    start_time: str,
    end_time: str,
    form_id: int,
    connection_factory: Callable = get_forms_connection
) -> pd.DataFrame:
    """
    Fetch submissions for one form inside a shift window.

    Args:
        selected_date: Shift date
        start_time: Shift start, "HH:mm"
        end_time: Shift end, "HH:mm" (at or before start means overnight)
        form_id: Form id
        connection_factory: Context manager yielding a DB connection

    Returns:
        DataFrame with columns id, submitted_at ordered by submitted_at
    """
    logger.info(f"Fetching submissions for form {form_id} on {selected_date} {start_time}-{end_time}")

    query, parameters = secure_query_builder.build_shift_events_query(
        selected_date, start_time, end_time, form_id
    )
    rows, columns = _run_query(connection_factory, query, parameters)

    df = pd.DataFrame(rows, columns=columns or ["id", "submitted_at"])
    if not df.empty:
        df["submitted_at"] = pd.to_datetime(df["submitted_at"])

    logger.info(f"Successfully fetched {len(df)} submissions")
    return df


def fetch_initial_count(
    selected_date: date,
    start_time: str,
    end_time: str,
    form_id: int,
    connection_factory: Callable = get_forms_connection
) -> int:
    """Count submissions logged before the shift started."""
    query, parameters = secure_query_builder.build_initial_count_query(
        selected_date, start_time, end_time, form_id
    )
    rows, _ = _run_query(connection_factory, query, parameters)
    return int(rows[0][0]) if rows else 0


def fetch_line_values(
    selected_date: date,
    start_time: str,
    end_time: str,
    form_id: int,
    field_label: str,
    connection_factory: Callable = get_forms_connection
) -> Optional[pd.DataFrame]:
    """
    Fetch each submission's value for the grouping field.

    Returns:
        DataFrame with columns id, submitted_at, field_value, or None when
        the form has no field with that label
    """
    query, parameters = secure_query_builder.build_group_field_query(form_id, field_label)
    rows, _ = _run_query(connection_factory, query, parameters)
    if not rows:
        logger.warning(f"Group field '{field_label}' not found on form {form_id}")
        return None
    field_id = int(rows[0][0])

    query, parameters = secure_query_builder.build_line_values_query(
        selected_date, start_time, end_time, form_id, field_id
    )
    rows, columns = _run_query(connection_factory, query, parameters)

    df = pd.DataFrame(rows, columns=columns or ["id", "submitted_at", "field_value"])
    if not df.empty:
        df["submitted_at"] = pd.to_datetime(df["submitted_at"])
        df = df.sort_values("submitted_at")

    logger.info(f"Fetched {len(df)} field values for grouping by '{field_label}'")
    return df


class PostgresEventSource:
    """Event source backed by the forms database."""

    def __init__(self, connection_factory: Callable = get_forms_connection):
        self.connection_factory = connection_factory

    def resolve_form_id(self, report_id: Optional[int]) -> Optional[int]:
        if report_id is None:
            return None
        return fetch_form_id_for_report(report_id, self.connection_factory)

    def fetch_events(self, selected_date: date, start_time: str, end_time: str, form_id: int) -> List:
        df = fetch_shift_submissions(selected_date, start_time, end_time, form_id, self.connection_factory)
        return [ts.to_pydatetime() for ts in df["submitted_at"]] if not df.empty else []

    def count_events_before(self, selected_date: date, start_time: str, end_time: str, form_id: int) -> int:
        return fetch_initial_count(selected_date, start_time, end_time, form_id, self.connection_factory)

    def fetch_line_values(
        self,
        selected_date: date,
        start_time: str,
        end_time: str,
        form_id: int,
        field_label: str
    ) -> Optional[List[Tuple[Any, Optional[str]]]]:
        df = fetch_line_values(selected_date, start_time, end_time, form_id, field_label,
                               self.connection_factory)
        if df is None:
            return None
        return [
            (row.submitted_at.to_pydatetime(), None if pd.isna(row.field_value) else row.field_value)
            for row in df.itertuples(index=False)
        ]

"""
Secure Query Builder Module

Parameterized queries for shift production data. Shift windows are turned
into absolute [start, end) datetime ranges so the database can use the
submitted_at index instead of per-row hour/minute arithmetic.
"""

import logging
import re
from datetime import date, datetime, time
from typing import Any, List, Tuple

from core.time_windows.models import ShiftWindow

logger = logging.getLogger(__name__)


class SecureQueryBuilder:
    """Secure query builder with parameterized queries and input validation."""

    @staticmethod
    def validate_field_label(label: str) -> bool:
        """
        Validate a form field label used for grouping.

        Args:
            label: Field label to validate

        Returns:
            bool: True if the label is usable
        """
        if not label or len(label) > 200:
            return False
        # Printable characters only, no control characters
        return not re.search(r'[\x00-\x1f\x7f]', label)

    @staticmethod
    def validate_id(value: Any) -> int:
        """Coerce a record id to a positive int or raise ValueError."""
        try:
            as_int = int(value)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid id: {value!r}")
        if as_int <= 0:
            raise ValueError(f"Invalid id: {value!r}")
        return as_int

    def build_form_for_report_query(self, report_id: int) -> Tuple[str, List[Any]]:
        """Query the form id behind a report template."""
        query = """
            SELECT form_id
            FROM report_templates
            WHERE id = %s
            LIMIT 1;
        """
        return query, [self.validate_id(report_id)]

    def build_shift_events_query(
        self,
        selected_date: date,
        start_time: str,
        end_time: str,
        form_id: int
    ) -> Tuple[str, List[Any]]:
        """
        Query submission timestamps inside a shift window.

        Overnight shifts span selected_date and the following day.

        Returns:
            Tuple[str, List[Any]]: (query_string, parameters)
        """
        segment = ShiftWindow.from_times(start_time, end_time).to_segment(selected_date)
        query = """
            SELECT id, submitted_at
            FROM form_submissions
            WHERE form_id = %s
              AND submitted_at >= %s
              AND submitted_at < %s
            ORDER BY submitted_at ASC;
        """
        parameters = [self.validate_id(form_id), segment.start, segment.end]
        logger.info(f"Built shift events query for form {form_id}: {segment}")
        return query, parameters

    def build_initial_count_query(
        self,
        selected_date: date,
        start_time: str,
        end_time: str,
        form_id: int
    ) -> Tuple[str, List[Any]]:
        """
        Count submissions before the shift start.

        Regular shifts only count the selected date; overnight shifts count
        everything before the start.
        """
        window = ShiftWindow.from_times(start_time, end_time)
        shift_start = window.to_segment(selected_date).start

        if window.overnight:
            query = """
                SELECT COUNT(*)
                FROM form_submissions
                WHERE form_id = %s
                  AND submitted_at < %s;
            """
            parameters = [self.validate_id(form_id), shift_start]
        else:
            query = """
                SELECT COUNT(*)
                FROM form_submissions
                WHERE form_id = %s
                  AND submitted_at >= %s
                  AND submitted_at < %s;
            """
            day_start = datetime.combine(selected_date, time.min)
            parameters = [self.validate_id(form_id), day_start, shift_start]

        return query, parameters

    def build_group_field_query(self, form_id: int, field_label: str) -> Tuple[str, List[Any]]:
        """Look up the field used for multi-line grouping by its label."""
        if not self.validate_field_label(field_label):
            raise ValueError(f"Invalid group field label: {field_label!r}")

        query = """
            SELECT id
            FROM form_fields
            WHERE form_id = %s AND label = %s
            LIMIT 1;
        """
        return query, [self.validate_id(form_id), field_label]

    def build_line_values_query(
        self,
        selected_date: date,
        start_time: str,
        end_time: str,
        form_id: int,
        field_id: int
    ) -> Tuple[str, List[Any]]:
        """
        Query (submitted_at, field value) for every submission in the shift.

        Submissions without a value for the field are kept with a NULL
        value; only the first value per submission is used.
        """
        segment = ShiftWindow.from_times(start_time, end_time).to_segment(selected_date)
        query = """
            SELECT DISTINCT ON (s.id) s.id, s.submitted_at, d.field_value
            FROM form_submissions s
            LEFT JOIN form_submission_data d
              ON d.form_submission_id = s.id
             AND d.field_label = %s
            WHERE s.form_id = %s
              AND s.submitted_at >= %s
              AND s.submitted_at < %s
            ORDER BY s.id, d.id;
        """
        parameters = [
            str(self.validate_id(field_id)),
            self.validate_id(form_id),
            segment.start,
            segment.end,
        ]
        return query, parameters


secure_query_builder = SecureQueryBuilder()

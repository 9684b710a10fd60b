"""
Shift Chart Error Taxonomy

Errors raised while parsing shift parameters and computing the shift chart,
plus a helper that maps them to an HTTP-style (status, body) response.
"""

from typing import Any, Dict, Optional, Tuple


class TimeParseError(ValueError):
    """Base class for malformed "HH:mm" time strings."""

    def __init__(self, message: str, value: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.value = value
        self.field = field


class EmptyTimeString(TimeParseError):
    """Time string is None or blank."""


class InvalidTimeFormat(TimeParseError):
    """Time string is not two colon-separated integers."""


class TimeOutOfRange(TimeParseError):
    """Hours outside [0, 23] or minutes outside [0, 59]."""


class ShiftParameterError(ValueError):
    """
    Client input error detected at the request boundary.

    Raised before the engine runs, e.g. a missing start time or a
    non-positive target.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ShiftChartComputationError(RuntimeError):
    """Unexpected fault while computing a shift chart."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


def error_response(exc: Exception) -> Tuple[int, Dict[str, Any]]:
    """
    Map an exception to a (status_code, body) pair.

    Input errors (including malformed shift start/end times) are 400,
    everything else is 500 with enough detail to diagnose.

    Args:
        exc: Exception raised by the service or the engine

    Returns:
        Tuple of (status_code, response_body)
    """
    if isinstance(exc, (ShiftParameterError, TimeParseError)):
        body = {"error": str(exc)}
        if exc.field:
            body["field"] = exc.field
        return 400, body

    cause = exc.__cause__
    return 500, {
        "error": str(exc),
        "field": getattr(exc, "field", None),
        "innerError": str(cause) if cause is not None else None,
        "type": type(cause or exc).__name__,
    }

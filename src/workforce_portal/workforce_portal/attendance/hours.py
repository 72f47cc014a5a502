from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import parse_timestamp

NOT_AVAILABLE = "N/A"
INVALID = "Invalid"


def _coerce(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return parse_timestamp(value)
        except ValueError:
            return None
    return None


def worked_minutes(check_in: Any, check_out: Any) -> Optional[int]:
    """Whole minutes between check-in and check-out.

    None when either side is missing or unparseable; negative spans are returned as-is.
    """

    start, end = _coerce(check_in), _coerce(check_out)
    if start is None or end is None:
        return None
    if (start.tzinfo is None) != (end.tzinfo is None):
        return None
    return int((end - start).total_seconds() // 60)


def compute_hours_worked(check_in: Any, check_out: Any) -> str:
    """Format the worked span as ``"Xh Ym"``. Never raises."""

    minutes = worked_minutes(check_in, check_out)
    if minutes is None:
        return NOT_AVAILABLE
    if minutes < 0:
        return INVALID
    hours, rest = divmod(minutes, 60)
    return f"{hours}h {rest}m"

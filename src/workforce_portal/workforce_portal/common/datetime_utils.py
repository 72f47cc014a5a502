from __future__ import annotations

import calendar
import math
from datetime import date, datetime, time
from typing import Any, Optional

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into a naive local datetime."""

    v = value.strip()
    if v.endswith("Z"):
        v = v[:-1] + "+00:00"
    parsed = datetime.fromisoformat(v)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def to_calendar_day(value: Any, field_name: str = "Date") -> date:
    """Normalize a date, datetime or ISO string to its calendar day."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")

    v = value.strip()
    try:
        if "T" in v or " " in v:
            return parse_timestamp(v).date()
        return parse_iso_date(v)
    except ValueError:
        raise ValidationError(f"{field_name} is not a valid date (YYYY-MM-DD)")


def parse_clock_or_timestamp(value: Any, day: date, field_name: str) -> Optional[datetime]:
    """Parse a full timestamp, or an ``HH:MM[:SS]`` time-of-day combined with ``day``."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, time):
        return datetime.combine(day, value)
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} is not a valid time")

    v = value.strip()
    try:
        if "T" in v:
            return parse_timestamp(v)
        fmt = "%H:%M:%S" if v.count(":") == 2 else "%H:%M"
        return datetime.combine(day, datetime.strptime(v, fmt).time())
    except ValueError:
        raise ValidationError(f"{field_name} is not a valid time (HH:MM)")


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Closed interval [first day, last day] of a month."""

    if not 1 <= int(month) <= 12:
        raise ValidationError("Month must be between 1 and 12")
    last = calendar.monthrange(int(year), int(month))[1]
    return date(int(year), int(month), 1), date(int(year), int(month), last)


def inclusive_day_count(start: date | datetime, end: date | datetime) -> int:
    """Days covered by [start, end], counting both ends.

    Partial days round up, so a span of 1.5 days counts as 3 calendar days.
    """

    if isinstance(start, datetime) or isinstance(end, datetime):
        s = start if isinstance(start, datetime) else datetime.combine(start, time.min)
        e = end if isinstance(end, datetime) else datetime.combine(end, time.min)
        return math.ceil((e - s).total_seconds() / 86400) + 1
    return (end - start).days + 1

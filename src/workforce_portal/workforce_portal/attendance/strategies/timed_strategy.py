from __future__ import annotations

from datetime import date
from typing import Any

from ...common.datetime_utils import parse_clock_or_timestamp
from .base import TimestampDecision, TimestampStrategy


class TimedStrategy(TimestampStrategy):
    """Present / half day: timestamps are kept, time-of-day values anchored to ``day``."""

    def resolve(self, *, day: date, check_in: Any, check_out: Any) -> TimestampDecision:
        return TimestampDecision(
            check_in=parse_clock_or_timestamp(check_in, day, "Check-in"),
            check_out=parse_clock_or_timestamp(check_out, day, "Check-out"),
        )

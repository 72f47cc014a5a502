from __future__ import annotations

from datetime import date
from typing import Any

from .base import TimestampDecision, TimestampStrategy


class UntimedStrategy(TimestampStrategy):
    """Absent / leave: any supplied timestamps are dropped, never stored."""

    def resolve(self, *, day: date, check_in: Any, check_out: Any) -> TimestampDecision:
        return TimestampDecision()

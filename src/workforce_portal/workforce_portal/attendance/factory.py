from __future__ import annotations

from dataclasses import dataclass, field

from ..core.enums import AttendanceStatus
from .strategies.base import TimestampStrategy
from .strategies.timed_strategy import TimedStrategy
from .strategies.untimed_strategy import UntimedStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose the timestamp strategy for an attendance status."""

    timed: TimestampStrategy = field(default_factory=TimedStrategy)
    untimed: TimestampStrategy = field(default_factory=UntimedStrategy)

    def for_status(self, status: AttendanceStatus) -> TimestampStrategy:
        return self.timed if status.is_timed else self.untimed

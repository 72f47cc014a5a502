from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional


@dataclass(frozen=True)
class TimestampDecision:
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None


class TimestampStrategy(ABC):
    """Strategy Pattern: encapsulate which check-in/check-out values a status keeps."""

    @abstractmethod
    def resolve(self, *, day: date, check_in: Any, check_out: Any) -> TimestampDecision:
        raise NotImplementedError

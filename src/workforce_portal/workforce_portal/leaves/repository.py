from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..access.scoping import ScopeFilter
from ..core.enums import LeaveStatus
from .model import Leave, LeaveFilters, NewLeave


class LeaveRepository(Protocol):
    def create(self, leave: NewLeave) -> int:
        raise NotImplementedError

    def get_by_id(self, leave_id: int, *, scope: ScopeFilter) -> Optional[Leave]:
        raise NotImplementedError

    def find(
        self,
        *,
        scope: ScopeFilter,
        filters: LeaveFilters,
        sort_field: str = "createdAt",
        descending: bool = True,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[Leave]:
        raise NotImplementedError

    def count(self, *, scope: ScopeFilter, filters: LeaveFilters) -> int:
        raise NotImplementedError

    def delete_pending(self, *, leave_id: int, employee_id: int) -> bool:
        """Delete only when the leave is pending and owned by ``employee_id``."""

        raise NotImplementedError

    def decide(
        self,
        *,
        leave_id: int,
        status: LeaveStatus,
        decided_by: int,
        decided_at: datetime,
        rejection_reason: Optional[str],
    ) -> bool:
        """Move a pending leave to ``status``; False when it is not pending (or absent)."""

        raise NotImplementedError

    def count_by_status(self, *, filters: LeaveFilters) -> dict[LeaveStatus, int]:
        raise NotImplementedError

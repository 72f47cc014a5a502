from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..access.scoping import ScopeFilter
from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, NewAttendance


class AttendanceRepository(Protocol):
    def create(self, record: NewAttendance) -> Optional[int]:
        """Insert one row; return None when (user, day) already has a record."""

        raise NotImplementedError

    def get_by_id(self, attendance_id: int, *, scope: ScopeFilter) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def exists_for(self, *, user_id: int, work_date: date) -> bool:
        raise NotImplementedError

    def find(
        self,
        *,
        scope: ScopeFilter,
        user_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
        newest_first: bool = False,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def update(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        check_in: Optional[datetime],
        check_out: Optional[datetime],
        notes: str,
    ) -> bool:
        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def count_for_day(self, *, work_date: date, status: AttendanceStatus) -> int:
        raise NotImplementedError

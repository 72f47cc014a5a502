from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime
from typing import Any, Callable, Iterable, Optional, Sequence

from ..access.scoping import UNRESTRICTED, require_admin, scope_for
from ..common.datetime_utils import month_bounds, now_local, to_calendar_day
from ..common.validators import optional_text, parse_int
from ..core.constants import DEFAULT_ATTENDANCE_LIMIT
from ..core.enums import AttendanceStatus, Resource
from ..core.exceptions import ConflictError, DomainError, NotFoundError, ValidationError
from ..users.model import Principal
from ..users.repository import UserRepository
from .factory import AttendanceStrategyFactory
from .hours import worked_minutes
from .model import AttendanceRecord, AttendanceSummary, BatchResult, NewAttendance
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_UNSET: Any = object()


def parse_status(value: Any) -> AttendanceStatus:
    if isinstance(value, AttendanceStatus):
        return value
    try:
        return AttendanceStatus.parse(value if isinstance(value, str) else "")
    except ValueError:
        allowed = ", ".join(s.value for s in AttendanceStatus)
        raise ValidationError(f"Status must be one of: {allowed}")


def monthly_summary(records: Iterable[AttendanceRecord]) -> AttendanceSummary:
    """Per-status day counts plus the total worked time of timed records."""

    counts: Counter = Counter()
    total = 0
    for r in records:
        counts[r.status] += 1
        if r.status.is_timed:
            minutes = worked_minutes(r.check_in, r.check_out)
            if minutes and minutes > 0:
                total += minutes

    return AttendanceSummary(
        present=counts[AttendanceStatus.PRESENT],
        absent=counts[AttendanceStatus.ABSENT],
        leave=counts[AttendanceStatus.LEAVE],
        half_day=counts[AttendanceStatus.HALF_DAY],
        total_minutes=total,
    )


class AttendanceService:
    """Use cases of the attendance ledger: one record per user and calendar day."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._users = users
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._clock = clock

    def mark_attendance(
        self,
        *,
        principal: Principal,
        user_id: Any,
        work_date: Any,
        status: Any,
        check_in: Any = None,
        check_out: Any = None,
        notes: Any = None,
    ) -> AttendanceRecord:
        require_admin(principal)

        uid = parse_int(user_id, "User ID", minimum=1)
        if uid is None:
            raise ValidationError("User ID is required")
        day = to_calendar_day(work_date)
        st = parse_status(status)

        if not self._users.get_by_id(uid):
            raise ValidationError("User does not exist")

        decision = self._factory.for_status(st).resolve(day=day, check_in=check_in, check_out=check_out)
        new_id = self._attendance.create(
            NewAttendance(
                user_id=uid,
                work_date=day,
                status=st,
                check_in=decision.check_in,
                check_out=decision.check_out,
                notes=optional_text(notes) or "",
                recorded_by=principal.user_id,
            )
        )
        if new_id is None:
            raise ConflictError(
                "Attendance already recorded for this user on the selected date",
                code="DuplicateAttendance",
            )

        logger.info("Attendance %s marked for user %s on %s (%s)", new_id, uid, day, st.value)
        return self._get(new_id)

    def mark_attendance_batch(self, *, principal: Principal, records: Any) -> BatchResult:
        require_admin(principal)
        if not isinstance(records, list) or not records:
            raise ValidationError("Attendance records array is required")

        result = BatchResult()
        for record in records:
            if not isinstance(record, dict):
                result.failed.append({"record": record, "error": "Record must be an object", "code": "ValidationError"})
                continue
            try:
                saved = self.mark_attendance(
                    principal=principal,
                    user_id=record.get("userId"),
                    work_date=record.get("date"),
                    status=record.get("status"),
                    check_in=record.get("checkIn"),
                    check_out=record.get("checkOut"),
                    notes=record.get("notes"),
                )
            except DomainError as e:
                result.failed.append({"record": record, "error": e.message, "code": e.code})
                continue
            result.succeeded.append(saved)

        if result.failed:
            logger.info("Attendance batch: %d saved, %d failed", len(result.succeeded), len(result.failed))
        return result

    def query_attendance(
        self,
        *,
        principal: Principal,
        user_id: Any = None,
        year: Any = None,
        month: Any = None,
    ) -> Sequence[AttendanceRecord]:
        y = parse_int(year, "Year", minimum=1)
        m = parse_int(month, "Month")
        if (y is None) != (m is None):
            raise ValidationError("Month and year must be given together")

        start = end = None
        if y is not None:
            start, end = month_bounds(y, m)

        return self._attendance.find(
            scope=scope_for(principal, Resource.ATTENDANCE),
            user_id=parse_int(user_id, "User ID", minimum=1),
            start_date=start,
            end_date=end,
        )

    def list_recent(self, *, principal: Principal, limit: Any = None) -> Sequence[AttendanceRecord]:
        require_admin(principal)
        n = parse_int(limit, "Limit", default=DEFAULT_ATTENDANCE_LIMIT, minimum=1)
        return self._attendance.find(
            scope=scope_for(principal, Resource.ATTENDANCE),
            limit=n,
            newest_first=True,
        )

    def exists_for(self, *, principal: Principal, user_id: Any, work_date: Any) -> bool:
        require_admin(principal)
        uid = parse_int(user_id, "User ID", minimum=1)
        if uid is None:
            raise ValidationError("User ID and date are required")
        return self._attendance.exists_for(user_id=uid, work_date=to_calendar_day(work_date))

    def get_record(self, *, principal: Principal, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(attendance_id, scope=scope_for(principal, Resource.ATTENDANCE))
        if not record:
            raise NotFoundError("No attendance record found with that ID")
        return record

    def update_record(
        self,
        *,
        principal: Principal,
        attendance_id: int,
        status: Any = None,
        check_in: Any = _UNSET,
        check_out: Any = _UNSET,
        notes: Any = _UNSET,
    ) -> AttendanceRecord:
        """Admin correction; user and day of a record are fixed."""

        require_admin(principal)
        current = self.get_record(principal=principal, attendance_id=attendance_id)

        st = parse_status(status) if status is not None else current.status
        strategy = self._factory.for_status(st)
        decision = strategy.resolve(
            day=current.work_date,
            check_in=current.check_in if check_in is _UNSET else check_in,
            check_out=current.check_out if check_out is _UNSET else check_out,
        )
        new_notes = current.notes if notes is _UNSET else (optional_text(notes) or "")

        ok = self._attendance.update(
            attendance_id=current.attendance_id,
            status=st,
            check_in=decision.check_in,
            check_out=decision.check_out,
            notes=new_notes,
        )
        if not ok:
            raise NotFoundError("No attendance record found with that ID")

        logger.info("Attendance %s corrected by admin %s", attendance_id, principal.user_id)
        return self._get(current.attendance_id)

    def delete_record(self, *, principal: Principal, attendance_id: int) -> None:
        require_admin(principal)
        if not self._attendance.delete(attendance_id):
            raise NotFoundError("No attendance record found with that ID")
        logger.info("Attendance %s deleted by admin %s", attendance_id, principal.user_id)

    def monthly_summary(self, *, principal: Principal, today: Optional[date] = None) -> AttendanceSummary:
        """Summary of the principal's own records in the current month."""

        today = today or self._clock().date()
        start, end = month_bounds(today.year, today.month)
        records = self._attendance.find(
            scope=scope_for(principal, Resource.ATTENDANCE),
            user_id=principal.user_id,
            start_date=start,
            end_date=end,
        )
        return monthly_summary(records)

    def count_for_day(self, *, work_date: date, status: AttendanceStatus) -> int:
        return self._attendance.count_for_day(work_date=work_date, status=status)

    def _get(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(attendance_id, scope=UNRESTRICTED[Resource.ATTENDANCE])
        if not record:
            raise NotFoundError("No attendance record found with that ID")
        return record

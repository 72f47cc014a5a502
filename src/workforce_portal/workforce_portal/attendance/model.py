from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from ..core.enums import AttendanceStatus
from .hours import NOT_AVAILABLE, compute_hours_worked


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one user's attendance fact for one calendar day."""

    attendance_id: int
    user_id: int
    work_date: date
    status: AttendanceStatus
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    notes: str = ""
    recorded_by: Optional[int] = None
    created_at: Optional[datetime] = None
    user_name: Optional[str] = None

    @property
    def hours_worked(self) -> str:
        if not self.status.is_timed:
            return NOT_AVAILABLE
        return compute_hours_worked(self.check_in, self.check_out)

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "userId": self.user_id,
            "userName": self.user_name,
            "date": self.work_date.isoformat(),
            "status": self.status.value,
            "checkIn": _iso(self.check_in),
            "checkOut": _iso(self.check_out),
            "hoursWorked": self.hours_worked,
            "notes": self.notes,
            "recordedBy": self.recorded_by,
            "createdAt": _iso(self.created_at),
        }


@dataclass(frozen=True)
class NewAttendance:
    user_id: int
    work_date: date
    status: AttendanceStatus
    check_in: Optional[datetime]
    check_out: Optional[datetime]
    notes: str
    recorded_by: int


@dataclass
class BatchResult:
    """Outcome of a best-effort batch: committed rows stay committed."""

    succeeded: list[AttendanceRecord] = field(default_factory=list)
    failed: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "successful": [r.to_dict() for r in self.succeeded],
            "failed": list(self.failed),
        }


@dataclass(frozen=True)
class AttendanceSummary:
    present: int = 0
    absent: int = 0
    leave: int = 0
    half_day: int = 0
    total_minutes: int = 0

    @property
    def total_days(self) -> int:
        return self.present + self.absent + self.leave + self.half_day

    @property
    def attendance_percentage(self) -> float:
        if not self.total_days:
            return 0.0
        return round((self.present + 0.5 * self.half_day) * 100 / self.total_days, 2)

    def to_dict(self) -> dict:
        hours, minutes = divmod(self.total_minutes, 60)
        return {
            "present": self.present,
            "absent": self.absent,
            "leave": self.leave,
            "halfDay": self.half_day,
            "totalDays": self.total_days,
            "attendancePercentage": self.attendance_percentage,
            "totalHours": f"{hours}h {minutes}m",
        }

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeaveStatus, LeaveType

SORTABLE_FIELDS = ("createdAt", "startDate", "endDate", "days", "status", "type")
DEFAULT_SORT = "-createdAt"


@dataclass(frozen=True)
class Leave:
    """Domain entity: a leave request and its decision audit fields."""

    leave_id: int
    employee_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    days: int
    reason: str
    status: LeaveStatus
    created_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    employee_name: Optional[str] = None
    employee_department: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.leave_id,
            "employee": {
                "id": self.employee_id,
                "name": self.employee_name,
                "department": self.employee_department,
            },
            "type": self.leave_type.value,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "days": self.days,
            "reason": self.reason,
            "status": self.status.value,
            "approvedBy": self.approved_by,
            "approvedAt": self.approved_at.isoformat() if self.approved_at else None,
            "rejectionReason": self.rejection_reason,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class NewLeave:
    employee_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    days: int
    reason: str


@dataclass(frozen=True)
class LeaveFilters:
    status: Optional[LeaveStatus] = None
    leave_type: Optional[LeaveType] = None
    department: Optional[str] = None
    employee_id: Optional[int] = None
    start_from: Optional[date] = None
    start_to: Optional[date] = None

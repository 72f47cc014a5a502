from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles used for authorization. Clients are the employee-facing portal."""

    ADMIN = "admin"
    CLIENT = "client"


class Resource(str, Enum):
    """Record collections that are scoped per principal."""

    PROJECT = "project"
    TASK = "task"
    LEAVE = "leave"
    ATTENDANCE = "attendance"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    HALF_DAY = "half_day"
    LEAVE = "leave"

    @classmethod
    def parse(cls, value: str) -> "AttendanceStatus":
        """Accept both ``half_day`` and ``half-day`` spellings."""

        return cls((value or "").strip().lower().replace("-", "_"))

    @property
    def is_timed(self) -> bool:
        return self in {AttendanceStatus.PRESENT, AttendanceStatus.HALF_DAY}


class LeaveType(str, Enum):
    SICK = "sick"
    VACATION = "vacation"
    PERSONAL = "personal"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    OTHER = "other"


class LeaveStatus(str, Enum):
    """Leave workflow: PENDING -> APPROVED | REJECTED (both terminal)."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TaskStatus(str, Enum):
    """Task workflow, linear: PENDING -> IN_PROGRESS -> COMPLETED -> EVALUATED.

    IN_PROGRESS is reserved; submission moves an open task straight to COMPLETED.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    EVALUATED = "evaluated"

    @property
    def rank(self) -> int:
        return _TASK_ORDER.index(self)

    @property
    def is_open(self) -> bool:
        return self in {TaskStatus.PENDING, TaskStatus.IN_PROGRESS}


_TASK_ORDER = [TaskStatus.PENDING, TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED, TaskStatus.EVALUATED]


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    ON_HOLD = "onHold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ProjectPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

from __future__ import annotations

from datetime import date, datetime
from typing import Callable, Optional

from ..access.scoping import require_admin
from ..attendance.service import AttendanceService
from ..common.datetime_utils import now_local
from ..core.enums import AttendanceStatus, ProjectStatus, TaskStatus
from ..leaves.model import LeaveFilters
from ..leaves.service import LeaveService
from ..projects.service import ProjectService
from ..tasks.service import TaskService
from ..users.model import Principal
from ..users.repository import UserRepository


def _with_total(counts: dict, statuses) -> dict:
    out = {s.value: int(counts.get(s, 0)) for s in statuses}
    out["total"] = sum(out.values())
    return out


class DashboardService:
    """Derived statistics, recomputed from the ledgers on every call."""

    def __init__(
        self,
        *,
        users: UserRepository,
        projects: ProjectService,
        tasks: TaskService,
        leaves: LeaveService,
        attendance: AttendanceService,
        clock: Callable[[], datetime] = now_local,
    ):
        self._users = users
        self._projects = projects
        self._tasks = tasks
        self._leaves = leaves
        self._attendance = attendance
        self._clock = clock

    def admin_stats(self, *, principal: Principal, today: Optional[date] = None) -> dict:
        require_admin(principal)
        today = today or self._clock().date()

        employee_count = self._users.count()
        task_counts = self._tasks.count_by_status()
        present_today = self._attendance.count_for_day(work_date=today, status=AttendanceStatus.PRESENT)

        return {
            "employeeCount": employee_count,
            "projectCount": sum(self._projects.count_by_status(principal=principal).values()),
            "pendingLeaves": self._leaves.get_leave_stats()["pending"],
            "activeTasks": sum(task_counts.get(s, 0) for s in TaskStatus if s.is_open),
            "presentToday": present_today,
            "todayAttendance": round(present_today * 100 / employee_count) if employee_count else 0,
        }

    def client_stats(self, *, principal: Principal, today: Optional[date] = None) -> dict:
        today = today or self._clock().date()

        return {
            "projectStats": _with_total(self._projects.count_by_status(principal=principal), ProjectStatus),
            "taskStats": _with_total(self._tasks.count_by_status(principal=principal), TaskStatus),
            "leaveStats": self._leaves.get_leave_stats(LeaveFilters(employee_id=principal.user_id)),
            "attendance": self._attendance.monthly_summary(principal=principal, today=today).to_dict(),
        }

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..access.scoping import ScopeFilter
from ..access.sql import scope_clause
from ..core.enums import LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Leave, LeaveFilters, NewLeave
from .repository import LeaveRepository

_SELECT = """
    SELECT l.leave_id, l.employee_id, l.leave_type, l.start_date, l.end_date, l.days, l.reason,
           l.status, l.approved_by, l.approved_at, l.rejection_reason, l.created_at,
           u.name AS employee_name, u.department AS employee_department
    FROM leaves l
    JOIN users u ON u.user_id = l.employee_id
"""

_SORT_COLUMNS = {
    "createdAt": "l.created_at",
    "startDate": "l.start_date",
    "endDate": "l.end_date",
    "days": "l.days",
    "status": "l.status",
    "type": "l.leave_type",
}


def _row_to_leave(r: dict) -> Leave:
    return Leave(
        leave_id=int(r["leave_id"]),
        employee_id=int(r["employee_id"]),
        leave_type=LeaveType(r["leave_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        days=int(r["days"]),
        reason=r.get("reason") or "",
        status=LeaveStatus(r["status"]),
        created_at=r.get("created_at"),
        approved_by=r.get("approved_by"),
        approved_at=r.get("approved_at"),
        rejection_reason=r.get("rejection_reason"),
        employee_name=r.get("employee_name"),
        employee_department=r.get("employee_department"),
    )


def _filter_clause(filters: LeaveFilters) -> tuple[list[str], list]:
    where: list[str] = []
    params: list = []
    if filters.status:
        where.append("l.status=%s")
        params.append(filters.status.value)
    if filters.leave_type:
        where.append("l.leave_type=%s")
        params.append(filters.leave_type.value)
    if filters.department:
        where.append("u.department=%s")
        params.append(filters.department)
    if filters.employee_id is not None:
        where.append("l.employee_id=%s")
        params.append(int(filters.employee_id))
    if filters.start_from:
        where.append("l.start_date >= %s")
        params.append(filters.start_from)
    if filters.start_to:
        where.append("l.start_date <= %s")
        params.append(filters.start_to)
    return where, params


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, leave: NewLeave) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leaves(employee_id, leave_type, start_date, end_date, days, reason, status)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(leave.employee_id),
                    leave.leave_type.value,
                    leave.start_date,
                    leave.end_date,
                    int(leave.days),
                    leave.reason,
                    LeaveStatus.PENDING.value,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, leave_id: int, *, scope: ScopeFilter) -> Optional[Leave]:
        clause, params = scope_clause(scope, "l")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE l.leave_id=%s AND {clause}", (int(leave_id), *params))
            row = fetchone(cur)
            return _row_to_leave(row) if row else None

    def _where(self, scope: ScopeFilter, filters: LeaveFilters) -> tuple[str, list]:
        clause, scope_params = scope_clause(scope, "l")
        where, params = _filter_clause(filters)
        return " AND ".join([clause, *where]), [*scope_params, *params]

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
        where, params = self._where(scope, filters)
        column = _SORT_COLUMNS[sort_field]
        direction = "DESC" if descending else "ASC"

        sql = f"{_SELECT} WHERE {where} ORDER BY {column} {direction}, l.leave_id {direction}"
        if limit is not None:
            sql += " LIMIT %s OFFSET %s"
            params += [int(limit), int(offset)]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_leave(r) for r in fetchall(cur)]

    def count(self, *, scope: ScopeFilter, filters: LeaveFilters) -> int:
        where, params = self._where(scope, filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT COUNT(*) AS n FROM leaves l JOIN users u ON u.user_id = l.employee_id WHERE {where}",
                tuple(params),
            )
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def delete_pending(self, *, leave_id: int, employee_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM leaves WHERE leave_id=%s AND employee_id=%s AND status=%s",
                (int(leave_id), int(employee_id), LeaveStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def decide(
        self,
        *,
        leave_id: int,
        status: LeaveStatus,
        decided_by: int,
        decided_at: datetime,
        rejection_reason: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leaves
                SET status=%s, approved_by=%s, approved_at=%s, rejection_reason=%s
                WHERE leave_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(decided_by),
                    decided_at,
                    rejection_reason,
                    int(leave_id),
                    LeaveStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def count_by_status(self, *, filters: LeaveFilters) -> dict[LeaveStatus, int]:
        where, params = _filter_clause(filters)
        sql = "SELECT l.status, COUNT(*) AS n FROM leaves l JOIN users u ON u.user_id = l.employee_id"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " GROUP BY l.status"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return {LeaveStatus(r["status"]): int(r["n"]) for r in fetchall(cur)}

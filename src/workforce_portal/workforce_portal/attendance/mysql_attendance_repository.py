from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..access.scoping import ScopeFilter
from ..access.sql import scope_clause
from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceRecord, NewAttendance
from .repository import AttendanceRepository

_SELECT = """
    SELECT a.attendance_id, a.user_id, a.work_date, a.status, a.check_in, a.check_out,
           a.notes, a.recorded_by, a.created_at, u.name AS user_name
    FROM attendance_records a
    JOIN users u ON u.user_id = a.user_id
"""


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        check_in=r.get("check_in"),
        check_out=r.get("check_out"),
        notes=r.get("notes") or "",
        recorded_by=r.get("recorded_by"),
        created_at=r.get("created_at"),
        user_name=r.get("user_name"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, record: NewAttendance) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(user_id, work_date, status, check_in, check_out, notes, recorded_by)
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(record.user_id),
                        record.work_date,
                        record.status.value,
                        record.check_in,
                        record.check_out,
                        record.notes,
                        int(record.recorded_by),
                    ),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            # UNIQUE(user_id, work_date)
            if is_duplicate_key(e):
                return None
            raise

    def get_by_id(self, attendance_id: int, *, scope: ScopeFilter) -> Optional[AttendanceRecord]:
        clause, params = scope_clause(scope, "a")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE a.attendance_id=%s AND {clause}", (int(attendance_id), *params))
            row = fetchone(cur)
            return _row_to_record(row) if row else None

    def exists_for(self, *, user_id: int, work_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS found FROM attendance_records WHERE user_id=%s AND work_date=%s",
                (int(user_id), work_date),
            )
            return fetchone(cur) is not None

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
        clause, params = scope_clause(scope, "a")
        where = [clause]
        args: list = list(params)

        if user_id is not None:
            where.append("a.user_id=%s")
            args.append(int(user_id))
        if start_date is not None:
            where.append("a.work_date >= %s")
            args.append(start_date)
        if end_date is not None:
            where.append("a.work_date <= %s")
            args.append(end_date)

        sql = f"{_SELECT} WHERE {' AND '.join(where)}"
        sql += " ORDER BY a.work_date DESC, a.attendance_id DESC" if newest_first else " ORDER BY a.work_date ASC, a.attendance_id ASC"
        if limit is not None:
            sql += " LIMIT %s"
            args.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(args))
            return [_row_to_record(r) for r in fetchall(cur)]

    def update(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        check_in: Optional[datetime],
        check_out: Optional[datetime],
        notes: str,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, check_in=%s, check_out=%s, notes=%s
                WHERE attendance_id=%s
                """,
                (status.value, check_in, check_out, notes, int(attendance_id)),
            )
            # rowcount is 0 when values are unchanged; re-check existence
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT 1 AS found FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return fetchone(cur) is not None

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def count_for_day(self, *, work_date: date, status: AttendanceStatus) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM attendance_records WHERE work_date=%s AND status=%s",
                (work_date, status.value),
            )
            row = fetchone(cur)
            return int(row["n"]) if row else 0

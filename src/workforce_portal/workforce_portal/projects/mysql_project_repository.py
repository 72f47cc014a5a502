from __future__ import annotations

from typing import Optional, Sequence

from ..access.scoping import ScopeFilter
from ..access.sql import scope_clause
from ..core.enums import ProjectPriority, ProjectStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Project, ProjectDraft
from .repository import ProjectRepository

_SELECT = """
    SELECT p.project_id, p.name, p.description, p.client_name, p.manager_id, p.start_date, p.end_date,
           p.last_date, p.status, p.priority, p.budget, p.created_at,
           (SELECT GROUP_CONCAT(pt.user_id ORDER BY pt.user_id)
              FROM project_team pt WHERE pt.project_id = p.project_id) AS team_ids
    FROM projects p
"""


def _row_to_project(r: dict) -> Project:
    raw_ids = r.get("team_ids") or ""
    if isinstance(raw_ids, (bytes, bytearray)):
        raw_ids = raw_ids.decode()
    budget = r.get("budget")

    return Project(
        project_id=int(r["project_id"]),
        name=r["name"],
        description=r["description"],
        client_name=r["client_name"],
        manager_id=int(r["manager_id"]),
        team=tuple(int(x) for x in str(raw_ids).split(",") if x),
        start_date=r["start_date"],
        end_date=r["end_date"],
        last_date=r.get("last_date"),
        status=ProjectStatus(r["status"]),
        priority=ProjectPriority(r["priority"]),
        budget=float(budget) if budget is not None else None,
        created_at=r.get("created_at"),
    )


def _values(d: ProjectDraft) -> tuple:
    return (
        d.name,
        d.description,
        d.client_name,
        int(d.manager_id),
        d.start_date,
        d.end_date,
        d.last_date,
        d.status.value,
        d.priority.value,
        d.budget,
    )


class MySQLProjectRepository(ProjectRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _insert_team(cur, project_id: int, user_ids) -> None:
        if not user_ids:
            return
        cur.executemany(
            "INSERT INTO project_team(project_id, user_id) VALUES(%s,%s)",
            [(int(project_id), int(u)) for u in user_ids],
        )

    def create(self, draft: ProjectDraft) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO projects(name, description, client_name, manager_id, start_date, end_date,
                                     last_date, status, priority, budget)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                _values(draft),
            )
            project_id = int(cur.lastrowid)
            self._insert_team(cur, project_id, draft.team)
            return project_id

    def get_by_id(self, project_id: int, *, scope: ScopeFilter) -> Optional[Project]:
        clause, params = scope_clause(scope, "p")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE p.project_id=%s AND {clause}", (int(project_id), *params))
            row = fetchone(cur)
            return _row_to_project(row) if row else None

    def find(self, *, scope: ScopeFilter, status: Optional[ProjectStatus] = None) -> Sequence[Project]:
        clause, params = scope_clause(scope, "p")
        sql = f"{_SELECT} WHERE {clause}"
        args = list(params)
        if status:
            sql += " AND p.status=%s"
            args.append(status.value)
        sql += " ORDER BY p.created_at DESC, p.project_id DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(args))
            return [_row_to_project(r) for r in fetchall(cur)]

    def replace(self, *, project_id: int, draft: ProjectDraft) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT project_id FROM projects WHERE project_id=%s FOR UPDATE", (int(project_id),))
            if not fetchone(cur):
                return False
            cur.execute(
                """
                UPDATE projects
                SET name=%s, description=%s, client_name=%s, manager_id=%s, start_date=%s, end_date=%s,
                    last_date=%s, status=%s, priority=%s, budget=%s
                WHERE project_id=%s
                """,
                (*_values(draft), int(project_id)),
            )
            cur.execute("DELETE FROM project_team WHERE project_id=%s", (int(project_id),))
            self._insert_team(cur, project_id, draft.team)
            return True

    def delete(self, project_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM projects WHERE project_id=%s", (int(project_id),))
            return cur.rowcount > 0

    def count_by_status(self, *, scope: ScopeFilter) -> dict[ProjectStatus, int]:
        clause, params = scope_clause(scope, "p")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT p.status, COUNT(*) AS n FROM projects p WHERE {clause} GROUP BY p.status",
                tuple(params),
            )
            return {ProjectStatus(r["status"]): int(r["n"]) for r in fetchall(cur)}

from __future__ import annotations

from typing import Optional, Sequence

from ..access.scoping import ScopeFilter
from ..access.sql import scope_clause
from ..core.enums import TaskStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Evaluation, NewTask, Submission, Task, TaskChanges
from .repository import TaskRepository

_SELECT = """
    SELECT t.task_id, t.title, t.description, t.assigned_by, t.due_date, t.status, t.created_at,
           t.submitted_at, t.submission_description, t.project_url, t.submitted_by,
           t.rating, t.feedback, t.evaluated_at, t.evaluated_by,
           (SELECT GROUP_CONCAT(ta.user_id ORDER BY ta.user_id)
              FROM task_assignees ta WHERE ta.task_id = t.task_id) AS assignee_ids
    FROM tasks t
"""

_OPEN = (TaskStatus.PENDING.value, TaskStatus.IN_PROGRESS.value)


def _row_to_task(r: dict) -> Task:
    submission = None
    if r.get("submitted_at") is not None:
        submission = Submission(
            submitted_at=r["submitted_at"],
            description=r.get("submission_description") or "",
            project_url=r.get("project_url") or "",
            submitted_by=int(r["submitted_by"]),
        )

    evaluation = None
    if r.get("evaluated_at") is not None:
        evaluation = Evaluation(
            rating=float(r["rating"]),
            feedback=r.get("feedback") or "",
            evaluated_at=r["evaluated_at"],
            evaluated_by=int(r["evaluated_by"]),
        )

    raw_ids = r.get("assignee_ids") or ""
    if isinstance(raw_ids, (bytes, bytearray)):
        raw_ids = raw_ids.decode()

    return Task(
        task_id=int(r["task_id"]),
        title=r["title"],
        description=r["description"],
        assigned_to=tuple(int(x) for x in str(raw_ids).split(",") if x),
        assigned_by=int(r["assigned_by"]),
        due_date=r["due_date"],
        status=TaskStatus(r["status"]),
        submission=submission,
        evaluation=evaluation,
        created_at=r.get("created_at"),
    )


class MySQLTaskRepository(TaskRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _insert_assignees(cur, task_id: int, user_ids) -> None:
        cur.executemany(
            "INSERT INTO task_assignees(task_id, user_id) VALUES(%s,%s)",
            [(int(task_id), int(u)) for u in user_ids],
        )

    def create(self, task: NewTask) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO tasks(title, description, assigned_by, due_date, status)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (task.title, task.description, int(task.assigned_by), task.due_date, TaskStatus.PENDING.value),
            )
            task_id = int(cur.lastrowid)
            self._insert_assignees(cur, task_id, task.assigned_to)
            return task_id

    def get_by_id(self, task_id: int, *, scope: ScopeFilter) -> Optional[Task]:
        clause, params = scope_clause(scope, "t")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE t.task_id=%s AND {clause}", (int(task_id), *params))
            row = fetchone(cur)
            return _row_to_task(row) if row else None

    def _where(self, scope: ScopeFilter, status: Optional[TaskStatus]) -> tuple[str, list]:
        clause, params = scope_clause(scope, "t")
        where, args = [clause], list(params)
        if status:
            where.append("t.status=%s")
            args.append(status.value)
        return " AND ".join(where), args

    def find(
        self,
        *,
        scope: ScopeFilter,
        status: Optional[TaskStatus] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[Task]:
        where, args = self._where(scope, status)
        sql = f"{_SELECT} WHERE {where} ORDER BY t.created_at DESC, t.task_id DESC"
        if limit is not None:
            sql += " LIMIT %s OFFSET %s"
            args += [int(limit), int(offset)]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(args))
            return [_row_to_task(r) for r in fetchall(cur)]

    def count(self, *, scope: ScopeFilter, status: Optional[TaskStatus] = None) -> int:
        where, args = self._where(scope, status)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM tasks t WHERE {where}", tuple(args))
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def record_submission(self, *, task_id: int, submission: Submission) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE tasks
                SET status=%s, submitted_at=%s, submission_description=%s, project_url=%s, submitted_by=%s
                WHERE task_id=%s AND status IN (%s,%s)
                """,
                (
                    TaskStatus.COMPLETED.value,
                    submission.submitted_at,
                    submission.description,
                    submission.project_url,
                    int(submission.submitted_by),
                    int(task_id),
                    *_OPEN,
                ),
            )
            return cur.rowcount > 0

    def record_evaluation(self, *, task_id: int, evaluation: Evaluation) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE tasks
                SET status=%s, rating=%s, feedback=%s, evaluated_at=%s, evaluated_by=%s
                WHERE task_id=%s AND status=%s
                """,
                (
                    TaskStatus.EVALUATED.value,
                    evaluation.rating,
                    evaluation.feedback,
                    evaluation.evaluated_at,
                    int(evaluation.evaluated_by),
                    int(task_id),
                    TaskStatus.COMPLETED.value,
                ),
            )
            return cur.rowcount > 0

    def update(self, *, task_id: int, changes: TaskChanges) -> bool:
        columns = {
            "title": changes.title,
            "description": changes.description,
            "due_date": changes.due_date,
            "status": changes.status.value if changes.status else None,
        }
        sets = [(col, val) for col, val in columns.items() if val is not None]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT task_id, status FROM tasks WHERE task_id=%s FOR UPDATE", (int(task_id),))
            row = fetchone(cur)
            if not row:
                return False
            if changes.status is not None and row["status"] not in _OPEN:
                return False
            if sets:
                where = "task_id=%s"
                args = [val for _, val in sets] + [int(task_id)]
                if changes.status is not None:
                    where += " AND status IN (%s,%s)"
                    args += list(_OPEN)
                cur.execute(
                    f"UPDATE tasks SET {', '.join(f'{col}=%s' for col, _ in sets)} WHERE {where}",
                    tuple(args),
                )
            if changes.assigned_to is not None:
                cur.execute("DELETE FROM task_assignees WHERE task_id=%s", (int(task_id),))
                self._insert_assignees(cur, task_id, changes.assigned_to)
            return True

    def delete(self, task_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM tasks WHERE task_id=%s", (int(task_id),))
            return cur.rowcount > 0

    def count_by_status(self, *, scope: ScopeFilter) -> dict[TaskStatus, int]:
        clause, params = scope_clause(scope, "t")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT t.status, COUNT(*) AS n FROM tasks t WHERE {clause} GROUP BY t.status",
                tuple(params),
            )
            return {TaskStatus(r["status"]): int(r["n"]) for r in fetchall(cur)}

    def count_sole_assignments(self, *, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS n
                FROM task_assignees ta
                WHERE ta.user_id=%s
                  AND NOT EXISTS (
                      SELECT 1 FROM task_assignees o
                      WHERE o.task_id = ta.task_id AND o.user_id <> ta.user_id
                  )
                """,
                (int(user_id),),
            )
            row = fetchone(cur)
            return int(row["n"]) if row else 0

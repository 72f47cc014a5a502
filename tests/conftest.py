from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from itertools import count
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from src.workforce_portal.workforce_portal.container import wire_services
from src.workforce_portal.workforce_portal.access.scoping import ScopeFilter
from src.workforce_portal.workforce_portal.core.constants import DEFAULT_PAGE_SIZE
from src.workforce_portal.workforce_portal.core.enums import LeaveStatus, Resource, Role, TaskStatus
from src.workforce_portal.workforce_portal.core.exceptions import ConflictError
from src.workforce_portal.workforce_portal.attendance.model import AttendanceRecord
from src.workforce_portal.workforce_portal.leaves.model import Leave, LeaveFilters
from src.workforce_portal.workforce_portal.projects.model import Project
from src.workforce_portal.workforce_portal.tasks.model import Task
from src.workforce_portal.workforce_portal.users.model import (
    AdminProfile,
    ClientProfile,
    NewUser,
    Principal,
    User,
    UserChanges,
)
from src.workforce_portal.workforce_portal.users.tokens import TokenCodec

FIXED_NOW = datetime(2024, 4, 1, 12, 0, 0)
TEST_SECRET = "test-jwt-secret"


def scope_matches(scope: ScopeFilter, record) -> bool:
    """In-memory counterpart of ``access.sql.scope_clause``."""

    if scope.unrestricted:
        return True
    if scope.resource == Resource.PROJECT:
        return scope.owner_id in record.team
    if scope.resource == Resource.TASK:
        return scope.owner_id in record.assigned_to
    if scope.resource == Resource.LEAVE:
        return record.employee_id == scope.owner_id
    return record.user_id == scope.owner_id


def leave_matches(filters: LeaveFilters, leave: Leave) -> bool:
    return (
        (not filters.status or leave.status == filters.status)
        and (not filters.leave_type or leave.leave_type == filters.leave_type)
        and (not filters.department or leave.employee_department == filters.department)
        and (filters.employee_id is None or leave.employee_id == filters.employee_id)
        and (not filters.start_from or leave.start_date >= filters.start_from)
        and (not filters.start_to or leave.start_date <= filters.start_to)
    )


class InMemoryUsers:
    def __init__(self):
        self._users: dict[int, User] = {}
        self._ids = count(1)

    def add(self, *, name: str, email: str, password: str, role: Role, department: Optional[str] = None) -> User:
        profile = AdminProfile(permissions=("read", "manage_users")) if role == Role.ADMIN else ClientProfile()
        user_id = self.create_user(
            NewUser(
                name=name,
                email=email,
                password_hash=generate_password_hash(password),
                role=role,
                department=department,
                profile=profile,
            )
        )
        return self._users[user_id]

    def get_by_id(self, user_id):
        return self._users.get(int(user_id))

    def get_by_email(self, email):
        return next((u for u in self._users.values() if u.email == email), None)

    def existing_ids(self, user_ids):
        return {int(u) for u in user_ids if int(u) in self._users}

    def create_user(self, user: NewUser):
        if self.get_by_email(user.email):
            return None
        user_id = next(self._ids)
        self._users[user_id] = User(
            user_id=user_id,
            name=user.name,
            email=user.email,
            password_hash=user.password_hash,
            role=user.role,
            department=user.department,
            mobile=user.mobile,
            created_at=FIXED_NOW,
            profile=user.profile,
        )
        return user_id

    def update_account(self, *, user_id, changes: UserChanges):
        user = self._users.get(int(user_id))
        if not user:
            return False
        if changes.email and any(u.email == changes.email and u.user_id != user.user_id for u in self._users.values()):
            raise ConflictError("Email already in use", code="DuplicateEmail")
        fields = {
            k: getattr(changes, k)
            for k in ("name", "email", "role", "department", "mobile", "profile")
            if getattr(changes, k) is not None
        }
        self._users[user.user_id] = replace(user, **fields)
        return True

    def update_password(self, *, user_id, password_hash):
        user = self._users.get(int(user_id))
        if not user:
            return False
        self._users[user.user_id] = replace(user, password_hash=password_hash)
        return True

    def delete_by_id(self, user_id):
        return self._users.pop(int(user_id), None) is not None

    def list_all(self, *, department=None):
        users = [u for u in self._users.values() if not department or u.department == department]
        return sorted(users, key=lambda u: u.name)

    def count(self):
        return len(self._users)


class InMemoryAttendance:
    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.rows: dict[int, AttendanceRecord] = {}
        self._ids = count(1)

    def create(self, record):
        if self.exists_for(user_id=record.user_id, work_date=record.work_date):
            return None
        attendance_id = next(self._ids)
        self.rows[attendance_id] = AttendanceRecord(
            attendance_id=attendance_id,
            user_id=record.user_id,
            work_date=record.work_date,
            status=record.status,
            check_in=record.check_in,
            check_out=record.check_out,
            notes=record.notes,
            recorded_by=record.recorded_by,
            created_at=FIXED_NOW,
            user_name=self._users.get_by_id(record.user_id).name,
        )
        return attendance_id

    def get_by_id(self, attendance_id, *, scope):
        row = self.rows.get(int(attendance_id))
        return row if row and scope_matches(scope, row) else None

    def exists_for(self, *, user_id, work_date):
        return any(r.user_id == user_id and r.work_date == work_date for r in self.rows.values())

    def find(self, *, scope, user_id=None, start_date=None, end_date=None, limit=None, newest_first=False):
        rows = [
            r
            for r in self.rows.values()
            if scope_matches(scope, r)
            and (user_id is None or r.user_id == user_id)
            and (start_date is None or r.work_date >= start_date)
            and (end_date is None or r.work_date <= end_date)
        ]
        rows.sort(key=lambda r: (r.work_date, r.attendance_id), reverse=newest_first)
        return rows[:limit] if limit is not None else rows

    def update(self, *, attendance_id, status, check_in, check_out, notes):
        row = self.rows.get(int(attendance_id))
        if not row:
            return False
        self.rows[row.attendance_id] = replace(row, status=status, check_in=check_in, check_out=check_out, notes=notes)
        return True

    def delete(self, attendance_id):
        return self.rows.pop(int(attendance_id), None) is not None

    def count_for_day(self, *, work_date, status):
        return sum(1 for r in self.rows.values() if r.work_date == work_date and r.status == status)


_LEAVE_SORT_ATTRS = {
    "createdAt": "created_at",
    "startDate": "start_date",
    "endDate": "end_date",
    "days": "days",
    "status": "status",
    "type": "leave_type",
}


class InMemoryLeaves:
    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.rows: dict[int, Leave] = {}
        self._ids = count(1)

    def _joined(self, leave: Leave) -> Leave:
        user = self._users.get_by_id(leave.employee_id)
        return replace(
            leave,
            employee_name=user.name if user else None,
            employee_department=user.department if user else None,
        )

    def create(self, leave):
        leave_id = next(self._ids)
        self.rows[leave_id] = Leave(
            leave_id=leave_id,
            employee_id=leave.employee_id,
            leave_type=leave.leave_type,
            start_date=leave.start_date,
            end_date=leave.end_date,
            days=leave.days,
            reason=leave.reason,
            status=LeaveStatus.PENDING,
            created_at=FIXED_NOW.replace(second=leave_id % 60),
        )
        return leave_id

    def get_by_id(self, leave_id, *, scope):
        row = self.rows.get(int(leave_id))
        return self._joined(row) if row and scope_matches(scope, row) else None

    def _select(self, scope, filters):
        return [j for j in (self._joined(r) for r in self.rows.values()) if scope_matches(scope, j) and leave_matches(filters, j)]

    def find(self, *, scope, filters, sort_field="createdAt", descending=True, offset=0, limit=None):
        rows = self._select(scope, filters)
        attr = _LEAVE_SORT_ATTRS[sort_field]
        rows.sort(key=lambda r: (getattr(r, attr), r.leave_id), reverse=descending)
        return rows[offset : offset + limit] if limit is not None else rows[offset:]

    def count(self, *, scope, filters):
        return len(self._select(scope, filters))

    def delete_pending(self, *, leave_id, employee_id):
        row = self.rows.get(int(leave_id))
        if not row or row.employee_id != employee_id or row.status != LeaveStatus.PENDING:
            return False
        del self.rows[row.leave_id]
        return True

    def decide(self, *, leave_id, status, decided_by, decided_at, rejection_reason):
        row = self.rows.get(int(leave_id))
        if not row or row.status != LeaveStatus.PENDING:
            return False
        self.rows[row.leave_id] = replace(
            row,
            status=status,
            approved_by=decided_by,
            approved_at=decided_at,
            rejection_reason=rejection_reason,
        )
        return True

    def count_by_status(self, *, filters):
        out: dict = {}
        for r in self.rows.values():
            j = self._joined(r)
            if leave_matches(filters, j):
                out[j.status] = out.get(j.status, 0) + 1
        return out


class InMemoryTasks:
    def __init__(self):
        self.rows: dict[int, Task] = {}
        self._ids = count(1)

    def create(self, task):
        task_id = next(self._ids)
        self.rows[task_id] = Task(
            task_id=task_id,
            title=task.title,
            description=task.description,
            assigned_to=tuple(task.assigned_to),
            assigned_by=task.assigned_by,
            due_date=task.due_date,
            created_at=FIXED_NOW.replace(second=task_id % 60),
        )
        return task_id

    def get_by_id(self, task_id, *, scope):
        row = self.rows.get(int(task_id))
        return row if row and scope_matches(scope, row) else None

    def _select(self, scope, status):
        return [r for r in self.rows.values() if scope_matches(scope, r) and (status is None or r.status == status)]

    def find(self, *, scope, status=None, offset=0, limit=None):
        rows = sorted(self._select(scope, status), key=lambda r: (r.created_at, r.task_id), reverse=True)
        return rows[offset : offset + limit] if limit is not None else rows[offset:]

    def count(self, *, scope, status=None):
        return len(self._select(scope, status))

    def record_submission(self, *, task_id, submission):
        row = self.rows.get(int(task_id))
        if not row or not row.status.is_open:
            return False
        self.rows[row.task_id] = replace(row, status=TaskStatus.COMPLETED, submission=submission)
        return True

    def record_evaluation(self, *, task_id, evaluation):
        row = self.rows.get(int(task_id))
        if not row or row.status != TaskStatus.COMPLETED:
            return False
        self.rows[row.task_id] = replace(row, status=TaskStatus.EVALUATED, evaluation=evaluation)
        return True

    def update(self, *, task_id, changes):
        row = self.rows.get(int(task_id))
        if not row:
            return False
        if changes.status is not None and not row.status.is_open:
            return False
        fields = {
            k: getattr(changes, k)
            for k in ("title", "description", "assigned_to", "due_date", "status")
            if getattr(changes, k) is not None
        }
        self.rows[row.task_id] = replace(row, **fields)
        return True

    def delete(self, task_id):
        return self.rows.pop(int(task_id), None) is not None

    def count_by_status(self, *, scope):
        out: dict = {}
        for r in self.rows.values():
            if scope_matches(scope, r):
                out[r.status] = out.get(r.status, 0) + 1
        return out


    def count_sole_assignments(self, *, user_id):
        return sum(1 for r in self.rows.values() if r.assigned_to == (user_id,))


class InMemoryProjects:
    def __init__(self):
        self.rows: dict[int, Project] = {}
        self._ids = count(1)

    def create(self, draft):
        project_id = next(self._ids)
        self.rows[project_id] = Project(project_id=project_id, created_at=FIXED_NOW, **vars(draft))
        return project_id

    def get_by_id(self, project_id, *, scope):
        row = self.rows.get(int(project_id))
        return row if row and scope_matches(scope, row) else None

    def find(self, *, scope, status=None):
        return [r for r in self.rows.values() if scope_matches(scope, r) and (status is None or r.status == status)]

    def replace(self, *, project_id, draft):
        row = self.rows.get(int(project_id))
        if not row:
            return False
        self.rows[row.project_id] = replace(row, **vars(draft))
        return True

    def delete(self, project_id):
        return self.rows.pop(int(project_id), None) is not None

    def count_by_status(self, *, scope):
        out: dict = {}
        for r in self.rows.values():
            if scope_matches(scope, r):
                out[r.status] = out.get(r.status, 0) + 1
        return out


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def users() -> InMemoryUsers:
    repo = InMemoryUsers()
    repo.add(name="Admin", email="admin@example.com", password="admin123", role=Role.ADMIN, department="Management")
    repo.add(name="Alice", email="alice@example.com", password="alice123", role=Role.CLIENT, department="Engineering")
    repo.add(name="Bob", email="bob@example.com", password="bob12345", role=Role.CLIENT, department="Sales")
    return repo


@pytest.fixture
def admin(users) -> Principal:
    return Principal.from_user(users.get_by_email("admin@example.com"))


@pytest.fixture
def alice(users) -> Principal:
    return Principal.from_user(users.get_by_email("alice@example.com"))


@pytest.fixture
def bob(users) -> Principal:
    return Principal.from_user(users.get_by_email("bob@example.com"))


@pytest.fixture
def tokens() -> TokenCodec:
    return TokenCodec(TEST_SECRET, expires_minutes=60)


@pytest.fixture
def page_size() -> int:
    return DEFAULT_PAGE_SIZE


@pytest.fixture
def container(users, tokens, fixed_now, page_size):
    return wire_services(
        users_repo=users,
        attendance_repo=InMemoryAttendance(users),
        leaves_repo=InMemoryLeaves(users),
        tasks_repo=InMemoryTasks(),
        projects_repo=InMemoryProjects(),
        tokens=tokens,
        page_size=page_size,
        clock=lambda: fixed_now,
    )


@pytest.fixture
def attendance_service(container):
    return container.attendance_service


@pytest.fixture
def leave_service(container):
    return container.leave_service


@pytest.fixture
def task_service(container):
    return container.task_service


@pytest.fixture
def project_service(container):
    return container.project_service


@pytest.fixture
def dashboard_service(container):
    return container.dashboard_service


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    from src.workforce_portal.workforce_portal.main import create_app

    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_header(tokens):
    def _header(principal: Principal) -> dict:
        return {"Authorization": f"Bearer {tokens.issue(user_id=principal.user_id, role=principal.role)}"}

    return _header

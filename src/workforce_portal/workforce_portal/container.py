from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_PAGE_SIZE, DEFAULT_TOKEN_MINUTES
from .database.connection import DBConfig, DatabaseConnection
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.repository import LeaveRepository
from .leaves.service import LeaveService
from .projects.mysql_project_repository import MySQLProjectRepository
from .projects.repository import ProjectRepository
from .projects.service import ProjectService
from .reports.service import DashboardService
from .tasks.mysql_task_repository import MySQLTaskRepository
from .tasks.repository import TaskRepository
from .tasks.service import TaskService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService
from .users.tokens import TokenCodec


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    attendance_repo: AttendanceRepository
    leaves_repo: LeaveRepository
    tasks_repo: TaskRepository
    projects_repo: ProjectRepository

    auth_service: AuthService
    user_service: UserService
    attendance_service: AttendanceService
    leave_service: LeaveService
    task_service: TaskService
    project_service: ProjectService
    dashboard_service: DashboardService


def wire_services(
    *,
    users_repo: UserRepository,
    attendance_repo: AttendanceRepository,
    leaves_repo: LeaveRepository,
    tasks_repo: TaskRepository,
    projects_repo: ProjectRepository,
    tokens: TokenCodec,
    conn: Optional[DatabaseConnection] = None,
    page_size: int = DEFAULT_PAGE_SIZE,
    **service_kwargs: Any,
) -> Container:
    """Assemble services over any set of repositories (MySQL or in-memory)."""

    auth_service = AuthService(users_repo, tokens)
    user_service = UserService(users_repo, tasks_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        users_repo,
        strategy_factory=AttendanceStrategyFactory(),
        **service_kwargs,
    )
    leave_service = LeaveService(leaves_repo, page_size=page_size, **service_kwargs)
    task_service = TaskService(tasks_repo, users_repo, page_size=page_size, **service_kwargs)
    project_service = ProjectService(projects_repo, users_repo)
    dashboard_service = DashboardService(
        users=users_repo,
        projects=project_service,
        tasks=task_service,
        leaves=leave_service,
        attendance=attendance_service,
        **service_kwargs,
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        leaves_repo=leaves_repo,
        tasks_repo=tasks_repo,
        projects_repo=projects_repo,
        auth_service=auth_service,
        user_service=user_service,
        attendance_service=attendance_service,
        leave_service=leave_service,
        task_service=task_service,
        project_service=project_service,
        dashboard_service=dashboard_service,
    )


def build_container(
    *,
    db_config: dict,
    jwt_secret: str,
    jwt_algorithm: str = "HS256",
    jwt_expire_minutes: int = DEFAULT_TOKEN_MINUTES,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
        pool_size=int(db_config.get("pool_size", 5)),
    )
    conn = DatabaseConnection.get_instance(config)

    return wire_services(
        users_repo=MySQLUserRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        leaves_repo=MySQLLeaveRepository(conn),
        tasks_repo=MySQLTaskRepository(conn),
        projects_repo=MySQLProjectRepository(conn),
        tokens=TokenCodec(jwt_secret, algorithm=jwt_algorithm, expires_minutes=jwt_expire_minutes),
        conn=conn,
        page_size=page_size,
    )

from __future__ import annotations

import logging
import math
from typing import Any, Optional, Sequence

from ..access.scoping import UNRESTRICTED, require_admin, scope_for
from ..common.datetime_utils import to_calendar_day
from ..common.validators import parse_enum, parse_id_list, parse_int, require_non_empty
from ..core.enums import ProjectPriority, ProjectStatus, Resource
from ..core.exceptions import NotFoundError, ValidationError
from ..users.model import Principal
from ..users.repository import UserRepository
from .model import Project, ProjectDraft
from .repository import ProjectRepository

logger = logging.getLogger(__name__)

FIELDS = (
    "name",
    "description",
    "client_name",
    "manager_id",
    "team",
    "start_date",
    "end_date",
    "last_date",
    "status",
    "priority",
    "budget",
)


def _parse_budget(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError("Budget must be a number")
    try:
        budget = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Budget must be a number")
    if math.isnan(budget) or budget < 0:
        raise ValidationError("Budget must be a non-negative number")
    return budget


class ProjectService:
    """Admin-managed projects; clients see the projects whose team they are on."""

    def __init__(self, projects: ProjectRepository, users: UserRepository):
        self._projects = projects
        self._users = users

    def _draft(self, values: dict) -> ProjectDraft:
        manager_id = parse_int(values.get("manager_id"), "Manager", minimum=1)
        if manager_id is None:
            raise ValidationError("Manager is required")
        team = parse_id_list(values.get("team") or [], "Team")

        start = to_calendar_day(values.get("start_date"), "Start date")
        end = to_calendar_day(values.get("end_date"), "End date")
        last = to_calendar_day(values["last_date"], "Last date") if values.get("last_date") else None
        if end < start:
            raise ValidationError("End date must be on or after start date")
        if last is not None and last < start:
            raise ValidationError("Last date must be on or after start date")

        known = set(self._users.existing_ids((manager_id, *team)))
        if manager_id not in known:
            raise ValidationError("Manager not found")
        if any(u not in known for u in team):
            raise ValidationError("One or more team members not found")

        return ProjectDraft(
            name=require_non_empty(values.get("name"), "Project name"),
            description=require_non_empty(values.get("description"), "Project description"),
            client_name=require_non_empty(values.get("client_name"), "Client name"),
            manager_id=manager_id,
            team=team,
            start_date=start,
            end_date=end,
            last_date=last,
            status=parse_enum(ProjectStatus, values.get("status") or ProjectStatus.PLANNING.value, "Status"),
            priority=parse_enum(ProjectPriority, values.get("priority") or ProjectPriority.MEDIUM.value, "Priority"),
            budget=_parse_budget(values.get("budget")),
        )

    def create_project(self, *, principal: Principal, **fields: Any) -> Project:
        require_admin(principal)
        draft = self._draft({k: fields.get(k) for k in FIELDS})
        project_id = self._projects.create(draft)
        logger.info("Admin %s created project %s", principal.user_id, project_id)
        return self._get(project_id)

    def update_project(self, *, principal: Principal, project_id: int, **changes: Any) -> Project:
        """Partial update: unspecified fields keep their value, invariants hold on the result."""

        require_admin(principal)
        current = self._get(project_id)

        values = {k: getattr(current.to_draft(), k) for k in FIELDS}
        values["status"] = current.status.value
        values["priority"] = current.priority.value
        values.update({k: v for k, v in changes.items() if k in FIELDS})

        draft = self._draft(values)
        if not self._projects.replace(project_id=project_id, draft=draft):
            raise NotFoundError("Project not found")
        logger.info("Admin %s updated project %s", principal.user_id, project_id)
        return self._get(project_id)

    def delete_project(self, *, principal: Principal, project_id: int) -> None:
        require_admin(principal)
        if not self._projects.delete(project_id):
            raise NotFoundError("Project not found")
        logger.info("Admin %s deleted project %s", principal.user_id, project_id)

    def list_for_principal(self, *, principal: Principal, status: Any = None) -> Sequence[Project]:
        st = parse_enum(ProjectStatus, status, "Status") if status else None
        return self._projects.find(scope=scope_for(principal, Resource.PROJECT), status=st)

    def get_project(self, *, principal: Principal, project_id: int) -> Project:
        project = self._projects.get_by_id(project_id, scope=scope_for(principal, Resource.PROJECT))
        if not project:
            raise NotFoundError("Project not found")
        return project

    def count_by_status(self, *, principal: Principal) -> dict[ProjectStatus, int]:
        return self._projects.count_by_status(scope=scope_for(principal, Resource.PROJECT))

    def _get(self, project_id: int) -> Project:
        project = self._projects.get_by_id(project_id, scope=UNRESTRICTED[Resource.PROJECT])
        if not project:
            raise NotFoundError("Project not found")
        return project

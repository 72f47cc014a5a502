from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import ProjectPriority, ProjectStatus


@dataclass(frozen=True)
class ProjectDraft:
    """Validated project fields, used for both create and full update."""

    name: str
    description: str
    client_name: str
    manager_id: int
    team: tuple[int, ...]
    start_date: date
    end_date: date
    last_date: Optional[date] = None
    status: ProjectStatus = ProjectStatus.PLANNING
    priority: ProjectPriority = ProjectPriority.MEDIUM
    budget: Optional[float] = None


@dataclass(frozen=True)
class Project:
    project_id: int
    name: str
    description: str
    client_name: str
    manager_id: int
    team: tuple[int, ...]
    start_date: date
    end_date: date
    last_date: Optional[date] = None
    status: ProjectStatus = ProjectStatus.PLANNING
    priority: ProjectPriority = ProjectPriority.MEDIUM
    budget: Optional[float] = None
    created_at: Optional[datetime] = None

    def to_draft(self) -> ProjectDraft:
        return ProjectDraft(
            name=self.name,
            description=self.description,
            client_name=self.client_name,
            manager_id=self.manager_id,
            team=self.team,
            start_date=self.start_date,
            end_date=self.end_date,
            last_date=self.last_date,
            status=self.status,
            priority=self.priority,
            budget=self.budget,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.project_id,
            "name": self.name,
            "description": self.description,
            "client": self.client_name,
            "manager": self.manager_id,
            "team": list(self.team),
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "lastDate": self.last_date.isoformat() if self.last_date else None,
            "status": self.status.value,
            "priority": self.priority.value,
            "budget": self.budget,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

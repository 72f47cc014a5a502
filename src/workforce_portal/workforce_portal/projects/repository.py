from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..access.scoping import ScopeFilter
from ..core.enums import ProjectStatus
from .model import Project, ProjectDraft


class ProjectRepository(Protocol):
    def create(self, draft: ProjectDraft) -> int:
        raise NotImplementedError

    def get_by_id(self, project_id: int, *, scope: ScopeFilter) -> Optional[Project]:
        raise NotImplementedError

    def find(self, *, scope: ScopeFilter, status: Optional[ProjectStatus] = None) -> Sequence[Project]:
        raise NotImplementedError

    def replace(self, *, project_id: int, draft: ProjectDraft) -> bool:
        raise NotImplementedError

    def delete(self, project_id: int) -> bool:
        raise NotImplementedError

    def count_by_status(self, *, scope: ScopeFilter) -> dict[ProjectStatus, int]:
        raise NotImplementedError

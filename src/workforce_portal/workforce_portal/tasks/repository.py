from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..access.scoping import ScopeFilter
from ..core.enums import TaskStatus
from .model import Evaluation, NewTask, Submission, Task, TaskChanges


class TaskRepository(Protocol):
    def create(self, task: NewTask) -> int:
        """Insert the task and its assignees atomically."""

        raise NotImplementedError

    def get_by_id(self, task_id: int, *, scope: ScopeFilter) -> Optional[Task]:
        raise NotImplementedError

    def find(
        self,
        *,
        scope: ScopeFilter,
        status: Optional[TaskStatus] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[Task]:
        raise NotImplementedError

    def count(self, *, scope: ScopeFilter, status: Optional[TaskStatus] = None) -> int:
        raise NotImplementedError

    def record_submission(self, *, task_id: int, submission: Submission) -> bool:
        """Mark an open task completed; False when it is no longer open."""

        raise NotImplementedError

    def record_evaluation(self, *, task_id: int, evaluation: Evaluation) -> bool:
        """Mark a completed task evaluated; False when it is not completed."""

        raise NotImplementedError

    def update(self, *, task_id: int, changes: TaskChanges) -> bool:
        """Apply admin edits; False when the task is missing, or open no more while ``changes.status`` is set."""

        raise NotImplementedError

    def delete(self, task_id: int) -> bool:
        raise NotImplementedError

    def count_by_status(self, *, scope: ScopeFilter) -> dict[TaskStatus, int]:
        raise NotImplementedError

    def count_sole_assignments(self, *, user_id: int) -> int:
        """Tasks whose only assignee is ``user_id``."""

        raise NotImplementedError

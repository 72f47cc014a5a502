from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from ..access.scoping import UNRESTRICTED, own_scope, require_admin, scope_for
from ..common.datetime_utils import now_local, to_calendar_day
from ..common.pagination import Page, parse_page
from ..common.validators import optional_text, parse_enum, parse_id_list, require_non_empty
from ..core.constants import DEFAULT_PAGE_SIZE, MAX_RATING, MIN_RATING
from ..core.enums import Resource, TaskStatus
from ..core.exceptions import AuthorizationError, NotFoundError, StateError, ValidationError
from ..users.model import Principal
from ..users.repository import UserRepository
from .model import Evaluation, NewTask, Submission, Task, TaskChanges
from .repository import TaskRepository

logger = logging.getLogger(__name__)


def parse_rating(value: Any) -> float:
    """Ratings are numbers in [MIN_RATING, MAX_RATING]; 0 is a valid rating."""

    if isinstance(value, bool) or value is None or value == "":
        raise ValidationError("Valid rating (0-5) is required", code="InvalidRating")
    try:
        rating = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Valid rating (0-5) is required", code="InvalidRating")
    if math.isnan(rating) or not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError("Valid rating (0-5) is required", code="InvalidRating")
    return rating


class TaskService:
    """Task workflow: open (pending / in_progress) -> completed -> evaluated."""

    def __init__(
        self,
        tasks: TaskRepository,
        users: UserRepository,
        *,
        clock: Callable[[], datetime] = now_local,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self._tasks = tasks
        self._users = users
        self._clock = clock
        self._page_size = page_size

    def _require_assignees(self, raw: Any) -> tuple[int, ...]:
        if raw is None or raw == [] or raw == "":
            raise ValidationError("At least one assignee is required")
        ids = parse_id_list(raw, "Assigned to")
        if not ids:
            raise ValidationError("At least one assignee is required")

        missing = sorted(set(ids) - set(self._users.existing_ids(ids)))
        if missing:
            raise ValidationError(f"Unknown users: {', '.join(str(m) for m in missing)}")
        return ids

    def create_task(
        self,
        *,
        principal: Principal,
        title: Any,
        description: Any,
        assigned_to: Any,
        due_date: Any,
    ) -> Task:
        require_admin(principal)

        title = require_non_empty(title, "Title")
        description = require_non_empty(description, "Description")
        assignees = self._require_assignees(assigned_to)
        due = to_calendar_day(due_date, "Due date")

        task_id = self._tasks.create(
            NewTask(
                title=title,
                description=description,
                assigned_to=assignees,
                assigned_by=principal.user_id,
                due_date=due,
            )
        )
        logger.info("Admin %s created task %s for %s", principal.user_id, task_id, list(assignees))
        return self._get(task_id)

    def submit_task(
        self,
        *,
        principal: Principal,
        task_id: int,
        description: Any,
        project_url: Any = None,
    ) -> Task:
        task = self._tasks.get_by_id(task_id, scope=UNRESTRICTED[Resource.TASK])
        if not task:
            raise NotFoundError("Task not found")
        if principal.user_id not in task.assigned_to:
            raise AuthorizationError("You are not assigned to this task")
        text = require_non_empty(description, "Submission description")

        ok = self._tasks.record_submission(
            task_id=task.task_id,
            submission=Submission(
                submitted_at=self._clock(),
                description=text,
                project_url=optional_text(project_url) or "",
                submitted_by=principal.user_id,
            ),
        )
        if not ok:
            raise StateError("Task has already been submitted", code="AlreadySubmitted")

        logger.info("User %s submitted task %s", principal.user_id, task.task_id)
        return self._get(task.task_id)

    def evaluate_task(self, *, principal: Principal, task_id: int, rating: Any, feedback: Any = None) -> Task:
        require_admin(principal)
        score = parse_rating(rating)

        ok = self._tasks.record_evaluation(
            task_id=task_id,
            evaluation=Evaluation(
                rating=score,
                feedback=optional_text(feedback) or "",
                evaluated_at=self._clock(),
                evaluated_by=principal.user_id,
            ),
        )
        if not ok:
            # distinguish a missing task from a wrong state only after the write lost
            self._get(task_id)
            raise StateError("Task must be completed before evaluation", code="NotCompleted")

        logger.info("Admin %s evaluated task %s with %s", principal.user_id, task_id, score)
        return self._get(task_id)

    def update_task(
        self,
        *,
        principal: Principal,
        task_id: int,
        title: Any = None,
        description: Any = None,
        assigned_to: Any = None,
        due_date: Any = None,
        status: Any = None,
    ) -> Task:
        require_admin(principal)
        current = self._get(task_id)

        new_status = parse_enum(TaskStatus, status, "Status") if status is not None else None
        if new_status is not None and not new_status.is_open:
            # completed / evaluated carry a submission / evaluation record
            raise StateError(
                f"Task can only become {new_status.value} through submission or evaluation",
                code="InvalidTransition",
            )
        if new_status is not None and new_status.rank < current.status.rank:
            raise StateError(
                f"Task status cannot move back from {current.status.value} to {new_status.value}",
                code="InvalidTransition",
            )

        changes = TaskChanges(
            title=require_non_empty(title, "Title") if title is not None else None,
            description=require_non_empty(description, "Description") if description is not None else None,
            assigned_to=self._require_assignees(assigned_to) if assigned_to is not None else None,
            due_date=to_calendar_day(due_date, "Due date") if due_date is not None else None,
            status=new_status,
        )
        if changes.empty:
            return current

        if not self._tasks.update(task_id=task_id, changes=changes):
            self._get(task_id)
            raise StateError("Task is no longer open", code="InvalidTransition")
        logger.info("Admin %s updated task %s", principal.user_id, task_id)
        return self._get(task_id)

    def delete_task(self, *, principal: Principal, task_id: int) -> None:
        require_admin(principal)
        if not self._tasks.delete(task_id):
            raise NotFoundError("Task not found")
        logger.info("Admin %s deleted task %s", principal.user_id, task_id)

    def get_my_tasks(self, *, principal: Principal, status: Any = None) -> Sequence[Task]:
        st = parse_enum(TaskStatus, status, "Status") if status else None
        # admins see their own assignments here too, not everything
        return self._tasks.find(scope=own_scope(principal, Resource.TASK), status=st)

    def get_all_tasks(
        self,
        *,
        principal: Principal,
        page: Any = None,
        limit: Any = None,
        status: Any = None,
    ) -> Page[Task]:
        require_admin(principal)
        st = parse_enum(TaskStatus, status, "Status") if status else None
        paging = parse_page(page, limit, default_limit=self._page_size)
        scope = scope_for(principal, Resource.TASK)

        items = self._tasks.find(scope=scope, status=st, offset=paging.offset, limit=paging.limit)
        total = self._tasks.count(scope=scope, status=st)
        return Page(items=items, total=total, page=paging.page, limit=paging.limit)

    def get_task(self, *, principal: Principal, task_id: int) -> Task:
        task = self._tasks.get_by_id(task_id, scope=scope_for(principal, Resource.TASK))
        if not task:
            raise NotFoundError("Task not found")
        return task

    def count_by_status(self, *, principal: Optional[Principal] = None) -> dict[TaskStatus, int]:
        scope = own_scope(principal, Resource.TASK) if principal else UNRESTRICTED[Resource.TASK]
        return self._tasks.count_by_status(scope=scope)

    def _get(self, task_id: int) -> Task:
        task = self._tasks.get_by_id(task_id, scope=UNRESTRICTED[Resource.TASK])
        if not task:
            raise NotFoundError("Task not found")
        return task

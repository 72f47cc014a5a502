from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import TaskStatus


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class Submission:
    submitted_at: datetime
    description: str
    submitted_by: int
    project_url: str = ""

    def to_dict(self) -> dict:
        return {
            "submittedAt": _iso(self.submitted_at),
            "description": self.description,
            "projectUrl": self.project_url,
            "submittedBy": self.submitted_by,
        }


@dataclass(frozen=True)
class Evaluation:
    rating: float
    evaluated_at: datetime
    evaluated_by: int
    feedback: str = ""

    def to_dict(self) -> dict:
        return {
            "rating": self.rating,
            "feedback": self.feedback,
            "evaluatedAt": _iso(self.evaluated_at),
            "evaluatedBy": self.evaluated_by,
        }


@dataclass(frozen=True)
class Task:
    """Domain entity: a unit of work assigned to one or more users.

    ``submission`` is written once by an assignee (open -> completed),
    ``evaluation`` once by an admin (completed -> evaluated).
    """

    task_id: int
    title: str
    description: str
    assigned_to: tuple[int, ...]
    assigned_by: int
    due_date: date
    status: TaskStatus = TaskStatus.PENDING
    submission: Optional[Submission] = None
    evaluation: Optional[Evaluation] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.task_id,
            "title": self.title,
            "description": self.description,
            "assignedTo": list(self.assigned_to),
            "assignedBy": self.assigned_by,
            "dueDate": _iso(self.due_date),
            "status": self.status.value,
            "submission": self.submission.to_dict() if self.submission else None,
            "evaluation": self.evaluation.to_dict() if self.evaluation else None,
            "createdAt": _iso(self.created_at),
        }


@dataclass(frozen=True)
class NewTask:
    title: str
    description: str
    assigned_to: tuple[int, ...]
    assigned_by: int
    due_date: date


@dataclass(frozen=True)
class TaskChanges:
    """Admin edits; None means "leave unchanged"."""

    title: Optional[str] = None
    description: Optional[str] = None
    assigned_to: Optional[tuple[int, ...]] = None
    due_date: Optional[date] = None
    status: Optional[TaskStatus] = None

    @property
    def empty(self) -> bool:
        return all(getattr(self, f) is None for f in ("title", "description", "assigned_to", "due_date", "status"))


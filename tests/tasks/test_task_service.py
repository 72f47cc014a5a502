import pytest

from src.workforce_portal.workforce_portal.core.enums import TaskStatus
from src.workforce_portal.workforce_portal.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    StateError,
    ValidationError,
)
from src.workforce_portal.workforce_portal.tasks.service import parse_rating


def _create(service, admin, assignees, title="Write report"):
    return service.create_task(
        principal=admin,
        title=title,
        description="Quarterly numbers",
        assigned_to=assignees,
        due_date="2024-04-30",
    )


def test_second_submission_is_rejected_and_first_kept(task_service, admin, alice, bob, fixed_now):
    task = _create(task_service, admin, [alice.user_id, bob.user_id])

    done = task_service.submit_task(principal=alice, task_id=task.task_id, description="first draft")
    assert done.status == TaskStatus.COMPLETED
    assert done.submission.submitted_by == alice.user_id
    assert done.submission.submitted_at == fixed_now

    with pytest.raises(StateError) as e:
        task_service.submit_task(principal=bob, task_id=task.task_id, description="second draft")
    assert e.value.code == "AlreadySubmitted"

    current = task_service.get_task(principal=admin, task_id=task.task_id)
    assert current.submission.description == "first draft"
    assert current.submission.submitted_by == alice.user_id


def test_evaluation_requires_completed_task(task_service, admin, alice):
    task = _create(task_service, admin, [alice.user_id])
    with pytest.raises(StateError) as e:
        task_service.evaluate_task(principal=admin, task_id=task.task_id, rating=4)
    assert e.value.code == "NotCompleted"

    task_service.submit_task(principal=alice, task_id=task.task_id, description="done", project_url="http://x")
    evaluated = task_service.evaluate_task(principal=admin, task_id=task.task_id, rating=4, feedback="good")
    assert evaluated.status == TaskStatus.EVALUATED
    assert evaluated.evaluation.rating == 4.0
    assert evaluated.evaluation.evaluated_by == admin.user_id

    with pytest.raises(StateError):
        task_service.evaluate_task(principal=admin, task_id=task.task_id, rating=1)
    assert task_service.get_task(principal=admin, task_id=task.task_id).evaluation.rating == 4.0


def test_rating_zero_is_valid(task_service, admin, alice):
    task = _create(task_service, admin, [alice.user_id])
    task_service.submit_task(principal=alice, task_id=task.task_id, description="done")
    assert task_service.evaluate_task(principal=admin, task_id=task.task_id, rating=0).evaluation.rating == 0.0


@pytest.mark.parametrize("rating", [None, "", -1, 5.5, "abc", True, float("nan")])
def test_invalid_ratings(rating):
    with pytest.raises(ValidationError) as e:
        parse_rating(rating)
    assert e.value.code == "InvalidRating"


def test_evaluating_unknown_task_is_not_found(task_service, admin):
    with pytest.raises(NotFoundError):
        task_service.evaluate_task(principal=admin, task_id=99, rating=3)


def test_non_assignee_cannot_submit(task_service, admin, alice, bob):
    task = _create(task_service, admin, [alice.user_id])
    with pytest.raises(AuthorizationError):
        task_service.submit_task(principal=bob, task_id=task.task_id, description="mine now")


def test_submission_needs_description(task_service, admin, alice):
    task = _create(task_service, admin, [alice.user_id])
    with pytest.raises(ValidationError):
        task_service.submit_task(principal=alice, task_id=task.task_id, description="   ")


def test_create_rejects_unknown_or_missing_assignees(task_service, admin, alice):
    with pytest.raises(ValidationError):
        _create(task_service, admin, [])
    with pytest.raises(ValidationError):
        _create(task_service, admin, [alice.user_id, 404])


def test_duplicate_assignees_are_collapsed(task_service, admin, alice):
    task = _create(task_service, admin, [alice.user_id, alice.user_id])
    assert task.assigned_to == (alice.user_id,)


def test_my_tasks_only_lists_assignments(task_service, admin, alice, bob):
    _create(task_service, admin, [alice.user_id], title="A")
    _create(task_service, admin, [bob.user_id], title="B")

    assert [t.title for t in task_service.get_my_tasks(principal=alice)] == ["A"]
    assert task_service.get_my_tasks(principal=admin) == []
    with pytest.raises(NotFoundError):
        task_service.get_task(principal=alice, task_id=2)


def test_status_cannot_move_backwards(task_service, admin, alice):
    task = _create(task_service, admin, [alice.user_id])
    task_service.submit_task(principal=alice, task_id=task.task_id, description="done")
    with pytest.raises(StateError) as e:
        task_service.update_task(principal=admin, task_id=task.task_id, status="pending")
    assert e.value.code == "InvalidTransition"


def test_update_changes_only_given_fields(task_service, admin, alice):
    task = _create(task_service, admin, [alice.user_id])
    updated = task_service.update_task(principal=admin, task_id=task.task_id, title="Renamed", status="in_progress")
    assert updated.title == "Renamed"
    assert updated.description == task.description
    assert updated.status == TaskStatus.IN_PROGRESS


def test_all_tasks_are_paginated(task_service, admin, alice):
    for i in range(3):
        _create(task_service, admin, [alice.user_id], title=f"T{i}")
    page = task_service.get_all_tasks(principal=admin, page=2, limit=2)
    assert page.total == 3
    assert len(page.items) == 1


def test_delete_task(task_service, admin, alice):
    task = _create(task_service, admin, [alice.user_id])
    task_service.delete_task(principal=admin, task_id=task.task_id)
    with pytest.raises(NotFoundError):
        task_service.delete_task(principal=admin, task_id=task.task_id)

from datetime import date, datetime

import pytest

from src.workforce_portal.workforce_portal.core.enums import LeaveStatus
from src.workforce_portal.workforce_portal.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    StateError,
    ValidationError,
)
from src.workforce_portal.workforce_portal.leaves.service import build_filters


def _apply(service, who, start="2024-05-06", end="2024-05-08", leave_type="vacation"):
    return service.apply_for_leave(principal=who, leave_type=leave_type, start_date=start, end_date=end, reason="trip")


def test_approval_is_recorded_once(leave_service, admin, alice, fixed_now):
    leave = _apply(leave_service, alice)
    assert leave.status == LeaveStatus.PENDING
    assert leave.days == 3

    approved = leave_service.decide_leave(principal=admin, leave_id=leave.leave_id, status="approved")
    assert approved.status == LeaveStatus.APPROVED
    assert approved.approved_by == admin.user_id
    assert approved.approved_at == fixed_now

    with pytest.raises(StateError) as e:
        leave_service.decide_leave(
            principal=admin, leave_id=leave.leave_id, status="rejected", rejection_reason="changed mind"
        )
    assert e.value.code == "AlreadyDecided"
    assert leave_service.get_leave(principal=admin, leave_id=leave.leave_id).status == LeaveStatus.APPROVED


def test_single_day_leave_counts_one_day(leave_service, alice):
    assert _apply(leave_service, alice, start="2024-05-06", end="2024-05-06").days == 1


def test_datetime_bounds_round_partial_days_up(leave_service, alice):
    leave = _apply(leave_service, alice, start="2024-05-06T09:00:00", end="2024-05-07T21:00:00")
    assert leave.days == 3
    assert leave.start_date == date(2024, 5, 6)
    assert leave.end_date == date(2024, 5, 7)


def test_end_before_start_is_rejected(leave_service, alice):
    with pytest.raises(ValidationError):
        _apply(leave_service, alice, start="2024-05-08", end="2024-05-06")


def test_unknown_type_is_rejected(leave_service, alice):
    with pytest.raises(ValidationError):
        _apply(leave_service, alice, leave_type="sabbatical")


def test_rejection_needs_a_reason(leave_service, admin, alice):
    leave = _apply(leave_service, alice)
    with pytest.raises(ValidationError) as e:
        leave_service.decide_leave(principal=admin, leave_id=leave.leave_id, status="rejected")
    assert e.value.code == "MissingReason"

    rejected = leave_service.decide_leave(
        principal=admin, leave_id=leave.leave_id, status="rejected", rejection_reason="busy week"
    )
    assert rejected.rejection_reason == "busy week"


def test_decision_must_be_approved_or_rejected(leave_service, admin, alice):
    leave = _apply(leave_service, alice)
    with pytest.raises(ValidationError):
        leave_service.decide_leave(principal=admin, leave_id=leave.leave_id, status="pending")


def test_deciding_unknown_leave_is_not_found(leave_service, admin):
    with pytest.raises(NotFoundError):
        leave_service.decide_leave(principal=admin, leave_id=77, status="approved")


def test_client_cannot_decide(leave_service, alice):
    leave = _apply(leave_service, alice)
    with pytest.raises(AuthorizationError):
        leave_service.decide_leave(principal=alice, leave_id=leave.leave_id, status="approved")


def test_cancel_only_own_pending_leave(leave_service, admin, alice, bob):
    leave = _apply(leave_service, alice)
    with pytest.raises(NotFoundError):
        leave_service.cancel_leave(principal=bob, leave_id=leave.leave_id)

    leave_service.cancel_leave(principal=alice, leave_id=leave.leave_id)
    with pytest.raises(NotFoundError):
        leave_service.get_leave(principal=admin, leave_id=leave.leave_id)


def test_decided_leave_cannot_be_cancelled(leave_service, admin, alice):
    leave = _apply(leave_service, alice)
    leave_service.decide_leave(principal=admin, leave_id=leave.leave_id, status="approved")
    with pytest.raises(NotFoundError):
        leave_service.cancel_leave(principal=alice, leave_id=leave.leave_id)


def test_client_cannot_read_someone_elses_leave(leave_service, alice, bob):
    leave = _apply(leave_service, alice)
    with pytest.raises(NotFoundError):
        leave_service.get_leave(principal=bob, leave_id=leave.leave_id)
    assert [l.leave_id for l in leave_service.list_my_leaves(principal=bob)] == []


def test_list_filters_pages_and_sorts(leave_service, admin, alice, bob):
    _apply(leave_service, alice, start="2024-05-01", end="2024-05-01")
    _apply(leave_service, alice, start="2024-05-10", end="2024-05-12", leave_type="sick")
    _apply(leave_service, bob, start="2024-05-05", end="2024-05-06")

    page = leave_service.list_leaves(principal=admin, page=1, limit=2, sort="startDate")
    assert page.total == 3
    assert page.total_pages == 2
    assert [l.start_date for l in page.items] == [date(2024, 5, 1), date(2024, 5, 5)]

    engineering = leave_service.list_leaves(principal=admin, filters=build_filters(department="Engineering"))
    assert {l.employee_id for l in engineering.items} == {alice.user_id}

    sick = leave_service.list_leaves(principal=admin, filters=build_filters(leave_type="sick"))
    assert sick.total == 1


def test_unknown_sort_field_is_rejected(leave_service, admin):
    with pytest.raises(ValidationError):
        leave_service.list_leaves(principal=admin, sort="reason")


def test_stats_count_each_status(leave_service, admin, alice, bob):
    first = _apply(leave_service, alice)
    second = _apply(leave_service, bob)
    _apply(leave_service, bob)
    leave_service.decide_leave(principal=admin, leave_id=first.leave_id, status="approved")
    leave_service.decide_leave(principal=admin, leave_id=second.leave_id, status="rejected", rejection_reason="no")

    assert leave_service.get_leave_stats() == {"pending": 1, "approved": 1, "rejected": 1, "total": 3}
    assert leave_service.get_leave_stats(build_filters(employee_id=bob.user_id))["total"] == 2


def test_to_dict_embeds_employee(leave_service, alice):
    data = _apply(leave_service, alice).to_dict()
    assert data["employee"] == {"id": alice.user_id, "name": "Alice", "department": "Engineering"}
    assert data["startDate"] == "2024-05-06"
    assert isinstance(datetime.fromisoformat(data["createdAt"]), datetime)

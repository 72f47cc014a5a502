from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Optional, Sequence, Union

from ..access.scoping import UNRESTRICTED, require_admin, scope_for
from ..common.datetime_utils import inclusive_day_count, now_local, parse_iso_date, parse_timestamp
from ..common.pagination import Page, parse_page, parse_sort
from ..common.validators import optional_text, parse_enum, parse_int
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import LeaveStatus, LeaveType, Resource
from ..core.exceptions import NotFoundError, StateError, ValidationError
from ..users.model import Principal
from .model import DEFAULT_SORT, SORTABLE_FIELDS, Leave, LeaveFilters, NewLeave
from .repository import LeaveRepository

logger = logging.getLogger(__name__)

_DECISIONS = (LeaveStatus.APPROVED, LeaveStatus.REJECTED)


def _parse_leave_bound(value: Any, field_name: str) -> Union[date, datetime]:
    if isinstance(value, (date, datetime)):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    try:
        v = value.strip()
        return parse_timestamp(v) if "T" in v else parse_iso_date(v)
    except ValueError:
        raise ValidationError(f"{field_name} is not a valid date (YYYY-MM-DD)")


def _day_of(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def build_filters(
    *,
    status: Any = None,
    leave_type: Any = None,
    department: Any = None,
    employee_id: Any = None,
    start_from: Any = None,
    start_to: Any = None,
) -> LeaveFilters:
    """Turn raw query-string values into validated LeaveFilters."""

    return LeaveFilters(
        status=parse_enum(LeaveStatus, status, "Status") if status else None,
        leave_type=parse_enum(LeaveType, leave_type, "Type") if leave_type else None,
        department=optional_text(department),
        employee_id=parse_int(employee_id, "Employee ID", minimum=1),
        start_from=_day_of(_parse_leave_bound(start_from, "Start date")) if start_from else None,
        start_to=_day_of(_parse_leave_bound(start_to, "End date")) if start_to else None,
    )


class LeaveService:
    """Leave workflow: PENDING -> APPROVED | REJECTED, decided exactly once."""

    def __init__(
        self,
        leaves: LeaveRepository,
        *,
        clock: Callable[[], datetime] = now_local,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self._leaves = leaves
        self._clock = clock
        self._page_size = page_size

    def apply_for_leave(
        self,
        *,
        principal: Principal,
        leave_type: Any,
        start_date: Any,
        end_date: Any,
        reason: Any = None,
    ) -> Leave:
        lt = parse_enum(LeaveType, leave_type, "Type")
        start = _parse_leave_bound(start_date, "Start date")
        end = _parse_leave_bound(end_date, "End date")

        # must be explicit: the day formula alone yields <= 0 instead of failing
        if isinstance(start, datetime) != isinstance(end, datetime):
            start_cmp, end_cmp = _day_of(start), _day_of(end)
        else:
            start_cmp, end_cmp = start, end
        if end_cmp < start_cmp:
            raise ValidationError("End date must be on or after start date")

        days = inclusive_day_count(start, end)
        leave_id = self._leaves.create(
            NewLeave(
                employee_id=principal.user_id,
                leave_type=lt,
                start_date=_day_of(start),
                end_date=_day_of(end),
                days=days,
                reason=optional_text(reason) or "",
            )
        )
        logger.info("User %s applied for %s leave %s (%d days)", principal.user_id, lt.value, leave_id, days)
        return self._get(leave_id)

    def cancel_leave(self, *, principal: Principal, leave_id: int) -> None:
        if not self._leaves.delete_pending(leave_id=leave_id, employee_id=principal.user_id):
            raise NotFoundError("No pending leave found with that ID or you cannot cancel this leave")
        logger.info("User %s cancelled leave %s", principal.user_id, leave_id)

    def decide_leave(
        self,
        *,
        principal: Principal,
        leave_id: int,
        status: Any,
        rejection_reason: Any = None,
    ) -> Leave:
        require_admin(principal)

        try:
            decision = LeaveStatus(status)
        except ValueError:
            decision = None
        if decision not in _DECISIONS:
            raise ValidationError('Status must be either "approved" or "rejected"')

        reason = optional_text(rejection_reason)
        if decision == LeaveStatus.REJECTED and not reason:
            raise ValidationError("Rejection reason is required when rejecting leave", code="MissingReason")

        ok = self._leaves.decide(
            leave_id=leave_id,
            status=decision,
            decided_by=principal.user_id,
            decided_at=self._clock(),
            rejection_reason=reason if decision == LeaveStatus.REJECTED else None,
        )
        if not ok:
            current = self._leaves.get_by_id(leave_id, scope=UNRESTRICTED[Resource.LEAVE])
            if not current:
                raise NotFoundError("No leave found with that ID")
            raise StateError(f"Leave has already been {current.status.value}", code="AlreadyDecided")

        logger.info("Admin %s %s leave %s", principal.user_id, decision.value, leave_id)
        return self._get(leave_id)

    def list_leaves(
        self,
        *,
        principal: Principal,
        filters: Optional[LeaveFilters] = None,
        page: Any = None,
        limit: Any = None,
        sort: Any = None,
    ) -> Page[Leave]:
        require_admin(principal)
        filters = filters or LeaveFilters()
        paging = parse_page(page, limit, default_limit=self._page_size)
        order = parse_sort(sort, SORTABLE_FIELDS, DEFAULT_SORT)
        scope = scope_for(principal, Resource.LEAVE)

        items = self._leaves.find(
            scope=scope,
            filters=filters,
            sort_field=order.field,
            descending=order.descending,
            offset=paging.offset,
            limit=paging.limit,
        )
        total = self._leaves.count(scope=scope, filters=filters)
        return Page(items=items, total=total, page=paging.page, limit=paging.limit)

    def list_my_leaves(self, *, principal: Principal) -> Sequence[Leave]:
        return self._leaves.find(
            scope=scope_for(principal, Resource.LEAVE),
            filters=LeaveFilters(employee_id=principal.user_id),
        )

    def get_leave(self, *, principal: Principal, leave_id: int) -> Leave:
        leave = self._leaves.get_by_id(leave_id, scope=scope_for(principal, Resource.LEAVE))
        if not leave:
            raise NotFoundError("No leave found with that ID")
        return leave

    def get_leave_stats(self, filters: Optional[LeaveFilters] = None) -> dict[str, int]:
        counts = self._leaves.count_by_status(filters=filters or LeaveFilters())
        result = {s.value: int(counts.get(s, 0)) for s in LeaveStatus}
        result["total"] = sum(result.values())
        return result

    def _get(self, leave_id: int) -> Leave:
        leave = self._leaves.get_by_id(leave_id, scope=UNRESTRICTED[Resource.LEAVE])
        if not leave:
            raise NotFoundError("No leave found with that ID")
        return leave

from __future__ import annotations

from flask import Flask, g, request

from ..common.guards import auth_guards
from ..common.http import json_body, no_content, paginated, success
from ..core.enums import Role
from ..container import Container
from .service import build_filters


def _filters_from_query(args, *, with_listing: bool):
    return build_filters(
        status=args.get("status") if with_listing else None,
        leave_type=args.get("type") if with_listing else None,
        department=args.get("department"),
        employee_id=args.get("employeeId") if with_listing else None,
        start_from=args.get("startDate"),
        start_to=args.get("endDate"),
    )


def register(app: Flask, container: Container) -> None:
    login_required, roles_required = auth_guards(container.auth_service)
    service = container.leave_service

    @app.route("/api/admin/leaves", methods=["GET"], endpoint="admin_list_leaves")
    @roles_required(Role.ADMIN)
    def list_leaves():
        page = service.list_leaves(
            principal=g.principal,
            filters=_filters_from_query(request.args, with_listing=True),
            page=request.args.get("page"),
            limit=request.args.get("limit"),
            sort=request.args.get("sort"),
        )
        return paginated(
            "leaves",
            [leave.to_dict() for leave in page.items],
            total=page.total,
            page=page.page,
            limit=page.limit,
        )

    @app.route("/api/admin/leaves/stats", methods=["GET"], endpoint="admin_leave_stats")
    @roles_required(Role.ADMIN)
    def leave_stats():
        stats = service.get_leave_stats(_filters_from_query(request.args, with_listing=False))
        return success(stats)

    @app.route("/api/admin/leaves/<int:leave_id>", methods=["GET"], endpoint="admin_get_leave")
    @roles_required(Role.ADMIN)
    def get_leave(leave_id: int):
        leave = service.get_leave(principal=g.principal, leave_id=leave_id)
        return success({"leave": leave.to_dict()})

    @app.route("/api/admin/leaves/<int:leave_id>", methods=["PATCH"], endpoint="admin_decide_leave")
    @roles_required(Role.ADMIN)
    def decide_leave(leave_id: int):
        body = json_body()
        leave = service.decide_leave(
            principal=g.principal,
            leave_id=leave_id,
            status=body.get("status"),
            rejection_reason=body.get("rejectionReason"),
        )
        return success({"leave": leave.to_dict()})

    @app.route("/api/client/leaves", methods=["GET"], endpoint="client_list_leaves")
    @login_required
    def my_leaves():
        leaves = service.list_my_leaves(principal=g.principal)
        return success({"leaves": [leave.to_dict() for leave in leaves]}, results=len(leaves))

    @app.route("/api/client/leaves", methods=["POST"], endpoint="client_apply_leave")
    @login_required
    def apply_leave():
        body = json_body()
        leave = service.apply_for_leave(
            principal=g.principal,
            leave_type=body.get("type"),
            start_date=body.get("startDate"),
            end_date=body.get("endDate"),
            reason=body.get("reason"),
        )
        return success({"leave": leave.to_dict()}, status=201)

    @app.route("/api/client/leaves/<int:leave_id>", methods=["DELETE"], endpoint="client_cancel_leave")
    @login_required
    def cancel_leave(leave_id: int):
        service.cancel_leave(principal=g.principal, leave_id=leave_id)
        return no_content()

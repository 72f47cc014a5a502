from __future__ import annotations

from flask import Flask, g, request

from ..common.guards import auth_guards
from ..common.http import json_body, no_content, success
from ..core.enums import Role
from ..container import Container

_UPDATABLE = {"status": "status", "checkIn": "check_in", "checkOut": "check_out", "notes": "notes"}


def register(app: Flask, container: Container) -> None:
    login_required, roles_required = auth_guards(container.auth_service)
    service = container.attendance_service

    @app.route("/api/admin/attendance", methods=["POST"], endpoint="admin_mark_attendance")
    @roles_required(Role.ADMIN)
    def mark_attendance():
        body = json_body()
        record = service.mark_attendance(
            principal=g.principal,
            user_id=body.get("userId"),
            work_date=body.get("date"),
            status=body.get("status"),
            check_in=body.get("checkIn"),
            check_out=body.get("checkOut"),
            notes=body.get("notes"),
        )
        return success({"attendance": record.to_dict()}, status=201)

    @app.route("/api/admin/attendance/multiple", methods=["POST"], endpoint="admin_mark_attendance_batch")
    @roles_required(Role.ADMIN)
    def mark_attendance_batch():
        result = service.mark_attendance_batch(
            principal=g.principal,
            records=json_body().get("attendanceRecords"),
        )
        return success(result.to_dict(), status=201)

    @app.route("/api/admin/attendance", methods=["GET"], endpoint="admin_list_attendance")
    @roles_required(Role.ADMIN)
    def list_attendance():
        records = service.list_recent(principal=g.principal, limit=request.args.get("limit"))
        return success({"attendances": [r.to_dict() for r in records]}, results=len(records))

    @app.route("/api/admin/attendance/check", methods=["GET"], endpoint="admin_check_attendance")
    @roles_required(Role.ADMIN)
    def check_attendance():
        exists = service.exists_for(
            principal=g.principal,
            user_id=request.args.get("userId"),
            work_date=request.args.get("date"),
        )
        return success({"exists": exists})

    @app.route("/api/admin/attendance/user/<int:user_id>", methods=["GET"], endpoint="admin_user_attendance")
    @roles_required(Role.ADMIN)
    def user_attendance(user_id: int):
        records = service.query_attendance(
            principal=g.principal,
            user_id=user_id,
            year=request.args.get("year"),
            month=request.args.get("month"),
        )
        return success({"attendance": [r.to_dict() for r in records]}, results=len(records))

    @app.route("/api/admin/attendance/<int:attendance_id>", methods=["GET"], endpoint="admin_get_attendance")
    @roles_required(Role.ADMIN)
    def get_attendance(attendance_id: int):
        record = service.get_record(principal=g.principal, attendance_id=attendance_id)
        return success({"attendance": record.to_dict()})

    @app.route("/api/admin/attendance/<int:attendance_id>", methods=["PATCH"], endpoint="admin_update_attendance")
    @roles_required(Role.ADMIN)
    def update_attendance(attendance_id: int):
        body = json_body()
        changes = {field: body[key] for key, field in _UPDATABLE.items() if key in body}
        record = service.update_record(principal=g.principal, attendance_id=attendance_id, **changes)
        return success({"attendance": record.to_dict()})

    @app.route("/api/admin/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="admin_delete_attendance")
    @roles_required(Role.ADMIN)
    def delete_attendance(attendance_id: int):
        service.delete_record(principal=g.principal, attendance_id=attendance_id)
        return no_content()

    @app.route("/api/client/attendance", methods=["GET"], endpoint="client_attendance")
    @login_required
    def my_attendance():
        records = service.query_attendance(
            principal=g.principal,
            user_id=g.principal.user_id,
            year=request.args.get("year"),
            month=request.args.get("month"),
        )
        return success(
            {"attendance": [r.to_dict() for r in records]},
            results=len(records),
        )

from __future__ import annotations

from flask import Flask, g, request

from ..common.guards import auth_guards
from ..common.http import json_body, no_content, paginated, success
from ..core.enums import Role
from ..container import Container

_UPDATABLE = {
    "title": "title",
    "description": "description",
    "assignedTo": "assigned_to",
    "dueDate": "due_date",
    "status": "status",
}


def register(app: Flask, container: Container) -> None:
    login_required, roles_required = auth_guards(container.auth_service)
    service = container.task_service

    @app.route("/api/admin/tasks", methods=["POST"], endpoint="admin_create_task")
    @roles_required(Role.ADMIN)
    def create_task():
        body = json_body()
        task = service.create_task(
            principal=g.principal,
            title=body.get("title"),
            description=body.get("description"),
            assigned_to=body.get("assignedTo"),
            due_date=body.get("dueDate"),
        )
        return success({"task": task.to_dict()}, status=201)

    @app.route("/api/admin/tasks", methods=["GET"], endpoint="admin_list_tasks")
    @roles_required(Role.ADMIN)
    def list_tasks():
        page = service.get_all_tasks(
            principal=g.principal,
            page=request.args.get("page"),
            limit=request.args.get("limit"),
            status=request.args.get("status"),
        )
        return paginated(
            "tasks",
            [t.to_dict() for t in page.items],
            total=page.total,
            page=page.page,
            limit=page.limit,
        )

    @app.route("/api/admin/tasks/<int:task_id>", methods=["GET"], endpoint="admin_get_task")
    @roles_required(Role.ADMIN)
    def get_task(task_id: int):
        return success({"task": service.get_task(principal=g.principal, task_id=task_id).to_dict()})

    @app.route("/api/admin/tasks/<int:task_id>", methods=["PATCH"], endpoint="admin_update_task")
    @roles_required(Role.ADMIN)
    def update_task(task_id: int):
        body = json_body()
        changes = {field: body[key] for key, field in _UPDATABLE.items() if key in body}
        task = service.update_task(principal=g.principal, task_id=task_id, **changes)
        return success({"task": task.to_dict()})

    @app.route("/api/admin/tasks/<int:task_id>", methods=["DELETE"], endpoint="admin_delete_task")
    @roles_required(Role.ADMIN)
    def delete_task(task_id: int):
        service.delete_task(principal=g.principal, task_id=task_id)
        return no_content()

    @app.route("/api/admin/tasks/<int:task_id>/evaluate", methods=["POST"], endpoint="admin_evaluate_task")
    @roles_required(Role.ADMIN)
    def evaluate_task(task_id: int):
        body = json_body()
        task = service.evaluate_task(
            principal=g.principal,
            task_id=task_id,
            rating=body.get("rating"),
            feedback=body.get("feedback"),
        )
        return success({"task": task.to_dict()})

    @app.route("/api/employee/tasks/me", methods=["GET"], endpoint="employee_my_tasks")
    @app.route("/api/client/tasks", methods=["GET"], endpoint="client_my_tasks")
    @login_required
    def my_tasks():
        tasks = service.get_my_tasks(principal=g.principal, status=request.args.get("status"))
        return success({"tasks": [t.to_dict() for t in tasks]}, results=len(tasks))

    @app.route("/api/employee/tasks/<int:task_id>/submit", methods=["POST"], endpoint="employee_submit_task")
    @roles_required(Role.CLIENT, Role.ADMIN)
    def submit_task(task_id: int):
        body = json_body()
        task = service.submit_task(
            principal=g.principal,
            task_id=task_id,
            description=body.get("description"),
            project_url=body.get("projectUrl"),
        )
        return success({"task": task.to_dict()})

from __future__ import annotations

from flask import Flask, g, request

from ..common.guards import auth_guards
from ..common.http import json_body, no_content, success
from ..core.enums import Role
from ..container import Container

_FIELDS = {
    "name": "name",
    "description": "description",
    "client": "client_name",
    "manager": "manager_id",
    "team": "team",
    "startDate": "start_date",
    "endDate": "end_date",
    "lastDate": "last_date",
    "status": "status",
    "priority": "priority",
    "budget": "budget",
}


def _fields_from_body() -> dict:
    body = json_body()
    return {field: body[key] for key, field in _FIELDS.items() if key in body}


def register(app: Flask, container: Container) -> None:
    login_required, roles_required = auth_guards(container.auth_service)
    service = container.project_service

    @app.route("/api/admin/projects", methods=["GET"], endpoint="admin_list_projects")
    @roles_required(Role.ADMIN)
    def list_projects():
        projects = service.list_for_principal(principal=g.principal, status=request.args.get("status"))
        return success({"projects": [p.to_dict() for p in projects]}, results=len(projects))

    @app.route("/api/admin/projects", methods=["POST"], endpoint="admin_create_project")
    @roles_required(Role.ADMIN)
    def create_project():
        project = service.create_project(principal=g.principal, **_fields_from_body())
        return success({"project": project.to_dict()}, status=201)

    @app.route("/api/admin/projects/<int:project_id>", methods=["GET"], endpoint="admin_get_project")
    @roles_required(Role.ADMIN)
    def get_project(project_id: int):
        return success({"project": service.get_project(principal=g.principal, project_id=project_id).to_dict()})

    @app.route("/api/admin/projects/<int:project_id>", methods=["PATCH"], endpoint="admin_update_project")
    @roles_required(Role.ADMIN)
    def update_project(project_id: int):
        project = service.update_project(principal=g.principal, project_id=project_id, **_fields_from_body())
        return success({"project": project.to_dict()})

    @app.route("/api/admin/projects/<int:project_id>", methods=["DELETE"], endpoint="admin_delete_project")
    @roles_required(Role.ADMIN)
    def delete_project(project_id: int):
        service.delete_project(principal=g.principal, project_id=project_id)
        return no_content()

    @app.route("/api/client/projects", methods=["GET"], endpoint="client_list_projects")
    @login_required
    def my_projects():
        projects = service.list_for_principal(principal=g.principal, status=request.args.get("status"))
        return success({"projects": [p.to_dict() for p in projects]}, results=len(projects))

    @app.route("/api/client/projects/<int:project_id>", methods=["GET"], endpoint="client_get_project")
    @login_required
    def my_project(project_id: int):
        return success({"project": service.get_project(principal=g.principal, project_id=project_id).to_dict()})

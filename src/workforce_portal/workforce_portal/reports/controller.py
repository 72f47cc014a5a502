from __future__ import annotations

from flask import Flask, g

from ..common.guards import auth_guards
from ..common.http import success
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    login_required, roles_required = auth_guards(container.auth_service)

    @app.route("/api/admin/dashboard/stats", methods=["GET"], endpoint="admin_dashboard_stats")
    @roles_required(Role.ADMIN)
    def admin_stats():
        return success(container.dashboard_service.admin_stats(principal=g.principal))

    @app.route("/api/client/dashboard/stats", methods=["GET"], endpoint="client_dashboard_stats")
    @login_required
    def client_stats():
        return success(container.dashboard_service.client_stats(principal=g.principal))

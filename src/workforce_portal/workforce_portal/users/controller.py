from __future__ import annotations

from flask import Flask, g, request

from ..common.guards import auth_guards
from ..common.http import json_body, no_content, success
from ..common.validators import parse_enum
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    login_required, roles_required = auth_guards(container.auth_service)

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        body = json_body()
        result = container.auth_service.authenticate(body.get("email", ""), body.get("password", ""))
        return success({"user": result.principal.to_dict()}, token=result.token)

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @login_required
    def me():
        user = container.user_service.get_user(g.principal.user_id)
        return success({"user": user.to_dict()})

    @app.route("/api/admin/users", methods=["GET"], endpoint="admin_list_users")
    @roles_required(Role.ADMIN)
    def list_users():
        users = container.user_service.list_users(department=request.args.get("department"))
        return success({"users": [u.to_dict() for u in users]}, results=len(users))

    @app.route("/api/admin/users", methods=["POST"], endpoint="admin_create_user")
    @roles_required(Role.ADMIN)
    def create_user():
        body = json_body()
        profile = body.get("profile") if isinstance(body.get("profile"), dict) else {}
        user = container.user_service.create_account(
            principal=g.principal,
            name=body.get("name", ""),
            email=body.get("email", ""),
            password=body.get("password", ""),
            role=parse_enum(Role, body.get("role", Role.CLIENT.value), "Role"),
            department=body.get("department"),
            mobile=body.get("mobile"),
            permissions=profile.get("permissions"),
            company=profile.get("company"),
            contact_number=profile.get("contactNumber"),
        )
        return success({"user": user.to_dict()}, status=201)

    @app.route("/api/admin/users/<int:user_id>", methods=["GET"], endpoint="admin_get_user")
    @roles_required(Role.ADMIN)
    def get_user(user_id: int):
        return success({"user": container.user_service.get_user(user_id).to_dict()})

    @app.route("/api/admin/users/<int:user_id>", methods=["PATCH"], endpoint="admin_update_user")
    @roles_required(Role.ADMIN)
    def update_user(user_id: int):
        body = json_body()
        profile = body.get("profile") if isinstance(body.get("profile"), dict) else {}
        user = container.user_service.update_account(
            principal=g.principal,
            user_id=user_id,
            name=body.get("name"),
            email=body.get("email"),
            role=parse_enum(Role, body["role"], "Role") if body.get("role") is not None else None,
            department=body.get("department"),
            mobile=body.get("mobile"),
            permissions=profile.get("permissions"),
            company=profile.get("company"),
            contact_number=profile.get("contactNumber"),
        )
        return success({"user": user.to_dict()})

    @app.route("/api/admin/users/<int:user_id>", methods=["DELETE"], endpoint="admin_delete_user")
    @roles_required(Role.ADMIN)
    def delete_user(user_id: int):
        container.user_service.delete_user(principal=g.principal, user_id=user_id)
        return no_content()

    @app.route("/api/client/profile", methods=["GET"], endpoint="client_get_profile")
    @roles_required(Role.CLIENT)
    def my_profile():
        return success({"user": container.user_service.get_user(g.principal.user_id).to_dict()})

    @app.route("/api/client/profile", methods=["PATCH"], endpoint="client_update_profile")
    @roles_required(Role.CLIENT)
    def update_my_profile():
        body = json_body()
        user = container.user_service.update_profile(
            principal=g.principal,
            name=body.get("name"),
            email=body.get("email"),
            mobile=body.get("mobile"),
            company=body.get("company"),
            contact_number=body.get("contactNumber"),
        )
        return success({"user": user.to_dict()})

    @app.route("/api/client/update-password", methods=["POST"], endpoint="client_update_password")
    @roles_required(Role.CLIENT)
    def update_password():
        body = json_body()
        result = container.auth_service.change_password(
            principal=g.principal,
            current_password=body.get("currentPassword"),
            new_password=body.get("newPassword"),
        )
        return success({"user": result.principal.to_dict()}, token=result.token)

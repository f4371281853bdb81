from __future__ import annotations

from datetime import timedelta

from flask import Flask, request, session

from ..common.http import (
    arg_enum,
    arg_str,
    json_endpoint,
    login_required,
    page_args,
    request_json,
    roles_required,
    store_session_user,
    success,
)
from ..common.serialization import to_json
from ..container import Container
from ..core.constants import DEFAULT_SESSION_DAYS
from ..core.enums import Role, Status


def register(app: Flask, container: Container) -> None:
    auth = container.auth_service
    users = container.user_service

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    @json_endpoint("Server error during login")
    def login():
        data = request_json()
        user = auth.authenticate(str(data.get("mobile") or ""), str(data.get("pin") or ""), ip_address=request.remote_addr)

        session.clear()
        session.permanent = bool(data.get("rememberMe", True))
        app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)
        store_session_user(user.id, user.name, user.role, user.branch_id, [to_json(p) for p in user.permissions])
        return success({"user": user.public()}, "Login successful")

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    @json_endpoint("Server error during logout")
    @login_required
    def logout(user):
        auth.logout(user)
        session.clear()
        return success(message="Logout successful")

    @app.route("/api/auth/profile", methods=["GET"], endpoint="auth_profile")
    @json_endpoint("Server error while fetching profile")
    @login_required
    def profile(user):
        return success(auth.profile(user).public(), "Profile retrieved successfully")

    @app.route("/api/auth/change-pin", methods=["PUT"], endpoint="auth_change_pin")
    @json_endpoint("Server error while changing PIN")
    @login_required
    def change_pin(user):
        data = request_json()
        auth.change_pin(user, current_pin=str(data.get("currentPin") or ""), new_pin=str(data.get("newPin") or ""))
        return success(message="PIN changed successfully")

    @app.route("/api/auth/register", methods=["POST"], endpoint="auth_register")
    @json_endpoint("Server error during registration")
    @roles_required(Role.SUPER_ADMIN)
    def register_user(user):
        created = users.create_user(user, request_json())
        return success(created.public(), "User registered successfully", status=201)

    @app.route("/api/users", methods=["GET"], endpoint="users_list")
    @json_endpoint("Server error while fetching users")
    @roles_required(Role.SUPER_ADMIN, Role.BRANCH_ADMIN)
    def list_users(user):
        page, limit = page_args()
        result = users.list_users(
            user,
            search=arg_str("search"),
            role=arg_enum("role", Role),
            status=arg_enum("status", Status),
            page=page,
            limit=limit,
        )
        return success(
            [u.public() for u in result.items], "Users retrieved successfully", pagination=result.meta()
        )

    @app.route("/api/users/<int:user_id>", methods=["GET"], endpoint="users_get")
    @json_endpoint("Server error while fetching user")
    @roles_required(Role.SUPER_ADMIN, Role.BRANCH_ADMIN)
    def get_user(user, user_id: int):
        return success(users.get_user(user, user_id).public(), "User retrieved successfully")

    @app.route("/api/users", methods=["POST"], endpoint="users_create")
    @json_endpoint("Server error while creating user")
    @roles_required(Role.SUPER_ADMIN, Role.BRANCH_ADMIN)
    def create_user(user):
        created = users.create_user(user, request_json())
        return success(created.public(), "User created successfully", status=201)

    @app.route("/api/users/<int:user_id>", methods=["PUT"], endpoint="users_update")
    @json_endpoint("Server error while updating user")
    @roles_required(Role.SUPER_ADMIN, Role.BRANCH_ADMIN)
    def update_user(user, user_id: int):
        return success(users.update_user(user, user_id, request_json()).public(), "User updated successfully")

    @app.route("/api/users/<int:user_id>", methods=["DELETE"], endpoint="users_delete")
    @json_endpoint("Server error while deleting user")
    @roles_required(Role.SUPER_ADMIN, Role.BRANCH_ADMIN)
    def delete_user(user, user_id: int):
        users.delete_user(user, user_id)
        return success(message="User deleted successfully")

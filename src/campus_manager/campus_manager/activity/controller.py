from __future__ import annotations

from flask import Flask

from ..common.http import (
    arg_date,
    arg_int,
    arg_str,
    json_endpoint,
    login_required,
    page_args,
    page_response,
    permission_required,
    success,
)
from ..container import Container
from ..core.constants import DEFAULT_ACTIVITY_LIMIT, DEFAULT_LOG_RETENTION_DAYS
from ..core.enums import PermissionAction

MODULE = "activity_logs"


def register(app: Flask, container: Container) -> None:
    logs = container.activity_service

    @app.route("/api/activity-logs", methods=["GET"], endpoint="activity_logs_list")
    @json_endpoint("Server error while fetching activity logs")
    @permission_required(MODULE, PermissionAction.READ)
    def list_logs(user):
        page, limit = page_args(DEFAULT_ACTIVITY_LIMIT)
        result = logs.list_logs(
            user,
            search=arg_str("search"),
            user_id=arg_int("userId"),
            user_role=arg_str("userRole"),
            module=arg_str("module"),
            action=arg_str("action"),
            start=arg_date("startDate"),
            end=arg_date("endDate"),
            ascending=arg_str("sortOrder") == "asc",
            page=page,
            limit=limit,
        )
        return page_response(result, "Activity logs retrieved successfully")

    @app.route("/api/activity-logs/stats/overview", methods=["GET"], endpoint="activity_logs_stats")
    @json_endpoint("Server error while fetching activity statistics")
    @permission_required(MODULE, PermissionAction.READ)
    def log_stats(user):
        return success(logs.stats(user), "Activity statistics retrieved successfully")

    @app.route("/api/activity-logs/user/<int:user_id>", methods=["GET"], endpoint="activity_logs_user")
    @json_endpoint("Server error while fetching user activity logs")
    @permission_required(MODULE, PermissionAction.READ)
    def user_logs(user, user_id: int):
        page, limit = page_args(DEFAULT_ACTIVITY_LIMIT)
        return page_response(logs.list_for_user(user, user_id, page=page, limit=limit), "User activity logs retrieved successfully")

    @app.route("/api/activity-logs/<int:log_id>", methods=["GET"], endpoint="activity_logs_get")
    @json_endpoint("Server error while fetching activity log")
    @permission_required(MODULE, PermissionAction.READ)
    def get_log(user, log_id: int):
        return success(logs.get_log(user, log_id), "Activity log retrieved successfully")

    @app.route("/api/activity-logs/cleanup", methods=["DELETE"], endpoint="activity_logs_cleanup")
    @json_endpoint("Server error while cleaning up activity logs")
    @login_required
    def cleanup(user):
        days = arg_int("days")
        if days is None:
            days = DEFAULT_LOG_RETENTION_DAYS
        deleted = logs.cleanup(user, days=days)
        return success({"deleted_count": deleted}, f"Deleted {deleted} activity logs older than {days} days")

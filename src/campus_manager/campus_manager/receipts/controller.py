from __future__ import annotations

from flask import Flask

from ..common.http import arg_int, json_endpoint, login_required, request_json, roles_required, success
from ..container import Container
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    configs = container.receipt_service

    @app.route("/api/receipt-configs", methods=["GET"], endpoint="receipt_configs_list")
    @json_endpoint("Server error while fetching receipt configurations")
    @roles_required(Role.SUPER_ADMIN)
    def list_configs(user):
        return success(configs.list_configs(user), "Receipt configurations retrieved successfully")

    @app.route("/api/receipt-configs/current", methods=["GET"], endpoint="receipt_configs_current")
    @json_endpoint("Server error while fetching receipt configuration")
    @login_required
    def current_config(user):
        config = configs.current(user, branch_id=arg_int("branchId"))
        return success(config, "Receipt configuration retrieved successfully")

    @app.route("/api/receipt-configs/branch/<int:branch_id>", methods=["GET"], endpoint="receipt_configs_branch")
    @json_endpoint("Server error while fetching receipt configuration")
    @login_required
    def branch_config(user, branch_id: int):
        return success(configs.for_branch(user, branch_id), "Receipt configuration retrieved successfully")

    @app.route("/api/receipt-configs/<int:config_id>", methods=["GET"], endpoint="receipt_configs_get")
    @json_endpoint("Server error while fetching receipt configuration")
    @login_required
    def get_config(user, config_id: int):
        return success(configs.get_config(user, config_id), "Receipt configuration retrieved successfully")

    @app.route("/api/receipt-configs", methods=["POST"], endpoint="receipt_configs_create")
    @json_endpoint("Server error while creating receipt configuration")
    @login_required
    def create_config(user):
        created = configs.create_config(user, request_json())
        return success(created, "Receipt configuration created successfully", status=201)

    @app.route("/api/receipt-configs/<int:config_id>", methods=["PUT"], endpoint="receipt_configs_update")
    @json_endpoint("Server error while updating receipt configuration")
    @login_required
    def update_config(user, config_id: int):
        updated = configs.update_config(user, config_id, request_json())
        return success(updated, "Receipt configuration updated successfully")

    @app.route("/api/receipt-configs/<int:config_id>", methods=["DELETE"], endpoint="receipt_configs_delete")
    @json_endpoint("Server error while deleting receipt configuration")
    @login_required
    def delete_config(user, config_id: int):
        configs.delete_config(user, config_id)
        return success(message="Receipt configuration deleted successfully")

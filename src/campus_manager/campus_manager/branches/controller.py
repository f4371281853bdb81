from __future__ import annotations

from flask import Flask

from ..common.http import arg_enum, arg_str, json_endpoint, page_args, page_response, request_json, roles_required, success
from ..container import Container
from ..core.enums import Role, Status


def register(app: Flask, container: Container) -> None:
    branches = container.branch_service

    @app.route("/api/branches", methods=["GET"], endpoint="branches_list")
    @json_endpoint("Server error while fetching branches")
    @roles_required(Role.SUPER_ADMIN)
    def list_branches(user):
        page, limit = page_args()
        result = branches.list_branches(
            user, status=arg_enum("status", Status), search=arg_str("search"), page=page, limit=limit
        )
        return page_response(result, "Branches retrieved successfully")

    @app.route("/api/branches/<int:branch_id>", methods=["GET"], endpoint="branches_get")
    @json_endpoint("Server error while fetching branch")
    @roles_required(Role.SUPER_ADMIN)
    def get_branch(user, branch_id: int):
        return success(branches.get_branch(branch_id), "Branch retrieved successfully")

    @app.route("/api/branches", methods=["POST"], endpoint="branches_create")
    @json_endpoint("Server error while creating branch")
    @roles_required(Role.SUPER_ADMIN)
    def create_branch(user):
        return success(branches.create_branch(user, request_json()), "Branch created successfully", status=201)

    @app.route("/api/branches/<int:branch_id>", methods=["PUT"], endpoint="branches_update")
    @json_endpoint("Server error while updating branch")
    @roles_required(Role.SUPER_ADMIN)
    def update_branch(user, branch_id: int):
        return success(branches.update_branch(user, branch_id, request_json()), "Branch updated successfully")

    @app.route("/api/branches/<int:branch_id>", methods=["DELETE"], endpoint="branches_delete")
    @json_endpoint("Server error while deleting branch")
    @roles_required(Role.SUPER_ADMIN)
    def delete_branch(user, branch_id: int):
        branches.delete_branch(user, branch_id)
        return success(message="Branch deleted successfully")

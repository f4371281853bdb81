from __future__ import annotations

from flask import Flask

from ..common.http import (
    arg_enum,
    arg_int,
    arg_str,
    json_endpoint,
    page_args,
    page_response,
    permission_required,
    request_json,
    success,
)
from ..container import Container
from ..core.enums import PermissionAction, Status

MODULE = "classes"


def register(app: Flask, container: Container) -> None:
    classes = container.class_service
    divisions = container.division_service

    @app.route("/api/classes", methods=["GET"], endpoint="classes_list")
    @json_endpoint("Server error while fetching classes")
    @permission_required(MODULE, PermissionAction.READ)
    def list_classes(user):
        page, limit = page_args()
        result = classes.list_classes(
            user,
            search=arg_str("search"),
            academic_year=arg_str("academicYear"),
            status=arg_enum("status", Status),
            page=page,
            limit=limit,
        )
        return page_response(result, "Classes retrieved successfully")

    @app.route("/api/classes/stats/overview", methods=["GET"], endpoint="classes_stats")
    @json_endpoint("Server error while fetching class statistics")
    @permission_required(MODULE, PermissionAction.READ)
    def class_stats(user):
        return success(classes.stats(user), "Class statistics retrieved successfully")

    @app.route("/api/classes/<int:class_id>", methods=["GET"], endpoint="classes_get")
    @json_endpoint("Server error while fetching class")
    @permission_required(MODULE, PermissionAction.READ)
    def get_class(user, class_id: int):
        return success(classes.get_class(user, class_id), "Class retrieved successfully")

    @app.route("/api/classes", methods=["POST"], endpoint="classes_create")
    @json_endpoint("Server error while creating class")
    @permission_required(MODULE, PermissionAction.CREATE)
    def create_class(user):
        return success(classes.create_class(user, request_json()), "Class created successfully", status=201)

    @app.route("/api/classes/<int:class_id>", methods=["PUT"], endpoint="classes_update")
    @json_endpoint("Server error while updating class")
    @permission_required(MODULE, PermissionAction.UPDATE)
    def update_class(user, class_id: int):
        return success(classes.update_class(user, class_id, request_json()), "Class updated successfully")

    @app.route("/api/classes/<int:class_id>", methods=["DELETE"], endpoint="classes_delete")
    @json_endpoint("Server error while deleting class")
    @permission_required(MODULE, PermissionAction.DELETE)
    def delete_class(user, class_id: int):
        classes.delete_class(user, class_id)
        return success(message="Class deleted successfully")

    @app.route("/api/divisions", methods=["GET"], endpoint="divisions_list")
    @json_endpoint("Server error while fetching divisions")
    @permission_required(MODULE, PermissionAction.READ)
    def list_divisions(user):
        page, limit = page_args()
        result = divisions.list_divisions(
            user,
            search=arg_str("search"),
            class_id=arg_int("classId"),
            status=arg_enum("status", Status),
            page=page,
            limit=limit,
        )
        return page_response(result, "Divisions retrieved successfully")

    @app.route("/api/divisions/class/<int:class_id>", methods=["GET"], endpoint="divisions_for_class")
    @json_endpoint("Server error while fetching divisions")
    @permission_required(MODULE, PermissionAction.READ)
    def divisions_for_class(user, class_id: int):
        return success(divisions.list_for_class(user, class_id), "Divisions retrieved successfully")

    @app.route("/api/divisions/<int:division_id>", methods=["GET"], endpoint="divisions_get")
    @json_endpoint("Server error while fetching division")
    @permission_required(MODULE, PermissionAction.READ)
    def get_division(user, division_id: int):
        return success(divisions.get_division(user, division_id), "Division retrieved successfully")

    @app.route("/api/divisions", methods=["POST"], endpoint="divisions_create")
    @json_endpoint("Server error while creating division")
    @permission_required(MODULE, PermissionAction.CREATE)
    def create_division(user):
        return success(divisions.create_division(user, request_json()), "Division created successfully", status=201)

    @app.route("/api/divisions/<int:division_id>", methods=["PUT"], endpoint="divisions_update")
    @json_endpoint("Server error while updating division")
    @permission_required(MODULE, PermissionAction.UPDATE)
    def update_division(user, division_id: int):
        return success(divisions.update_division(user, division_id, request_json()), "Division updated successfully")

    @app.route("/api/divisions/<int:division_id>", methods=["DELETE"], endpoint="divisions_delete")
    @json_endpoint("Server error while deleting division")
    @permission_required(MODULE, PermissionAction.DELETE)
    def delete_division(user, division_id: int):
        divisions.delete_division(user, division_id)
        return success(message="Division deleted successfully")

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
from ..core.enums import PermissionAction, Status, TransportType

MODULE = "students"


def register(app: Flask, container: Container) -> None:
    students = container.student_service

    @app.route("/api/students", methods=["GET"], endpoint="students_list")
    @json_endpoint("Server error while fetching students")
    @permission_required(MODULE, PermissionAction.READ)
    def list_students(user):
        page, limit = page_args()
        result = students.list_students(
            user,
            search=arg_str("search"),
            class_id=arg_int("class"),
            section=arg_str("section"),
            status=arg_enum("status", Status),
            transport=arg_enum("transport", TransportType),
            sort_by=arg_str("sortBy") or "createdAt",
            ascending=arg_str("sortOrder") == "asc",
            page=page,
            limit=limit,
        )
        return page_response(result, "Students retrieved successfully")

    @app.route("/api/students/stats/overview", methods=["GET"], endpoint="students_stats")
    @json_endpoint("Server error while fetching student statistics")
    @permission_required(MODULE, PermissionAction.READ)
    def student_stats(user):
        return success(students.stats(user), "Student statistics retrieved successfully")

    @app.route("/api/students/<int:student_id>", methods=["GET"], endpoint="students_get")
    @json_endpoint("Server error while fetching student")
    @permission_required(MODULE, PermissionAction.READ)
    def get_student(user, student_id: int):
        return success(students.get_student(user, student_id), "Student retrieved successfully")

    @app.route("/api/students", methods=["POST"], endpoint="students_create")
    @json_endpoint("Server error while creating student")
    @permission_required(MODULE, PermissionAction.CREATE)
    def create_student(user):
        return success(students.create_student(user, request_json()), "Student created successfully", status=201)

    @app.route("/api/students/<int:student_id>", methods=["PUT"], endpoint="students_update")
    @json_endpoint("Server error while updating student")
    @permission_required(MODULE, PermissionAction.UPDATE)
    def update_student(user, student_id: int):
        return success(students.update_student(user, student_id, request_json()), "Student updated successfully")

    @app.route("/api/students/<int:student_id>", methods=["DELETE"], endpoint="students_delete")
    @json_endpoint("Server error while deleting student")
    @permission_required(MODULE, PermissionAction.DELETE)
    def delete_student(user, student_id: int):
        students.delete_student(user, student_id)
        return success(message="Student deleted successfully")

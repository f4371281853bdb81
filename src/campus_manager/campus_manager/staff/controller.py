from __future__ import annotations

from flask import Flask

from ..common.http import (
    arg_enum,
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


def register(app: Flask, container: Container) -> None:
    staff = container.staff_service
    departments = container.department_service
    designations = container.designation_service

    @app.route("/api/staff", methods=["GET"], endpoint="staff_list")
    @json_endpoint("Server error while fetching staff")
    @permission_required("staff", PermissionAction.READ)
    def list_staff(user):
        page, limit = page_args()
        result = staff.list_staff(
            user,
            search=arg_str("search"),
            department=arg_str("department"),
            designation=arg_str("designation"),
            status=arg_enum("status", Status),
            page=page,
            limit=limit,
        )
        return page_response(result, "Staff retrieved successfully")

    @app.route("/api/staff/stats/overview", methods=["GET"], endpoint="staff_stats")
    @json_endpoint("Server error while fetching staff statistics")
    @permission_required("staff", PermissionAction.READ)
    def staff_stats(user):
        return success(staff.stats(user), "Staff statistics retrieved successfully")

    @app.route("/api/staff/<int:staff_id>", methods=["GET"], endpoint="staff_get")
    @json_endpoint("Server error while fetching staff member")
    @permission_required("staff", PermissionAction.READ)
    def get_staff(user, staff_id: int):
        return success(staff.get_staff(user, staff_id), "Staff member retrieved successfully")

    @app.route("/api/staff", methods=["POST"], endpoint="staff_create")
    @json_endpoint("Server error while creating staff member")
    @permission_required("staff", PermissionAction.CREATE)
    def create_staff(user):
        return success(staff.create_staff(user, request_json()), "Staff member created successfully", status=201)

    @app.route("/api/staff/<int:staff_id>", methods=["PUT"], endpoint="staff_update")
    @json_endpoint("Server error while updating staff member")
    @permission_required("staff", PermissionAction.UPDATE)
    def update_staff(user, staff_id: int):
        return success(staff.update_staff(user, staff_id, request_json()), "Staff member updated successfully")

    @app.route("/api/staff/<int:staff_id>", methods=["DELETE"], endpoint="staff_delete")
    @json_endpoint("Server error while deleting staff member")
    @permission_required("staff", PermissionAction.DELETE)
    def delete_staff(user, staff_id: int):
        staff.delete_staff(user, staff_id)
        return success(message="Staff member deleted successfully")

    @app.route("/api/departments", methods=["GET"], endpoint="departments_list")
    @json_endpoint("Server error while fetching departments")
    @permission_required("departments", PermissionAction.READ)
    def list_departments(user):
        page, limit = page_args()
        result = departments.list_departments(
            user, search=arg_str("search"), status=arg_enum("status", Status), page=page, limit=limit
        )
        return page_response(result, "Departments retrieved successfully")

    @app.route("/api/departments/stats/overview", methods=["GET"], endpoint="departments_stats")
    @json_endpoint("Server error while fetching department statistics")
    @permission_required("departments", PermissionAction.READ)
    def department_stats(user):
        return success(departments.stats(user), "Department statistics retrieved successfully")

    @app.route("/api/departments/<int:department_id>", methods=["GET"], endpoint="departments_get")
    @json_endpoint("Server error while fetching department")
    @permission_required("departments", PermissionAction.READ)
    def get_department(user, department_id: int):
        return success(departments.get_department(user, department_id), "Department retrieved successfully")

    @app.route("/api/departments", methods=["POST"], endpoint="departments_create")
    @json_endpoint("Server error while creating department")
    @permission_required("departments", PermissionAction.CREATE)
    def create_department(user):
        created = departments.create_department(user, request_json())
        return success(created, "Department created successfully", status=201)

    @app.route("/api/departments/<int:department_id>", methods=["PUT"], endpoint="departments_update")
    @json_endpoint("Server error while updating department")
    @permission_required("departments", PermissionAction.UPDATE)
    def update_department(user, department_id: int):
        updated = departments.update_department(user, department_id, request_json())
        return success(updated, "Department updated successfully")

    @app.route("/api/departments/<int:department_id>", methods=["DELETE"], endpoint="departments_delete")
    @json_endpoint("Server error while deleting department")
    @permission_required("departments", PermissionAction.DELETE)
    def delete_department(user, department_id: int):
        departments.delete_department(user, department_id)
        return success(message="Department deleted successfully")

    @app.route("/api/designations", methods=["GET"], endpoint="designations_list")
    @json_endpoint("Server error while fetching designations")
    @permission_required("staff", PermissionAction.READ)
    def list_designations(user):
        page, limit = page_args()
        result = designations.list_entries(
            user, search=arg_str("search"), status=arg_enum("status", Status), page=page, limit=limit
        )
        return page_response(result, "Designations retrieved successfully")

    @app.route("/api/designations/active", methods=["GET"], endpoint="designations_active")
    @json_endpoint("Server error while fetching designations")
    @permission_required("staff", PermissionAction.READ)
    def active_designations(user):
        return success(designations.active_entries(user), "Designations retrieved successfully")

    @app.route("/api/designations/<int:designation_id>", methods=["GET"], endpoint="designations_get")
    @json_endpoint("Server error while fetching designation")
    @permission_required("staff", PermissionAction.READ)
    def get_designation(user, designation_id: int):
        return success(designations.get_entry(user, designation_id), "Designation retrieved successfully")

    @app.route("/api/designations", methods=["POST"], endpoint="designations_create")
    @json_endpoint("Server error while creating designation")
    @permission_required("staff", PermissionAction.CREATE)
    def create_designation(user):
        return success(designations.create_entry(user, request_json()), "Designation created successfully", status=201)

    @app.route("/api/designations/<int:designation_id>", methods=["PUT"], endpoint="designations_update")
    @json_endpoint("Server error while updating designation")
    @permission_required("staff", PermissionAction.UPDATE)
    def update_designation(user, designation_id: int):
        updated = designations.update_entry(user, designation_id, request_json())
        return success(updated, "Designation updated successfully")

    @app.route("/api/designations/<int:designation_id>", methods=["DELETE"], endpoint="designations_delete")
    @json_endpoint("Server error while deleting designation")
    @permission_required("staff", PermissionAction.DELETE)
    def delete_designation(user, designation_id: int):
        designations.delete_entry(user, designation_id)
        return success(message="Designation deleted successfully")

from __future__ import annotations

from flask import Flask

from ..common.http import (
    arg_bool,
    arg_date,
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
from ..core.enums import FeeType, PaymentMethod, PaymentStatus, PermissionAction

MODULE = "fees"


def register(app: Flask, container: Container) -> None:
    structures = container.fee_structure_service
    payments = container.fee_payment_service

    @app.route("/api/fee-structures", methods=["GET"], endpoint="fee_structures_list")
    @json_endpoint("Server error while fetching fee structures")
    @permission_required(MODULE, PermissionAction.READ)
    def list_structures(user):
        page, limit = page_args()
        result = structures.list_structures(
            user,
            search=arg_str("search"),
            fee_type=arg_enum("feeType", FeeType),
            class_id=arg_int("classId"),
            academic_year=arg_str("academicYear"),
            is_active=arg_bool("isActive"),
            page=page,
            limit=limit,
        )
        return page_response(result, "Fee structures retrieved successfully")

    @app.route("/api/fee-structures/<int:structure_id>", methods=["GET"], endpoint="fee_structures_get")
    @json_endpoint("Server error while fetching fee structure")
    @permission_required(MODULE, PermissionAction.READ)
    def get_structure(user, structure_id: int):
        return success(structures.get_structure(user, structure_id), "Fee structure retrieved successfully")

    @app.route("/api/fee-structures", methods=["POST"], endpoint="fee_structures_create")
    @json_endpoint("Server error while creating fee structure")
    @permission_required(MODULE, PermissionAction.CREATE)
    def create_structure(user):
        created = structures.create_structure(user, request_json())
        return success(created, "Fee structure created successfully", status=201)

    @app.route("/api/fee-structures/<int:structure_id>", methods=["PUT"], endpoint="fee_structures_update")
    @json_endpoint("Server error while updating fee structure")
    @permission_required(MODULE, PermissionAction.UPDATE)
    def update_structure(user, structure_id: int):
        updated = structures.update_structure(user, structure_id, request_json())
        return success(updated, "Fee structure updated successfully")

    @app.route("/api/fee-structures/<int:structure_id>", methods=["DELETE"], endpoint="fee_structures_delete")
    @json_endpoint("Server error while deleting fee structure")
    @permission_required(MODULE, PermissionAction.DELETE)
    def delete_structure(user, structure_id: int):
        structures.delete_structure(user, structure_id)
        return success(message="Fee structure deleted successfully")

    @app.route("/api/fees", methods=["GET"], endpoint="fees_list")
    @json_endpoint("Server error while fetching fee payments")
    @permission_required(MODULE, PermissionAction.READ)
    def list_payments(user):
        page, limit = page_args()
        result = payments.list_payments(
            user,
            search=arg_str("search"),
            fee_type=arg_enum("feeType", FeeType),
            payment_method=arg_enum("paymentMethod", PaymentMethod),
            status=arg_enum("status", PaymentStatus),
            student_id=arg_int("studentId"),
            start=arg_date("startDate"),
            end=arg_date("endDate"),
            branch_id=arg_int("branchId"),
            page=page,
            limit=limit,
        )
        return page_response(result, "Fee payments retrieved successfully")

    @app.route("/api/fees/stats/overview", methods=["GET"], endpoint="fees_stats")
    @json_endpoint("Server error while fetching fee statistics")
    @permission_required(MODULE, PermissionAction.READ)
    def fee_stats(user):
        return success(payments.stats(user, branch_id=arg_int("branchId")), "Fee statistics retrieved successfully")

    @app.route("/api/fees/<int:payment_id>", methods=["GET"], endpoint="fees_get")
    @json_endpoint("Server error while fetching fee payment")
    @permission_required(MODULE, PermissionAction.READ)
    def get_payment(user, payment_id: int):
        return success(payments.get_payment(user, payment_id), "Fee payment retrieved successfully")

    @app.route("/api/fees/<int:payment_id>/receipt-data", methods=["GET"], endpoint="fees_receipt_data")
    @json_endpoint("Server error while fetching receipt data")
    @permission_required(MODULE, PermissionAction.READ)
    def receipt_data(user, payment_id: int):
        return success(payments.receipt_data(user, payment_id), "Receipt data retrieved successfully")

    @app.route("/api/fees", methods=["POST"], endpoint="fees_create")
    @json_endpoint("Server error while recording fee payment")
    @permission_required(MODULE, PermissionAction.CREATE)
    def create_payment(user):
        return success(payments.create_payment(user, request_json()), "Fee payment recorded successfully", status=201)

    @app.route("/api/fees/<int:payment_id>", methods=["PUT"], endpoint="fees_update")
    @json_endpoint("Server error while updating fee payment")
    @permission_required(MODULE, PermissionAction.UPDATE)
    def update_payment(user, payment_id: int):
        return success(payments.update_payment(user, payment_id, request_json()), "Fee payment updated successfully")

    @app.route("/api/fees/<int:payment_id>", methods=["DELETE"], endpoint="fees_delete")
    @json_endpoint("Server error while deleting fee payment")
    @permission_required(MODULE, PermissionAction.DELETE)
    def delete_payment(user, payment_id: int):
        payments.delete_payment(user, payment_id)
        return success(message="Fee payment deleted successfully")

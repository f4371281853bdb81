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
from ..core.enums import PaymentMethod, PayrollStatus, PermissionAction

MODULE = "payroll"


def register(app: Flask, container: Container) -> None:
    payroll = container.payroll_service

    @app.route("/api/payroll", methods=["GET"], endpoint="payroll_list")
    @json_endpoint("Server error while fetching payroll entries")
    @permission_required(MODULE, PermissionAction.READ)
    def list_entries(user):
        page, limit = page_args()
        result = payroll.list_entries(
            user,
            search=arg_str("search"),
            month=arg_str("month"),
            year=arg_int("year"),
            status=arg_enum("status", PayrollStatus),
            payment_method=arg_enum("paymentMethod", PaymentMethod),
            sort_by=arg_str("sortBy") or "createdAt",
            ascending=arg_str("sortOrder") == "asc",
            page=page,
            limit=limit,
        )
        return page_response(result, "Payroll entries retrieved successfully")

    @app.route("/api/payroll/stats/overview", methods=["GET"], endpoint="payroll_stats")
    @json_endpoint("Server error while fetching payroll statistics")
    @permission_required(MODULE, PermissionAction.READ)
    def payroll_stats(user):
        return success(payroll.stats(user), "Payroll statistics retrieved successfully")

    @app.route("/api/payroll/pending/<month>/<int:year>", methods=["GET"], endpoint="payroll_pending")
    @json_endpoint("Server error while fetching pending payroll")
    @permission_required(MODULE, PermissionAction.READ)
    def pending_payroll(user, month: str, year: int):
        return success(payroll.pending(user, month, year), "Pending payroll retrieved successfully")

    @app.route("/api/payroll/<int:entry_id>", methods=["GET"], endpoint="payroll_get")
    @json_endpoint("Server error while fetching payroll entry")
    @permission_required(MODULE, PermissionAction.READ)
    def get_entry(user, entry_id: int):
        return success(payroll.get_entry(user, entry_id), "Payroll entry retrieved successfully")

    @app.route("/api/payroll", methods=["POST"], endpoint="payroll_create")
    @json_endpoint("Server error while creating payroll entry")
    @permission_required(MODULE, PermissionAction.CREATE)
    def create_entry(user):
        return success(payroll.create_entry(user, request_json()), "Payroll entry created successfully", status=201)

    @app.route("/api/payroll/<int:entry_id>", methods=["PUT"], endpoint="payroll_update")
    @json_endpoint("Server error while updating payroll entry")
    @permission_required(MODULE, PermissionAction.UPDATE)
    def update_entry(user, entry_id: int):
        return success(payroll.update_entry(user, entry_id, request_json()), "Payroll entry updated successfully")

    @app.route("/api/payroll/<int:entry_id>", methods=["DELETE"], endpoint="payroll_delete")
    @json_endpoint("Server error while deleting payroll entry")
    @permission_required(MODULE, PermissionAction.DELETE)
    def delete_entry(user, entry_id: int):
        payroll.delete_entry(user, entry_id)
        return success(message="Payroll entry deleted successfully")

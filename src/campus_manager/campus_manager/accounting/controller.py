from __future__ import annotations

from flask import Flask

from ..common.http import arg_date, arg_int, arg_str, json_endpoint, page_args, permission_required, success
from ..container import Container
from ..core.enums import PermissionAction

MODULE = "accounting"


def register(app: Flask, container: Container) -> None:
    accounting = container.accounting_service

    @app.route("/api/accounting/daybook", methods=["GET"], endpoint="accounting_daybook")
    @json_endpoint("Server error while fetching daybook")
    @permission_required(MODULE, PermissionAction.READ)
    def daybook(user):
        page, limit = page_args()
        result = accounting.daybook(
            user,
            start=arg_date("startDate"),
            end=arg_date("endDate"),
            transaction_type=arg_str("transactionType") or "all",
            search=arg_str("search"),
            page=page,
            limit=limit,
        )
        return success(result, "Daybook retrieved successfully")

    @app.route("/api/accounting/ledger", methods=["GET"], endpoint="accounting_ledger")
    @json_endpoint("Server error while fetching ledger")
    @permission_required(MODULE, PermissionAction.READ)
    def ledger(user):
        page, limit = page_args()
        result = accounting.ledger(
            user,
            account_type=arg_str("accountType") or "all",
            start=arg_date("startDate"),
            end=arg_date("endDate"),
            page=page,
            limit=limit,
        )
        return success(result, "Ledger retrieved successfully")

    @app.route("/api/accounting/fee-details", methods=["GET"], endpoint="accounting_fee_details")
    @json_endpoint("Server error while fetching fee details")
    @permission_required(MODULE, PermissionAction.READ)
    def fee_details(user):
        page, limit = page_args()
        result = accounting.fee_details(
            user, start=arg_date("startDate"), end=arg_date("endDate"), search=arg_str("search"), page=page, limit=limit
        )
        return success(result, "Fee details retrieved successfully")

    @app.route("/api/accounting/balance-sheet", methods=["GET"], endpoint="accounting_balance_sheet")
    @json_endpoint("Server error while generating balance sheet")
    @permission_required(MODULE, PermissionAction.READ)
    def balance_sheet(user):
        return success(accounting.balance_sheet(user, as_of=arg_date("asOfDate")), "Balance sheet generated successfully")

    @app.route("/api/accounting/annual-report", methods=["GET"], endpoint="accounting_annual_report")
    @json_endpoint("Server error while generating annual report")
    @permission_required(MODULE, PermissionAction.READ)
    def annual_report(user):
        return success(accounting.annual_report(user, year=arg_int("year")), "Annual report generated successfully")

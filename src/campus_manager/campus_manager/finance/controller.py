from __future__ import annotations

from flask import Flask

from ..common.catalog import CatalogService
from ..common.http import (
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
from ..core.enums import PaymentMethod, PermissionAction, Status

MODULE = "accounting"


def register(app: Flask, container: Container) -> None:
    expenses = container.expense_service
    income = container.income_service

    @app.route("/api/expenses", methods=["GET"], endpoint="expenses_list")
    @json_endpoint("Server error while fetching expenses")
    @permission_required(MODULE, PermissionAction.READ)
    def list_expenses(user):
        page, limit = page_args()
        result = expenses.list_expenses(
            user,
            search=arg_str("search"),
            category=arg_str("category"),
            payment_method=arg_enum("paymentMethod", PaymentMethod),
            start=arg_date("startDate"),
            end=arg_date("endDate"),
            sort_by=arg_str("sortBy") or "date",
            ascending=arg_str("sortOrder") == "asc",
            page=page,
            limit=limit,
        )
        return page_response(result, "Expenses retrieved successfully")

    @app.route("/api/expenses/stats/overview", methods=["GET"], endpoint="expenses_stats")
    @json_endpoint("Server error while fetching expense statistics")
    @permission_required(MODULE, PermissionAction.READ)
    def expense_stats(user):
        return success(expenses.stats(user), "Expense statistics retrieved successfully")

    @app.route("/api/expenses/<int:expense_id>", methods=["GET"], endpoint="expenses_get")
    @json_endpoint("Server error while fetching expense")
    @permission_required(MODULE, PermissionAction.READ)
    def get_expense(user, expense_id: int):
        return success(expenses.get_expense(user, expense_id), "Expense retrieved successfully")

    @app.route("/api/expenses", methods=["POST"], endpoint="expenses_create")
    @json_endpoint("Server error while creating expense")
    @permission_required(MODULE, PermissionAction.CREATE)
    def create_expense(user):
        return success(expenses.create_expense(user, request_json()), "Expense created successfully", status=201)

    @app.route("/api/expenses/<int:expense_id>", methods=["PUT"], endpoint="expenses_update")
    @json_endpoint("Server error while updating expense")
    @permission_required(MODULE, PermissionAction.UPDATE)
    def update_expense(user, expense_id: int):
        return success(expenses.update_expense(user, expense_id, request_json()), "Expense updated successfully")

    @app.route("/api/expenses/<int:expense_id>", methods=["DELETE"], endpoint="expenses_delete")
    @json_endpoint("Server error while deleting expense")
    @permission_required(MODULE, PermissionAction.DELETE)
    def delete_expense(user, expense_id: int):
        expenses.delete_expense(user, expense_id)
        return success(message="Expense deleted successfully")

    @app.route("/api/income", methods=["GET"], endpoint="income_list")
    @json_endpoint("Server error while fetching income records")
    @permission_required(MODULE, PermissionAction.READ)
    def list_income(user):
        page, limit = page_args()
        result = income.list_income(
            user,
            search=arg_str("search"),
            category=arg_str("category"),
            payment_method=arg_enum("paymentMethod", PaymentMethod),
            start=arg_date("startDate"),
            end=arg_date("endDate"),
            branch_id=arg_int("branchId"),
            page=page,
            limit=limit,
        )
        return page_response(result, "Income records retrieved successfully")

    @app.route("/api/income/stats", methods=["GET"], endpoint="income_stats")
    @json_endpoint("Server error while fetching income statistics")
    @permission_required(MODULE, PermissionAction.READ)
    def income_stats(user):
        return success(income.stats(user, branch_id=arg_int("branchId")), "Income statistics retrieved successfully")

    @app.route("/api/income/<int:income_id>", methods=["GET"], endpoint="income_get")
    @json_endpoint("Server error while fetching income record")
    @permission_required(MODULE, PermissionAction.READ)
    def get_income(user, income_id: int):
        return success(income.get_income(user, income_id), "Income record retrieved successfully")

    @app.route("/api/income", methods=["POST"], endpoint="income_create")
    @json_endpoint("Server error while recording income")
    @permission_required(MODULE, PermissionAction.CREATE)
    def create_income(user):
        return success(income.create_income(user, request_json()), "Income recorded successfully", status=201)

    @app.route("/api/income/<int:income_id>", methods=["DELETE"], endpoint="income_delete")
    @json_endpoint("Server error while deleting income record")
    @permission_required(MODULE, PermissionAction.DELETE)
    def delete_income(user, income_id: int):
        income.delete_income(user, income_id)
        return success(message="Income record deleted successfully")

    _register_catalog(app, container.expense_category_service, "/api/expense-categories", "expense_categories", "Expense category")
    _register_catalog(app, container.income_category_service, "/api/income-categories", "income_categories", "Income category")


def _register_catalog(app: Flask, catalog: CatalogService, prefix: str, name: str, label: str) -> None:
    """Category catalogs share one route shape; endpoints are namespaced by `name`."""

    @app.route(prefix, methods=["GET"], endpoint=f"{name}_list")
    @json_endpoint(f"Server error while fetching {label.lower()} list")
    @permission_required(MODULE, PermissionAction.READ)
    def list_entries(user):
        page, limit = page_args()
        result = catalog.list_entries(user, search=arg_str("search"), status=arg_enum("status", Status), page=page, limit=limit)
        return page_response(result, f"{label} list retrieved successfully")

    @app.route(f"{prefix}/active", methods=["GET"], endpoint=f"{name}_active")
    @json_endpoint(f"Server error while fetching {label.lower()} list")
    @permission_required(MODULE, PermissionAction.READ)
    def active_entries(user):
        return success(catalog.active_entries(user), f"{label} list retrieved successfully")

    @app.route(f"{prefix}/<int:entry_id>", methods=["GET"], endpoint=f"{name}_get")
    @json_endpoint(f"Server error while fetching {label.lower()}")
    @permission_required(MODULE, PermissionAction.READ)
    def get_entry(user, entry_id: int):
        return success(catalog.get_entry(user, entry_id), f"{label} retrieved successfully")

    @app.route(prefix, methods=["POST"], endpoint=f"{name}_create")
    @json_endpoint(f"Server error while creating {label.lower()}")
    @permission_required(MODULE, PermissionAction.CREATE)
    def create_entry(user):
        return success(catalog.create_entry(user, request_json()), f"{label} created successfully", status=201)

    @app.route(f"{prefix}/<int:entry_id>", methods=["PUT"], endpoint=f"{name}_update")
    @json_endpoint(f"Server error while updating {label.lower()}")
    @permission_required(MODULE, PermissionAction.UPDATE)
    def update_entry(user, entry_id: int):
        return success(catalog.update_entry(user, entry_id, request_json()), f"{label} updated successfully")

    @app.route(f"{prefix}/<int:entry_id>", methods=["DELETE"], endpoint=f"{name}_delete")
    @json_endpoint(f"Server error while deleting {label.lower()}")
    @permission_required(MODULE, PermissionAction.DELETE)
    def delete_entry(user, entry_id: int):
        catalog.delete_entry(user, entry_id)
        return success(message=f"{label} deleted successfully")

from __future__ import annotations

from flask import Flask

from ..common.http import arg_bool, arg_date, arg_enum, arg_int, json_endpoint, page_args, permission_required, request_json, success
from ..container import Container
from ..core.constants import DEFAULT_TRANSACTION_LIMIT
from ..core.enums import AccountType, PermissionAction

MODULE = "accounting"


def register(app: Flask, container: Container) -> None:
    accounts = container.account_service

    @app.route("/api/accounts", methods=["GET"], endpoint="accounts_list")
    @json_endpoint("Server error while fetching accounts")
    @permission_required(MODULE, PermissionAction.READ)
    def list_accounts(user):
        is_active = arg_bool("isActive")
        result = accounts.list_accounts(
            user,
            account_type=arg_enum("accountType", AccountType),
            is_active=True if is_active is None else is_active,
            branch_id=arg_int("branchId"),
        )
        return success(result, "Accounts retrieved successfully")

    @app.route("/api/accounts/balances", methods=["GET"], endpoint="accounts_balances")
    @json_endpoint("Server error while fetching account balances")
    @permission_required(MODULE, PermissionAction.READ)
    def balances(user):
        return success(accounts.balances(user, branch_id=arg_int("branchId")), "Account balances retrieved successfully")

    @app.route("/api/accounts/<int:account_id>", methods=["GET"], endpoint="accounts_get")
    @json_endpoint("Server error while fetching account")
    @permission_required(MODULE, PermissionAction.READ)
    def get_account(user, account_id: int):
        return success(accounts.get_account(user, account_id), "Account retrieved successfully")

    @app.route("/api/accounts", methods=["POST"], endpoint="accounts_create")
    @json_endpoint("Server error while creating account")
    @permission_required(MODULE, PermissionAction.CREATE)
    def create_account(user):
        return success(accounts.create_account(user, request_json()), "Account created successfully", status=201)

    @app.route("/api/accounts/<int:account_id>", methods=["PUT"], endpoint="accounts_update")
    @json_endpoint("Server error while updating account")
    @permission_required(MODULE, PermissionAction.UPDATE)
    def update_account(user, account_id: int):
        return success(accounts.update_account(user, account_id, request_json()), "Account updated successfully")

    @app.route("/api/accounts/<int:account_id>/transactions", methods=["GET"], endpoint="accounts_transactions")
    @json_endpoint("Server error while fetching account transactions")
    @permission_required(MODULE, PermissionAction.READ)
    def transactions(user, account_id: int):
        page, limit = page_args(DEFAULT_TRANSACTION_LIMIT)
        account, result = accounts.list_transactions(
            user,
            account_id,
            start=arg_date("startDate"),
            end=arg_date("endDate"),
            is_reconciled=arg_bool("isReconciled"),
            page=page,
            limit=limit,
        )
        return success(
            {"account": account, "transactions": result.items},
            "Account transactions retrieved successfully",
            pagination=result.meta(),
        )

    @app.route("/api/accounts/<int:account_id>/reconcile", methods=["POST"], endpoint="accounts_reconcile")
    @json_endpoint("Server error while reconciling transactions")
    @permission_required(MODULE, PermissionAction.UPDATE)
    def reconcile(user, account_id: int):
        count = accounts.reconcile(user, account_id, request_json())
        return success({"reconciled_count": count}, f"{count} transactions reconciled successfully")

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from ..activity.service import ActivityLogService
from ..branches.service import BranchService
from ..common.access import CurrentUser, can_access_branch, scoped_branch
from ..common.datetime_utils import as_datetime, now_local
from ..common.query import ListQuery, Page
from ..common.validators import Payload
from ..core.constants import DEFAULT_TRANSACTION_LIMIT
from ..core.enums import AccountType, ActivityAction, ReferenceType, TransactionType
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import Account, AccountTransaction
from .repository import AccountRepository, AccountTransactionRepository

logger = logging.getLogger(__name__)


def parse_account(data: Mapping[str, Any], *, partial: bool = False) -> dict:
    p = Payload(data, partial=partial)
    p.string("accountName", required=True, max_len=100, label="Account name")
    p.choice("accountType", AccountType, required=True, label="Account type")
    p.string("accountNumber", max_len=30, label="Account number")
    p.string("bankName", max_len=100, label="Bank name")
    p.string("branchName", max_len=100, label="Branch name")
    p.string("ifscCode", max_len=20, upper=True, label="IFSC code")
    p.string("description", max_len=500, label="Description")
    p.boolean("isActive")
    if not partial:
        p.number("openingBalance", minimum=0, default=0, label="Opening balance")
        p.identifier("branchId", label="Branch")
    values = p.validate()
    if not partial and values["account_type"] == AccountType.BANK and not values.get("account_number"):
        raise ValidationError("Account number is required for bank accounts")
    return values


class AccountService:
    """Use case: cash and bank accounts with a running balance and a transaction ledger."""

    def __init__(
        self,
        accounts: AccountRepository,
        transactions: AccountTransactionRepository,
        *,
        branches: BranchService,
        activity: ActivityLogService,
    ):
        self._accounts = accounts
        self._transactions = transactions
        self._branches = branches
        self._activity = activity

    def list_accounts(
        self,
        user: CurrentUser,
        *,
        account_type: Optional[AccountType] = None,
        is_active: Optional[bool] = True,
        branch_id: Optional[int] = None,
    ) -> list[Account]:
        query = ListQuery(order_by="account_name", descending=False)
        query = query.where(branch_id=scoped_branch(user, branch_id), account_type=account_type, is_active=is_active)
        return self._accounts.find_all(query)

    def get_account(self, user: CurrentUser, account_id: int) -> Account:
        account = self._accounts.get(account_id)
        if account is None:
            raise NotFoundError("Account not found")
        if not can_access_branch(user, account.branch_id):
            raise AuthorizationError("Access denied to this account")
        return account

    def create_account(self, user: CurrentUser, data: Mapping[str, Any]) -> Account:
        values = parse_account(data)
        values["branch_id"] = self._branches.resolve_branch_id(user, values.get("branch_id"))
        opening = float(values.get("opening_balance") or 0)
        values["opening_balance"] = opening
        values["current_balance"] = opening
        values["created_by"] = user.user_id

        account = self._accounts.add(values)
        if opening > 0:
            self._transactions.add(
                {
                    "account_id": account.id,
                    "transaction_date": now_local(),
                    "transaction_type": TransactionType.CREDIT,
                    "amount": opening,
                    "reference_type": ReferenceType.OPENING_BALANCE,
                    "description": f"Opening balance for {account.account_name}",
                    "balance_before": 0,
                    "balance_after": opening,
                    "branch_id": account.branch_id,
                    "created_by": user.user_id,
                }
            )
        self._activity.record(user, ActivityAction.CREATE, "Accounts", f"Created {account.account_type.value} account: {account.account_name}", branch_id=account.branch_id)
        return account

    def update_account(self, user: CurrentUser, account_id: int, data: Mapping[str, Any]) -> Account:
        current = self.get_account(user, account_id)
        changes = parse_account(data, partial=True)
        for key in ("opening_balance", "current_balance", "branch_id"):
            changes.pop(key, None)
        if changes.get("account_type", current.account_type) == AccountType.BANK and not changes.get("account_number", current.account_number):
            raise ValidationError("Account number is required for bank accounts")

        updated = self._accounts.update(current.id, changes)
        self._activity.record(user, ActivityAction.UPDATE, "Accounts", f"Updated account: {updated.account_name}", branch_id=updated.branch_id)
        return updated

    def list_transactions(
        self,
        user: CurrentUser,
        account_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        is_reconciled: Optional[bool] = None,
        page: int = 1,
        limit: int = DEFAULT_TRANSACTION_LIMIT,
    ) -> tuple[Account, Page[AccountTransaction]]:
        account = self.get_account(user, account_id)
        query = ListQuery(order_by="transaction_date").where(account_id=account.id, is_reconciled=is_reconciled)
        if start and end:
            query = query.between("transaction_date", start, end)
        return account, self._transactions.find_page(query.paged(page, limit))

    def reconcile(self, user: CurrentUser, account_id: int, data: Mapping[str, Any]) -> int:
        ids = (data or {}).get("transactionIds")
        if not isinstance(ids, list) or not ids:
            raise ValidationError("Transaction IDs are required")
        account = self.get_account(user, account_id)
        reconciled_date = as_datetime((data or {}).get("reconciledDate")) or now_local()

        try:
            wanted = [int(i) for i in ids]
        except (TypeError, ValueError):
            raise ValidationError("Transaction IDs are required")
        pending = self._transactions.find_all(ListQuery().where(id=wanted, account_id=account.id, is_reconciled=False))
        for txn in pending:
            self._transactions.update(txn.id, {"is_reconciled": True, "reconciled_date": reconciled_date})

        self._activity.record(user, ActivityAction.UPDATE, "Accounts", f"Reconciled {len(pending)} transactions for account: {account.account_name}", branch_id=account.branch_id)
        return len(pending)

    def record_transaction(
        self,
        user: CurrentUser,
        account_id: int,
        *,
        transaction_type: TransactionType,
        amount: float,
        reference_type: ReferenceType,
        description: str,
        reference_id: Optional[int] = None,
        reference_no: Optional[str] = None,
        transaction_date: Optional[datetime] = None,
    ) -> AccountTransaction:
        """Move an account's balance and write the matching ledger line."""
        account = self.get_account(user, account_id)
        before = account.current_balance
        after = before + amount if transaction_type == TransactionType.CREDIT else before - amount
        after = round(after, 2)

        self._accounts.update(account.id, {"current_balance": after})
        logger.info("Account %s %s %.2f (%.2f -> %.2f)", account.id, transaction_type.value, amount, before, after)
        return self._transactions.add(
            {
                "account_id": account.id,
                "transaction_date": transaction_date or now_local(),
                "transaction_type": transaction_type,
                "amount": amount,
                "reference_type": reference_type,
                "reference_id": reference_id,
                "reference_no": reference_no,
                "description": description,
                "balance_before": before,
                "balance_after": after,
                "branch_id": account.branch_id,
                "created_by": user.user_id,
            }
        )

    def reverse_reference(
        self,
        user: CurrentUser,
        account_id: int,
        *,
        reference_type: ReferenceType,
        reference_id: int,
    ) -> None:
        """Undo the ledger lines written for a source document that is being deleted."""
        account = self._accounts.get(account_id)
        if account is None:
            return
        lines = self._transactions.find_all(
            ListQuery().where(account_id=account.id, reference_type=reference_type, reference_id=reference_id)
        )
        balance = account.current_balance
        for line in lines:
            balance += -line.amount if line.transaction_type == TransactionType.CREDIT else line.amount
            self._transactions.delete(line.id)
        if lines:
            self._accounts.update(account.id, {"current_balance": round(balance, 2)})
            logger.info("Reversed %d ledger line(s) on account %s for %s %s", len(lines), account.id, reference_type.value, reference_id)

    def balances(self, user: CurrentUser, *, branch_id: Optional[int] = None) -> dict:
        accounts = self.list_accounts(user, branch_id=branch_id)
        cash = [a for a in accounts if a.account_type == AccountType.CASH]
        bank = [a for a in accounts if a.account_type == AccountType.BANK]
        return {
            "cash_balance": round(sum(a.current_balance for a in cash), 2),
            "bank_balance": round(sum(a.current_balance for a in bank), 2),
            "accounts": accounts,
        }


from __future__ import annotations

import logging
from datetime import datetime
from operator import attrgetter
from typing import Any, Mapping, Optional

from ..accounts.service import AccountService
from ..activity.service import ActivityLogService
from ..branches.service import BranchService
from ..common.access import CurrentUser, branch_scope, can_access_branch, load_in_scope, scoped_branch
from ..common.aggregation import group_totals, total
from ..common.catalog import CatalogService
from ..common.datetime_utils import last_months, month_key, now_local, reference_number, start_of_month, start_of_year
from ..common.query import ListQuery, Page
from ..common.validators import Payload
from ..core.enums import ActivityAction, PaymentMethod, ReferenceType, TransactionType
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import Expense, Income
from .repository import ExpenseCategoryRepository, ExpenseRepository, IncomeCategoryRepository, IncomeRepository

logger = logging.getLogger(__name__)

EXPENSE_METHODS = (PaymentMethod.CASH, PaymentMethod.BANK)
INCOME_METHODS = (PaymentMethod.CASH, PaymentMethod.BANK, PaymentMethod.CHEQUE, PaymentMethod.ONLINE)
EXPENSE_SORTABLE = {"date": "date", "category": "category", "amount": "amount", "description": "description", "createdAt": "created_at"}
_amount = attrgetter("amount")


def parse_expense(data: Mapping[str, Any], *, partial: bool = False) -> dict:
    p = Payload(data, partial=partial)
    p.date("date", required=True, label="Date")
    p.string("category", required=True, max_len=100, label="Category")
    p.string("description", required=True, min_len=5, max_len=500, label="Description")
    p.number("amount", required=True, minimum=0, label="Amount")
    p.choice("paymentMethod", PaymentMethod, allowed=EXPENSE_METHODS, required=True, label="Payment method")
    p.string("approvedBy", required=True, max_len=100, label="Approved by")
    p.string("remarks", max_len=500)
    p.identifier("branchId", label="Branch")
    return p.validate()


def parse_income(data: Mapping[str, Any]) -> dict:
    p = Payload(data, message="Category, description, amount, and source are required")
    p.date("date", label="Date")
    p.string("category", required=True, max_len=100, label="Category")
    p.string("description", required=True, max_len=500, label="Description")
    p.number("amount", required=True, minimum=0.01, label="Amount")
    p.choice("paymentMethod", PaymentMethod, allowed=INCOME_METHODS, default=PaymentMethod.CASH, label="Payment method")
    p.string("receivedFrom", required=True, max_len=200, label="Received from")
    p.string("contactInfo", max_len=200, label="Contact info")
    p.identifier("accountId", label="Account")
    p.string("remarks", max_len=500)
    p.identifier("branchId", label="Branch")
    return p.validate()


def _summary(items) -> dict:
    return {"total": total(items, _amount), "count": len(items)}


def monthly_trend(items, date_of, amount, *, moment: datetime, months: int = 12) -> list[dict]:
    """Totals per month for the last `months` months, oldest first, empty months included."""
    buckets = {month_key(m): {"month": month_key(m), "total": 0.0, "count": 0} for m in last_months(moment, months)}
    for item in items:
        bucket = buckets.get(month_key(date_of(item)))
        if bucket is not None:
            bucket["total"] = round(bucket["total"] + float(amount(item) or 0), 2)
            bucket["count"] += 1
    return list(buckets.values())


class ExpenseService:
    """Use case: expense vouchers."""

    def __init__(self, expenses: ExpenseRepository, *, branches: BranchService, activity: ActivityLogService):
        self._expenses = expenses
        self._branches = branches
        self._activity = activity

    def list_expenses(
        self,
        user: CurrentUser,
        *,
        search: Optional[str] = None,
        category: Optional[str] = None,
        payment_method: Optional[PaymentMethod] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        sort_by: str = "date",
        ascending: bool = False,
        page: int = 1,
        limit: int = 10,
    ) -> Page[Expense]:
        query = ListQuery(
            search=search,
            search_fields=("voucher_no", "description", "category", "approved_by"),
            order_by=EXPENSE_SORTABLE.get(sort_by, "date"),
            descending=not ascending,
        )
        query = query.where(branch_id=branch_scope(user), category=category, payment_method=payment_method)
        query = query.between("date", start, end)
        return self._expenses.find_page(query.paged(page, limit))

    def get_expense(self, user: CurrentUser, expense_id: int) -> Expense:
        return load_in_scope(self._expenses, user, expense_id, "Expense not found")

    def create_expense(self, user: CurrentUser, data: Mapping[str, Any]) -> Expense:
        values = parse_expense(data)
        values["branch_id"] = self._branches.resolve_branch_id(user, values.get("branch_id"))
        values["voucher_no"] = reference_number("VCH")
        values["created_by"] = user.user_id

        created = self._expenses.add(values)
        self._activity.record(
            user,
            ActivityAction.CREATE,
            "Expenses",
            f"Created expense: {created.voucher_no} - {created.category} - ₹{created.amount:g}",
            branch_id=created.branch_id,
        )
        return created

    def update_expense(self, user: CurrentUser, expense_id: int, data: Mapping[str, Any]) -> Expense:
        current = self.get_expense(user, expense_id)
        changes = parse_expense(data, partial=True)
        changes.pop("branch_id", None)

        updated = self._expenses.update(current.id, changes)
        self._activity.record(user, ActivityAction.UPDATE, "Expenses", f"Updated expense: {updated.voucher_no} - {updated.category}", branch_id=updated.branch_id)
        return updated

    def delete_expense(self, user: CurrentUser, expense_id: int) -> None:
        current = self.get_expense(user, expense_id)
        self._expenses.delete(current.id)
        self._activity.record(user, ActivityAction.DELETE, "Expenses", f"Deleted expense: {current.voucher_no} - {current.category} - ₹{current.amount:g}", branch_id=current.branch_id)

    def stats(self, user: CurrentUser) -> dict:
        now = now_local()
        expenses = self._expenses.find_all(ListQuery().where(branch_id=branch_scope(user)))
        return {
            "total_expenses": _summary(expenses),
            "monthly_expenses": _summary([e for e in expenses if e.date >= start_of_month(now)]),
            "yearly_expenses": _summary([e for e in expenses if e.date >= start_of_year(now)]),
            "category_stats": group_totals(expenses, lambda e: e.category, _amount, sort_by="total"),
            "payment_method_stats": group_totals(expenses, lambda e: e.payment_method, _amount, sort_by="total"),
            "monthly_trend": monthly_trend(expenses, lambda e: e.date, _amount, moment=now),
        }


class IncomeService:
    """Use case: non-fee income; credits the chosen account when one is given."""

    def __init__(
        self,
        income: IncomeRepository,
        *,
        accounts: AccountService,
        branches: BranchService,
        activity: ActivityLogService,
    ):
        self._income = income
        self._accounts = accounts
        self._branches = branches
        self._activity = activity

    def list_income(
        self,
        user: CurrentUser,
        *,
        search: Optional[str] = None,
        category: Optional[str] = None,
        payment_method: Optional[PaymentMethod] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        branch_id: Optional[int] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[Income]:
        query = ListQuery(search=search, search_fields=("receipt_no", "description", "received_from"), order_by="date")
        query = query.where(branch_id=scoped_branch(user, branch_id), category=category, payment_method=payment_method)
        if start and end:
            query = query.between("date", start, end)
        return self._income.find_page(query.paged(page, limit))

    def get_income(self, user: CurrentUser, income_id: int) -> Income:
        income = self._income.get(income_id)
        if income is None:
            raise NotFoundError("Income entry not found")
        if not can_access_branch(user, income.branch_id):
            raise AuthorizationError("Access denied to this income entry")
        return income

    def create_income(self, user: CurrentUser, data: Mapping[str, Any]) -> Income:
        values = parse_income(data)
        values["branch_id"] = self._branches.resolve_branch_id(user, values.get("branch_id"))
        values["receipt_no"] = reference_number("INC")
        values["date"] = values.get("date") or now_local()
        values["created_by"] = user.user_id
        if values.get("account_id"):
            # Fails with 404/403 before anything is written.
            account = self._accounts.get_account(user, values["account_id"])
            if account.branch_id != values["branch_id"]:
                raise ValidationError("Account does not belong to this branch")

        income = self._income.add(values)
        if income.account_id:
            self._accounts.record_transaction(
                user,
                income.account_id,
                transaction_type=TransactionType.CREDIT,
                amount=income.amount,
                reference_type=ReferenceType.ADJUSTMENT,
                reference_id=income.id,
                reference_no=income.receipt_no,
                description=f"Income: {income.description}",
                transaction_date=income.date,
            )
        self._activity.record(
            user,
            ActivityAction.CREATE,
            "Income",
            f"Recorded income: {income.receipt_no} - {income.category} - ₹{income.amount:g}",
            branch_id=income.branch_id,
        )
        return income

    def delete_income(self, user: CurrentUser, income_id: int) -> None:
        income = self.get_income(user, income_id)
        if income.account_id:
            self._accounts.reverse_reference(user, income.account_id, reference_type=ReferenceType.ADJUSTMENT, reference_id=income.id)
        self._income.delete(income.id)
        self._activity.record(user, ActivityAction.DELETE, "Income", f"Deleted income: {income.receipt_no} - {income.category}", branch_id=income.branch_id)

    def stats(self, user: CurrentUser, *, branch_id: Optional[int] = None) -> dict:
        now = now_local()
        entries = self._income.find_all(ListQuery().where(branch_id=scoped_branch(user, branch_id)))
        return {
            "total_income": _summary(entries),
            "monthly_income": _summary([i for i in entries if i.date >= start_of_month(now)]),
            "category_stats": group_totals(entries, lambda i: i.category, _amount, sort_by="total"),
        }


def build_expense_category_service(
    categories: ExpenseCategoryRepository,
    expenses: ExpenseRepository,
    *,
    branches: BranchService,
    activity: ActivityLogService,
) -> CatalogService:
    def in_use(category) -> bool:
        return expenses.count(ListQuery().where(category=category.name, branch_id=category.branch_id)) > 0

    return CatalogService(
        categories,
        module="Expense Categories",
        entity="Expense category",
        activity=activity,
        resolve_branch=branches.resolve_branch_id,
        in_use=in_use,
    )


def build_income_category_service(
    categories: IncomeCategoryRepository,
    income: IncomeRepository,
    *,
    branches: BranchService,
    activity: ActivityLogService,
) -> CatalogService:
    def in_use(category) -> bool:
        return income.count(ListQuery().where(category=category.name, branch_id=category.branch_id)) > 0

    return CatalogService(
        categories,
        module="Income Categories",
        entity="Income category",
        activity=activity,
        resolve_branch=branches.resolve_branch_id,
        in_use=in_use,
    )

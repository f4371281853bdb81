"""Read-only financial views built from fee payments, expenses and payroll.

Nothing here writes. Every view fetches the branch-scoped rows for its date
window and aggregates them in Python.
"""

from __future__ import annotations

import math
from datetime import datetime, time, timedelta
from typing import Any, Optional

from ..common.access import CurrentUser, branch_scope
from ..common.aggregation import group_totals, total
from ..common.datetime_utils import end_of_day, now_local, start_of_month
from ..common.query import ListQuery
from ..core.constants import BALANCE_TOLERANCE, FISCAL_YEAR_START_MONTH, MONTH_NAMES
from ..core.enums import PaymentStatus, PayrollStatus
from ..core.exceptions import ValidationError
from ..fees.repository import FeePaymentRepository
from ..finance.repository import ExpenseRepository
from ..payroll.repository import PayrollRepository

DAYBOOK_TYPES = ("all", "income", "expense")
LEDGER_TYPES = ("all", "fees", "expenses", "payroll")
DUE_STATUSES = [PaymentStatus.PENDING, PaymentStatus.PARTIAL]


def table_pagination(total_items: int, page: int, limit: int) -> dict:
    return {
        "current_page": page,
        "total_pages": math.ceil(total_items / limit) if limit else 0,
        "total_items": total_items,
        "items_per_page": limit,
    }


def _slice(rows: list, page: int, limit: int) -> list:
    start = (max(page, 1) - 1) * limit
    return rows[start : start + limit]


def _end(value: Optional[datetime]) -> Optional[datetime]:
    # A bare date as the upper bound means "through the end of that day".
    if value is not None and value.time() == time.min:
        return end_of_day(value)
    return value


class AccountingService:
    def __init__(self, payments: FeePaymentRepository, expenses: ExpenseRepository, payroll: PayrollRepository):
        self._payments = payments
        self._expenses = expenses
        self._payroll = payroll

    def _fees(self, user: CurrentUser, start=None, end=None, status=None, search: Optional[str] = None):
        query = ListQuery(order_by="payment_date", search=search, search_fields=("receipt_no", "transaction_id"))
        query = query.where(branch_id=branch_scope(user), status=status).between("payment_date", start, _end(end))
        return self._payments.find_all(query)

    def _expense_rows(self, user: CurrentUser, start=None, end=None):
        query = ListQuery(order_by="date").where(branch_id=branch_scope(user)).between("date", start, _end(end))
        return self._expenses.find_all(query)

    def _paid_payroll(self, user: CurrentUser, start=None, end=None):
        query = ListQuery(order_by="payment_date").where(branch_id=branch_scope(user), status=PayrollStatus.PAID)
        return self._payroll.find_all(query.between("payment_date", start, _end(end)))

    def daybook(
        self,
        user: CurrentUser,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        transaction_type: str = "all",
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> dict:
        if transaction_type not in DAYBOOK_TYPES:
            raise ValidationError(f"Transaction type must be one of: {', '.join(DAYBOOK_TYPES)}")
        now = now_local()
        start = start or start_of_month(now)
        end = end or now

        rows: list[dict[str, Any]] = []
        if transaction_type in ("all", "income"):
            for p in self._fees(user, start, end, status=PaymentStatus.PAID):
                rows.append(
                    {
                        "id": p.id,
                        "date": p.payment_date,
                        "type": "income",
                        "category": "Fee Payment",
                        "description": f"Fee payment from {p.student_name} - Receipt #{p.receipt_no}",
                        "amount": p.total_amount,
                        "payment_method": p.payment_method,
                        "reference_number": p.receipt_no,
                        "student_name": p.student_name,
                        "class_name": p.class_name,
                    }
                )
        if transaction_type in ("all", "expense"):
            for e in self._expense_rows(user, start, end):
                rows.append(
                    {
                        "id": e.id,
                        "date": e.date,
                        "type": "expense",
                        "category": e.category or "Uncategorized",
                        "description": e.description,
                        "amount": e.amount,
                        "payment_method": e.payment_method,
                        "reference_number": e.voucher_no,
                    }
                )

        rows.sort(key=lambda r: r["date"], reverse=True)
        if search:
            needle = search.lower()
            fields = ("description", "category", "reference_number", "student_name")
            rows = [r for r in rows if any(needle in str(r.get(f) or "").lower() for f in fields)]

        income = total((r for r in rows if r["type"] == "income"), lambda r: r["amount"])
        expense = total((r for r in rows if r["type"] == "expense"), lambda r: r["amount"])
        return {
            "transactions": _slice(rows, page, limit),
            "pagination": table_pagination(len(rows), page, limit),
            "summary": {"total_income": income, "total_expense": expense, "net_balance": round(income - expense, 2)},
        }

    def ledger(
        self,
        user: CurrentUser,
        *,
        account_type: str = "all",
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        page: int = 1,
        limit: int = 10,
    ) -> dict:
        if account_type not in LEDGER_TYPES:
            raise ValidationError(f"Account type must be one of: {', '.join(LEDGER_TYPES)}")

        accounts: list[dict[str, Any]] = []
        if account_type in ("all", "fees"):
            fees = self._fees(user, start, end, status=PaymentStatus.PAID)
            accounts.append(
                {
                    "account_name": "Fee Income",
                    "account_type": "income",
                    "balance": total(fees, lambda p: p.total_amount),
                    "transaction_count": len(fees),
                }
            )
        if account_type in ("all", "expenses"):
            by_category = group_totals(self._expense_rows(user, start, end), lambda e: e.category or None, lambda e: e.amount, sort_by="total")
            for row in by_category:
                accounts.append(
                    {
                        "account_name": row["name"] or "Uncategorized Expense",
                        "account_type": "expense",
                        "balance": row["total"],
                        "transaction_count": row["count"],
                    }
                )
        if account_type in ("all", "payroll"):
            payroll = self._paid_payroll(user, start, end)
            accounts.append(
                {
                    "account_name": "Payroll Expenses",
                    "account_type": "expense",
                    "balance": total(payroll, lambda e: e.net_salary),
                    "transaction_count": len(payroll),
                }
            )

        credit = total((a for a in accounts if a["account_type"] == "income"), lambda a: a["balance"])
        debit = total((a for a in accounts if a["account_type"] == "expense"), lambda a: a["balance"])
        return {
            "accounts": _slice(accounts, page, limit),
            "pagination": table_pagination(len(accounts), page, limit),
            "trial_balance": {"total_debit": debit, "total_credit": credit, "difference": round(credit - debit, 2)},
        }

    def fee_details(
        self,
        user: CurrentUser,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> dict:
        payments = self._fees(user, start, end, search=search)
        items = [item for p in payments for item in p.fee_items]
        by_type = {row["name"]: row["total"] for row in group_totals(items, lambda i: i.fee_type, lambda i: i.amount)}
        return {
            "fee_payments": _slice(payments, page, limit),
            "pagination": table_pagination(len(payments), page, limit),
            "breakdown": {
                "by_fee_type": by_type,
                "total_paid": total(payments, lambda p: p.total_amount),
                "paid_count": sum(1 for p in payments if p.status == PaymentStatus.PAID),
                "pending_count": sum(1 for p in payments if p.status == PaymentStatus.PENDING),
                "partial_count": sum(1 for p in payments if p.status == PaymentStatus.PARTIAL),
            },
            "payment_method_breakdown": group_totals(payments, lambda p: p.payment_method, lambda p: p.total_amount, sort_by="total"),
        }

    def balance_sheet(self, user: CurrentUser, *, as_of: Optional[datetime] = None) -> dict:
        as_of = _end(as_of) or now_local()
        fee_income = total(self._fees(user, end=as_of, status=PaymentStatus.PAID), lambda p: p.total_amount)
        receivable = total(self._fees(user, end=as_of, status=DUE_STATUSES), lambda p: p.total_amount)
        expenses = total(self._expense_rows(user, end=as_of), lambda e: e.amount)
        payroll = total(self._paid_payroll(user, end=as_of), lambda e: e.net_salary)
        pending_payroll_query = ListQuery().where(branch_id=branch_scope(user), status=PayrollStatus.PENDING).between("payment_date", None, as_of)
        payable = total(self._payroll.find_all(pending_payroll_query), lambda e: e.net_salary)

        cash_and_bank = round(fee_income - expenses - payroll, 2)
        total_assets = round(cash_and_bank + receivable, 2)
        equity = round(total_assets - payable, 2)
        return {
            "as_of_date": as_of,
            "assets": {"cash_and_bank": cash_and_bank, "accounts_receivable": receivable, "total_assets": total_assets},
            "liabilities": {"accounts_payable": payable, "total_liabilities": payable},
            "equity": {"retained_earnings": equity, "total_equity": equity},
            "total_assets_and_equity": total_assets,
            "total_liabilities_and_equity": round(payable + equity, 2),
            "is_balanced": abs(total_assets - (payable + equity)) < BALANCE_TOLERANCE,
        }

    def annual_report(self, user: CurrentUser, *, year: Optional[int] = None) -> dict:
        year = int(year or now_local().year)
        start = datetime(year, FISCAL_YEAR_START_MONTH, 1)
        end = end_of_day(datetime(year + 1, FISCAL_YEAR_START_MONTH, 1) - timedelta(days=1))

        fees = self._fees(user, start, end, status=PaymentStatus.PAID)
        expenses = self._expense_rows(user, start, end)
        payroll = self._paid_payroll(user, start, end)

        def by_month(rows, date_of, amount) -> dict:
            sums: dict[tuple[int, int], float] = {}
            for row in rows:
                moment = date_of(row)
                sums[(moment.year, moment.month)] = sums.get((moment.year, moment.month), 0.0) + float(amount(row) or 0)
            return sums

        fee_months = by_month(fees, lambda p: p.payment_date, lambda p: p.total_amount)
        expense_months = by_month(expenses, lambda e: e.date, lambda e: e.amount)
        payroll_months = by_month(payroll, lambda e: e.payment_date, lambda e: e.net_salary)

        summary = []
        for offset in range(12):
            month = (FISCAL_YEAR_START_MONTH - 1 + offset) % 12 + 1
            month_year = year if month >= FISCAL_YEAR_START_MONTH else year + 1
            key = (month_year, month)
            income = round(fee_months.get(key, 0.0), 2)
            spent = round(expense_months.get(key, 0.0) + payroll_months.get(key, 0.0), 2)
            summary.append(
                {
                    "month": MONTH_NAMES[month - 1],
                    "month_number": month,
                    "year": month_year,
                    "income": income,
                    "expenses": spent,
                    "net_profit": round(income - spent, 2),
                }
            )

        total_income = round(sum(r["income"] for r in summary), 2)
        total_expenses = round(sum(r["expenses"] for r in summary), 2)
        net_profit = round(total_income - total_expenses, 2)
        return {
            "fiscal_year": f"{year}-{year + 1}",
            "start_date": start,
            "end_date": end,
            "monthly_summary": summary,
            "expense_by_category": group_totals(expenses, lambda e: e.category or "Uncategorized Expense", lambda e: e.amount, sort_by="total"),
            "summary": {
                "total_income": total_income,
                "total_expenses": total_expenses,
                "net_profit": net_profit,
                "profit_margin": round(net_profit / total_income * 100, 2) if total_income > 0 else 0,
            },
        }

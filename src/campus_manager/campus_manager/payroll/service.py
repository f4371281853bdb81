from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ..activity.service import ActivityLogService
from ..branches.service import BranchService
from ..common.access import CurrentUser, branch_scope, load_in_scope
from ..common.aggregation import group_totals, total
from ..common.datetime_utils import now_local
from ..common.query import ListQuery, Page
from ..common.validators import QUERY_VALIDATION_FAILED, Payload
from ..core.constants import MONTH_NAMES, PAYROLL_MAX_YEAR, PAYROLL_MIN_YEAR, RECENT_ITEMS
from ..core.enums import ActivityAction, PaymentMethod, PayrollStatus, Status
from ..core.exceptions import FieldError, NotFoundError, ValidationError
from ..staff.repository import StaffRepository
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import PayrollEntry
from .repository import PayrollRepository

logger = logging.getLogger(__name__)

PAYROLL_METHODS = (PaymentMethod.CASH, PaymentMethod.BANK)
SORTABLE = {
    "staffName": "staff_name",
    "month": "month",
    "year": "year",
    "netSalary": "net_salary",
    "paymentDate": "payment_date",
    "createdAt": "created_at",
}
MONTH_MESSAGE = f"Month must be one of: {', '.join(MONTH_NAMES)}"


def month_name(value: Any) -> Optional[str]:
    """Accept 'march', 'Mar' or 3 and return the month name."""
    text = str(value or "").strip()
    if text.isdigit() and 1 <= int(text) <= 12:
        return MONTH_NAMES[int(text) - 1]
    for name in MONTH_NAMES:
        if text.lower() in (name.lower(), name[:3].lower()):
            return name
    return None


def require_month(value: Any) -> str:
    name = month_name(value)
    if name is None:
        raise ValidationError(QUERY_VALIDATION_FAILED, [FieldError(field="month", message=MONTH_MESSAGE)])
    return name


def parse_payroll(data: Mapping[str, Any]) -> dict:
    p = Payload(data)
    p.identifier("staffId", required=True, label="Staff")
    p.string("month", required=True, label="Month")
    p.integer("year", required=True, minimum=PAYROLL_MIN_YEAR, maximum=PAYROLL_MAX_YEAR, label="Year")
    p.number("allowances", minimum=0, default=0, label="Allowances")
    p.number("deductions", minimum=0, default=0, label="Deductions")
    p.choice("paymentMethod", PaymentMethod, allowed=PAYROLL_METHODS, required=True, label="Payment method")
    p.choice("status", PayrollStatus, default=PayrollStatus.PAID)
    p.identifier("branchId", label="Branch")
    if p.values.get("month"):
        p.values["month"] = month_name(p.values["month"])
        if p.values["month"] is None:
            p.error("month", MONTH_MESSAGE)
    return p.validate()


def parse_payroll_update(data: Mapping[str, Any]) -> dict:
    p = Payload(data, partial=True)
    p.number("allowances", minimum=0, label="Allowances")
    p.number("deductions", minimum=0, label="Deductions")
    p.choice("paymentMethod", PaymentMethod, allowed=PAYROLL_METHODS, label="Payment method")
    p.choice("status", PayrollStatus)
    return p.validate()


class PayrollService:
    """Use case: monthly salary entries per staff member."""

    def __init__(
        self,
        payroll: PayrollRepository,
        staff: StaffRepository,
        *,
        branches: BranchService,
        activity: ActivityLogService,
        calculator: Optional[PayrollCalculator] = None,
    ):
        self._payroll = payroll
        self._staff = staff
        self._branches = branches
        self._activity = activity
        self._calculator = calculator or StandardPayrollCalculator()

    def list_entries(
        self,
        user: CurrentUser,
        *,
        search: Optional[str] = None,
        month: Optional[str] = None,
        year: Optional[int] = None,
        status: Optional[PayrollStatus] = None,
        payment_method: Optional[PaymentMethod] = None,
        sort_by: str = "createdAt",
        ascending: bool = False,
        page: int = 1,
        limit: int = 10,
    ) -> Page[PayrollEntry]:
        query = ListQuery(
            search=search,
            search_fields=("staff_name",),
            order_by=SORTABLE.get(sort_by, "created_at"),
            descending=not ascending,
        )
        query = query.where(
            branch_id=branch_scope(user),
            month=require_month(month) if month else None,
            year=year,
            status=status,
            payment_method=payment_method,
        )
        return self._payroll.find_page(query.paged(page, limit))

    def get_entry(self, user: CurrentUser, entry_id: int) -> PayrollEntry:
        return load_in_scope(self._payroll, user, entry_id, "Payroll entry not found")

    def create_entry(self, user: CurrentUser, data: Mapping[str, Any]) -> PayrollEntry:
        values = parse_payroll(data)
        branch_id = self._branches.resolve_branch_id(user, values.get("branch_id"))
        staff = self._staff.get(values["staff_id"])
        if staff is None or staff.branch_id != branch_id:
            raise NotFoundError("Staff member not found")

        if self._payroll.find_one(staff_id=staff.id, month=values["month"], year=values["year"], branch_id=branch_id):
            raise ValidationError("Payroll entry already exists for this staff member for the specified month and year")

        allowances = values.get("allowances") or 0
        deductions = values.get("deductions") or 0
        net = self._calculator.net_salary(basic=staff.salary, allowances=allowances, deductions=deductions)
        created = self._payroll.add(
            {
                "staff_id": staff.id,
                "staff_name": staff.name,
                "month": values["month"],
                "year": values["year"],
                "basic_salary": staff.salary,
                "allowances": allowances,
                "deductions": deductions,
                "net_salary": net,
                "payment_date": now_local(),
                "payment_method": values["payment_method"],
                "status": values.get("status", PayrollStatus.PAID),
                "branch_id": branch_id,
                "created_by": user.user_id,
            }
        )
        self._activity.record(
            user,
            ActivityAction.CREATE,
            "Payroll",
            f"Created payroll entry: {staff.name} - {created.month} {created.year} - ₹{net:g}",
            branch_id=branch_id,
        )
        return created

    def update_entry(self, user: CurrentUser, entry_id: int, data: Mapping[str, Any]) -> PayrollEntry:
        current = self.get_entry(user, entry_id)
        changes = parse_payroll_update(data)
        if "allowances" in changes or "deductions" in changes:
            changes["net_salary"] = self._calculator.net_salary(
                basic=current.basic_salary,
                allowances=changes.get("allowances", current.allowances),
                deductions=changes.get("deductions", current.deductions),
            )

        updated = self._payroll.update(current.id, changes)
        self._activity.record(user, ActivityAction.UPDATE, "Payroll", f"Updated payroll entry: {updated.staff_name} - {updated.month} {updated.year}", branch_id=updated.branch_id)
        return updated

    def delete_entry(self, user: CurrentUser, entry_id: int) -> None:
        current = self.get_entry(user, entry_id)
        self._payroll.delete(current.id)
        self._activity.record(user, ActivityAction.DELETE, "Payroll", f"Deleted payroll entry: {current.staff_name} - {current.month} {current.year}", branch_id=current.branch_id)

    def stats(self, user: CurrentUser) -> dict:
        now = now_local()
        current_month = MONTH_NAMES[now.month - 1]
        entries = self._payroll.find_all(ListQuery().where(branch_id=branch_scope(user)))
        this_month = [e for e in entries if e.month == current_month and e.year == now.year]

        monthly = group_totals(entries, lambda e: (e.year, MONTH_NAMES.index(e.month)), lambda e: e.net_salary)
        monthly.sort(key=lambda r: r["name"], reverse=True)
        monthly_stats = []
        for row in monthly[:12]:
            year, index = row["name"]
            monthly_stats.append({"month": MONTH_NAMES[index], "year": year, "total": row["total"], "count": row["count"]})

        return {
            "total_entries": len(entries),
            "total_amount_paid": total(entries, lambda e: e.net_salary),
            "current_month_stats": {
                "total": total(this_month, lambda e: e.net_salary),
                "count": len(this_month),
                "avg_salary": round(total(this_month, lambda e: e.net_salary) / len(this_month), 2) if this_month else 0,
            },
            "monthly_stats": monthly_stats,
            "payment_method_stats": group_totals(entries, lambda e: e.payment_method, lambda e: e.net_salary, sort_by="total"),
            "status_stats": group_totals(entries, lambda e: e.status),
            "recent_entries": self.recent(user),
        }

    def pending(self, user: CurrentUser, month: str, year: int) -> dict:
        month = require_month(month)
        scope = branch_scope(user)
        staff = self._staff.find_all(ListQuery(order_by="name", descending=False).where(branch_id=scope, status=Status.ACTIVE))
        processed = self._payroll.find_all(ListQuery().where(branch_id=scope, month=month, year=int(year)))
        processed_ids = {e.staff_id for e in processed}
        pending_staff = [
            {"id": s.id, "name": s.name, "employee_id": s.employee_id, "designation": s.designation, "salary": s.salary}
            for s in staff
            if s.id not in processed_ids
        ]
        return {
            "month": month,
            "year": int(year),
            "pending_count": len(pending_staff),
            "total_staff": len(staff),
            "processed_count": len(processed),
            "pending_staff": pending_staff,
        }

    def recent(self, user: CurrentUser, limit: int = RECENT_ITEMS) -> list[PayrollEntry]:
        return self._payroll.find_all(ListQuery(order_by="payment_date").where(branch_id=branch_scope(user)).paged(1, limit))

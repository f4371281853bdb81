from __future__ import annotations

from datetime import datetime
from operator import attrgetter
from typing import Any, Optional

from ..activity.service import ActivityLogService
from ..common.access import CurrentUser, branch_scope
from ..common.aggregation import bucket_counts, group_totals, total
from ..common.datetime_utils import last_months, month_key, now_local, start_of_month, start_of_year, whole_years_between
from ..common.query import ListQuery, Page
from ..core.constants import DEFAULT_FEE_DUES_LIMIT, DEFAULT_TRANSPORT_REPORT_LIMIT
from ..core.enums import PaymentStatus, Status, TransportType
from ..core.exceptions import ValidationError
from ..fees.repository import FeePaymentRepository
from ..finance.repository import ExpenseRepository
from ..payroll.repository import PayrollRepository
from ..staff.repository import StaffRepository
from ..students.repository import StudentRepository
from ..textbooks.repository import TextBookRepository
from ..transport.repository import TransportRouteRepository

AGE_BUCKETS = ("Under 5", "5-7 years", "8-10 years", "11-13 years", "14-16 years", "17+ years")
SALARY_BUCKETS = ("Below 20K", "20K-40K", "40K-60K", "60K-80K", "Above 80K")
EXPERIENCE_BUCKETS = ("Less than 1 year", "1-3 years", "3-5 years", "5-10 years", "10+ years")
AGING_BUCKETS = ("Not Due Yet", "1-30 Days", "31-60 Days", "61-90 Days", "90+ Days")
DUE_STATUSES = [PaymentStatus.PENDING, PaymentStatus.PARTIAL]


def age_bucket(age: int) -> str:
    if age < 5:
        return "Under 5"
    if age < 8:
        return "5-7 years"
    if age < 11:
        return "8-10 years"
    if age < 14:
        return "11-13 years"
    if age < 17:
        return "14-16 years"
    return "17+ years"


def salary_bucket(salary: float) -> str:
    if salary < 20000:
        return "Below 20K"
    if salary < 40000:
        return "20K-40K"
    if salary < 60000:
        return "40K-60K"
    if salary < 80000:
        return "60K-80K"
    return "Above 80K"


def experience_bucket(years: int) -> str:
    if years < 1:
        return "Less than 1 year"
    if years < 3:
        return "1-3 years"
    if years < 5:
        return "3-5 years"
    if years < 10:
        return "5-10 years"
    return "10+ years"


def aging_bucket(days_due: int) -> str:
    if days_due <= 0:
        return "Not Due Yet"
    if days_due <= 30:
        return "1-30 Days"
    if days_due <= 60:
        return "31-60 Days"
    if days_due <= 90:
        return "61-90 Days"
    return "90+ Days"


def _page(rows: list, page: int, limit: Optional[int]) -> Page:
    """limit=None returns every row on one page (used by exports)."""
    if limit is None:
        return Page(items=rows, total=len(rows), page=1, limit=max(len(rows), 1))
    return Page.from_items(rows, page=page, limit=limit)


def require_range(start: Optional[datetime], end: Optional[datetime]) -> None:
    if start is None or end is None:
        raise ValidationError("Start date and end date are required")
    if start > end:
        raise ValidationError("Start date must be before end date")


class ReportService:
    """Dashboards and analytical reports. Everything is branch-scoped for non super admins."""

    def __init__(
        self,
        *,
        students: StudentRepository,
        staff: StaffRepository,
        payments: FeePaymentRepository,
        expenses: ExpenseRepository,
        payroll: PayrollRepository,
        textbooks: TextBookRepository,
        routes: TransportRouteRepository,
        activity: ActivityLogService,
    ):
        self._students = students
        self._staff = staff
        self._payments = payments
        self._expenses = expenses
        self._payroll = payroll
        self._textbooks = textbooks
        self._routes = routes
        self._activity = activity

    def _scoped(self, user: CurrentUser, **filters: Any) -> ListQuery:
        return ListQuery().where(branch_id=branch_scope(user), **filters)

    def dashboard(self, user: CurrentUser) -> dict:
        now = now_local()
        month, year = start_of_month(now), start_of_year(now)
        students = self._students.find_all(self._scoped(user))
        staff = self._staff.find_all(self._scoped(user))
        payments = self._payments.find_all(self._scoped(user))
        expenses = self._expenses.find_all(self._scoped(user))
        books = self._textbooks.find_all(self._scoped(user))

        return {
            "students": {
                "total": len(students),
                "active": sum(1 for s in students if s.status == Status.ACTIVE),
                "inactive": sum(1 for s in students if s.status == Status.INACTIVE),
            },
            "staff": {
                "total": len(staff),
                "active": sum(1 for s in staff if s.status == Status.ACTIVE),
                "total_salary": total(staff, lambda s: s.salary),
            },
            "fees": {
                "total_collection": total(payments, lambda p: p.total_amount),
                "monthly_collection": total((p for p in payments if p.payment_date >= month), lambda p: p.total_amount),
                "yearly_collection": total((p for p in payments if p.payment_date >= year), lambda p: p.total_amount),
            },
            "expenses": {
                "total_expenses": total(expenses, lambda e: e.amount),
                "monthly_expenses": total((e for e in expenses if e.date >= month), lambda e: e.amount),
                "yearly_expenses": total((e for e in expenses if e.date >= year), lambda e: e.amount),
            },
            "textbooks": {
                "total_books": sum(b.quantity for b in books),
                "available_books": sum(b.available for b in books),
                "total_value": round(sum(b.quantity * b.price for b in books), 2),
            },
            "recent_activities": self._activity.recent(user),
            "generated_at": now,
        }

    def financial(self, user: CurrentUser, *, start: Optional[datetime], end: Optional[datetime], include_breakdown: bool = True) -> dict:
        require_range(start, end)
        payments = self._payments.find_all(self._scoped(user).between("payment_date", start, end))
        expenses = self._expenses.find_all(self._scoped(user).between("date", start, end))
        payroll = self._payroll.find_all(self._scoped(user).between("payment_date", start, end))

        income = total(payments, lambda p: p.total_amount)
        general = total(expenses, lambda e: e.amount)
        salaries = total(payroll, lambda e: e.net_salary)
        spent = round(general + salaries, 2)
        net = round(income - spent, 2)

        report: dict[str, Any] = {
            "period": {"start_date": start, "end_date": end},
            "summary": {
                "total_income": income,
                "total_expenses": spent,
                "net_profit": net,
                "profit_margin": round(net / income * 100, 2) if income > 0 else 0,
            },
            "income": {"fee_collection": {"total_amount": income, "total_transactions": len(payments)}},
            "expenses": {
                "general_expenses": {"total_amount": general, "total_transactions": len(expenses)},
                "payroll_expenses": {"total_amount": salaries, "total_transactions": len(payroll)},
            },
            "generated_at": now_local(),
        }
        if include_breakdown:
            items = [item for p in payments for item in p.fee_items]
            report["income"]["breakdown"] = group_totals(items, lambda i: i.fee_type, lambda i: i.amount, sort_by="total")
            report["income"]["payment_methods"] = group_totals(payments, lambda p: p.payment_method, lambda p: p.total_amount, sort_by="total")
            report["expenses"]["breakdown"] = group_totals(expenses, lambda e: e.category, lambda e: e.amount, sort_by="total")
            report["expenses"]["payment_methods"] = group_totals(expenses, lambda e: e.payment_method, lambda e: e.amount, sort_by="total")
        return report

    def students(self, user: CurrentUser) -> dict:
        now = now_local()
        students = self._students.find_all(self._scoped(user))

        class_stats: dict[tuple[str, str], dict] = {}
        for s in students:
            row = class_stats.setdefault((s.class_name, s.section), {"class_name": s.class_name, "section": s.section, "count": 0, "active": 0})
            row["count"] += 1
            row["active"] += s.status == Status.ACTIVE

        admissions = {month_key(m): 0 for m in last_months(now)}
        for s in students:
            key = month_key(s.created_at or s.date_of_admission)
            if key in admissions:
                admissions[key] += 1

        return {
            "summary": {
                "total": len(students),
                "active": sum(1 for s in students if s.status == Status.ACTIVE),
                "inactive": sum(1 for s in students if s.status == Status.INACTIVE),
            },
            "class_stats": [class_stats[k] for k in sorted(class_stats)],
            "transport_stats": group_totals(students, lambda s: s.transport),
            "admission_trend": [{"month": k, "count": v} for k, v in admissions.items()],
            "age_distribution": bucket_counts(
                AGE_BUCKETS,
                (whole_years_between(s.date_of_birth.date(), now.date()) for s in students),
                age_bucket,
            ),
            "generated_at": now,
        }

    def staff(self, user: CurrentUser) -> dict:
        now = now_local()
        staff = self._staff.find_all(self._scoped(user))
        salaries = [s.salary for s in staff]

        departments = group_totals(staff, lambda s: s.department, lambda s: s.salary)
        for row in departments:
            row["avg_salary"] = round(row["total"] / row["count"], 2) if row["count"] else 0

        return {
            "summary": {
                "total": len(staff),
                "active": sum(1 for s in staff if s.status == Status.ACTIVE),
                "total_salary": round(sum(salaries), 2),
                "avg_salary": round(sum(salaries) / len(salaries), 2) if salaries else 0,
            },
            "department_stats": departments,
            "salary_stats": bucket_counts(SALARY_BUCKETS, salaries, salary_bucket),
            "experience_stats": bucket_counts(
                EXPERIENCE_BUCKETS,
                (whole_years_between(s.date_of_joining.date(), now.date()) for s in staff),
                experience_bucket,
            ),
            "generated_at": now,
        }

    def fees(self, user: CurrentUser, *, start: Optional[datetime], end: Optional[datetime]) -> dict:
        require_range(start, end)
        payments = self._payments.find_all(self._scoped(user).between("payment_date", start, end))
        items = [item for p in payments for item in p.fee_items]
        amount = attrgetter("total_amount")

        daily = group_totals(payments, lambda p: p.payment_date.date().isoformat(), amount, sort_by="name")
        return {
            "period": {"start_date": start, "end_date": end},
            "summary": {"total_amount": total(payments, amount), "total_transactions": len(payments)},
            "fee_type_stats": group_totals(items, lambda i: i.fee_type, lambda i: i.amount, sort_by="total"),
            "payment_method_stats": group_totals(payments, lambda p: p.payment_method, amount, sort_by="total"),
            "class_wise_stats": group_totals(payments, lambda p: p.class_name, amount, sort_by="total"),
            "daily_collection": [{"date": r["name"], "total": r["total"], "count": r["count"]} for r in daily],
            "generated_at": now_local(),
        }

    def fee_dues(
        self,
        user: CurrentUser,
        *,
        class_id: Optional[int] = None,
        page: int = 1,
        limit: Optional[int] = DEFAULT_FEE_DUES_LIMIT,
    ) -> tuple[dict, Page]:
        now = now_local()
        query = ListQuery(order_by="payment_date", descending=False).where(branch_id=branch_scope(user), status=DUE_STATUSES, class_id=class_id)
        payments = self._payments.find_all(query)

        dues = []
        for p in payments:
            days_due = (now - p.payment_date).days
            dues.append(
                {
                    "id": p.id,
                    "receipt_no": p.receipt_no,
                    "student_id": p.student_id,
                    "student_name": p.student_name,
                    "class_name": p.class_name,
                    "amount": p.total_amount,
                    "payment_date": p.payment_date,
                    "status": p.status,
                    "fee_types": sorted({i.fee_type.value for i in p.fee_items}),
                    "remarks": p.remarks,
                    "days_due": days_due,
                    "aging_bucket": aging_bucket(days_due),
                    "is_overdue": days_due > 0,
                }
            )

        aging = {label: {"count": 0, "amount": 0.0} for label in AGING_BUCKETS}
        for due in dues:
            bucket = aging[due["aging_bucket"]]
            bucket["count"] += 1
            bucket["amount"] = round(bucket["amount"] + due["amount"], 2)

        overdue = [d for d in dues if d["is_overdue"]]
        report = {
            "summary": {
                "total_due_amount": total(dues, lambda d: d["amount"]),
                "overdue_amount": total(overdue, lambda d: d["amount"]),
                "total_students": len({d["student_id"] for d in dues}),
                "total_records": len(dues),
                "overdue_records": len(overdue),
            },
            "aging_analysis": aging,
            "class_wise_breakdown": [
                {"class_name": r["name"], "count": r["count"], "amount": r["total"]}
                for r in group_totals(dues, lambda d: d["class_name"], lambda d: d["amount"], sort_by="name")
            ],
        }
        return report, _page(dues, page, limit)

    def transport(
        self,
        user: CurrentUser,
        *,
        transport_type: Optional[TransportType] = None,
        page: int = 1,
        limit: Optional[int] = DEFAULT_TRANSPORT_REPORT_LIMIT,
    ) -> tuple[dict, Page]:
        students = self._students.find_all(
            ListQuery(order_by="class_name", descending=False).where(branch_id=branch_scope(user), status=Status.ACTIVE)
        )
        routes = {r.id: r for r in self._routes.find_all(self._scoped(user))}

        def route_name(student) -> str:
            route = routes.get(student.transport_route_id)
            return route.route_name if route else "Not Assigned"

        by_class: dict[str, dict] = {}
        for s in students:
            row = by_class.setdefault(s.class_name, {"class_name": s.class_name, "total": 0, "school_transport": 0, "own_transport": 0, "no_transport": 0})
            row["total"] += 1
            if s.transport == TransportType.SCHOOL:
                row["school_transport"] += 1
            elif s.transport == TransportType.OWN:
                row["own_transport"] += 1
            else:
                row["no_transport"] += 1

        on_school_routes = [s for s in students if s.transport == TransportType.SCHOOL and s.transport_route_id]
        listed = [s for s in students if transport_type is None or s.transport == transport_type]
        rows = [
            {
                "admission_no": s.admission_no,
                "name": s.name,
                "class_name": s.class_name,
                "division": s.section,
                "transport": s.transport,
                "route": route_name(s) if s.transport == TransportType.SCHOOL else None,
                "guardian_contact": s.guardian_phone,
            }
            for s in listed
        ]

        report = {
            "statistics": {
                "total": len(students),
                "school_transport": sum(1 for s in students if s.transport == TransportType.SCHOOL),
                "own_transport": sum(1 for s in students if s.transport == TransportType.OWN),
                "no_transport": sum(1 for s in students if s.transport == TransportType.NONE),
            },
            "route_wise_breakdown": [
                {"route_name": r["name"], "count": r["count"]} for r in group_totals(on_school_routes, route_name)
            ],
            "class_wise_breakdown": list(by_class.values()),
        }
        return report, _page(rows, page, limit)

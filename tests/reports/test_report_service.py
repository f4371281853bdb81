from datetime import datetime, timedelta

import pytest

from src.campus_manager.campus_manager.common.datetime_utils import now_local
from src.campus_manager.campus_manager.core.enums import FeeType, PaymentMethod, PaymentStatus, TransportType
from src.campus_manager.campus_manager.core.exceptions import ValidationError
from src.campus_manager.campus_manager.fees.model import FeeItem
from src.campus_manager.campus_manager.reports.service import (
    age_bucket,
    aging_bucket,
    experience_bucket,
    require_range,
    salary_bucket,
)


@pytest.fixture
def add_payment(repos, branch):
    def _add(day, amount, *, status=PaymentStatus.PAID, fee_type=FeeType.TUITION, method=PaymentMethod.CASH, **overrides):
        count = repos.fee_payments.count() + 1
        values = {
            "receipt_no": f"REC{count}",
            "transaction_id": f"TXN{count}",
            "student_id": count,
            "student_name": f"Student {count}",
            "class_id": 1,
            "class_name": "Class 5",
            "fee_items": (FeeItem(title="Fee", fee_type=fee_type, amount=amount),),
            "total_amount": amount,
            "payment_date": day,
            "payment_method": method,
            "status": status,
            "branch_id": branch.id,
        }
        values.update(overrides)
        return repos.fee_payments.add(values)

    return _add


@pytest.mark.parametrize(
    "age, label",
    [(4, "Under 5"), (5, "5-7 years"), (10, "8-10 years"), (11, "11-13 years"), (16, "14-16 years"), (17, "17+ years")],
)
def test_age_bucket_edges(age, label):
    assert age_bucket(age) == label


def test_salary_and_experience_buckets():
    assert salary_bucket(19999) == "Below 20K"
    assert salary_bucket(20000) == "20K-40K"
    assert salary_bucket(80000) == "Above 80K"
    assert experience_bucket(0) == "Less than 1 year"
    assert experience_bucket(3) == "3-5 years"
    assert experience_bucket(10) == "10+ years"


def test_aging_bucket_edges():
    assert aging_bucket(-3) == "Not Due Yet"
    assert aging_bucket(0) == "Not Due Yet"
    assert aging_bucket(30) == "1-30 Days"
    assert aging_bucket(31) == "31-60 Days"
    assert aging_bucket(90) == "61-90 Days"
    assert aging_bucket(91) == "90+ Days"


def test_require_range():
    with pytest.raises(ValidationError, match="required"):
        require_range(datetime(2025, 1, 1), None)
    with pytest.raises(ValidationError, match="before"):
        require_range(datetime(2025, 2, 1), datetime(2025, 1, 1))
    require_range(datetime(2025, 1, 1), datetime(2025, 1, 1))


def test_dashboard_counts_are_branch_scoped(container, branch_admin, other_branch, add_student, add_staff):
    add_student()
    add_student(status="inactive")
    add_student(branch_id=other_branch.id)
    add_staff(salary=25000)
    add_staff(salary=35000)

    report = container.report_service.dashboard(branch_admin)

    assert report["students"] == {"total": 2, "active": 1, "inactive": 1}
    assert report["staff"]["total_salary"] == 60000.0
    assert report["textbooks"]["total_books"] == 0


def test_financial_report_subtracts_expenses_and_payroll(container, repos, branch, super_admin, add_payment):
    add_payment(datetime(2025, 3, 5), 4000)
    add_payment(datetime(2025, 3, 6), 1000, fee_type=FeeType.EXAM, method=PaymentMethod.ONLINE)
    add_payment(datetime(2025, 5, 1), 9999)
    repos.expenses.add(
        {
            "voucher_no": "VCH1",
            "date": datetime(2025, 3, 10),
            "category": "Utilities",
            "description": "Power bill",
            "amount": 500,
            "payment_method": PaymentMethod.BANK,
            "approved_by": "Principal",
            "branch_id": branch.id,
        }
    )

    report = container.report_service.financial(super_admin, start=datetime(2025, 3, 1), end=datetime(2025, 3, 31))

    assert report["summary"]["total_income"] == 5000.0
    assert report["summary"]["total_expenses"] == 500.0
    assert report["summary"]["net_profit"] == 4500.0
    assert report["summary"]["profit_margin"] == 90.0
    assert report["income"]["breakdown"][0] == {"name": "tuition", "count": 1, "total": 4000.0}
    assert report["expenses"]["breakdown"] == [{"name": "Utilities", "count": 1, "total": 500.0}]


def test_financial_report_without_breakdown(container, super_admin):
    report = container.report_service.financial(
        super_admin, start=datetime(2025, 3, 1), end=datetime(2025, 3, 31), include_breakdown=False
    )

    assert "breakdown" not in report["income"]
    assert report["summary"]["profit_margin"] == 0


def test_fees_report_daily_collection(container, super_admin, add_payment):
    add_payment(datetime(2025, 4, 2, 9), 100)
    add_payment(datetime(2025, 4, 2, 15), 200)
    add_payment(datetime(2025, 4, 1, 11), 50)

    report = container.report_service.fees(super_admin, start=datetime(2025, 4, 1), end=datetime(2025, 4, 30))

    assert report["summary"] == {"total_amount": 350.0, "total_transactions": 3}
    assert report["daily_collection"] == [
        {"date": "2025-04-01", "total": 50.0, "count": 1},
        {"date": "2025-04-02", "total": 300.0, "count": 2},
    ]


def test_fee_dues_ages_pending_payments(container, super_admin, add_payment):
    now = now_local()
    add_payment(now - timedelta(days=45), 700, status=PaymentStatus.PENDING)
    add_payment(now - timedelta(days=10), 300, status=PaymentStatus.PARTIAL)
    add_payment(now + timedelta(days=5), 100, status=PaymentStatus.PENDING)
    add_payment(now - timedelta(days=45), 900)

    report, dues = container.report_service.fee_dues(super_admin, limit=2)

    assert report["summary"]["total_due_amount"] == 1100.0
    assert report["summary"]["overdue_amount"] == 1000.0
    assert report["summary"]["overdue_records"] == 2
    assert report["aging_analysis"]["31-60 Days"] == {"count": 1, "amount": 700.0}
    assert report["aging_analysis"]["Not Due Yet"]["count"] == 1
    assert dues.total == 3
    assert [d["amount"] for d in dues.items] == [700.0, 300.0]


def test_fee_dues_export_returns_every_row(container, super_admin, add_payment):
    for days in range(5):
        add_payment(now_local() - timedelta(days=days + 1), 10, status=PaymentStatus.PENDING)

    _, dues = container.report_service.fee_dues(super_admin, limit=None)

    assert len(dues.items) == 5
    assert dues.pages == 1


def test_transport_report_groups_by_route_and_class(container, repos, branch, branch_admin, add_student):
    route = repos.routes.add({"route_name": "Lake Road", "route_code": "LR-01", "branch_id": branch.id})
    add_student(transport=TransportType.SCHOOL, transport_route_id=route.id)
    add_student(transport=TransportType.SCHOOL)
    add_student(transport=TransportType.OWN)
    add_student(status="inactive", transport=TransportType.SCHOOL)

    report, rows = container.report_service.transport(branch_admin, transport_type=TransportType.SCHOOL)

    assert report["statistics"] == {"total": 3, "school_transport": 2, "own_transport": 1, "no_transport": 0}
    assert report["route_wise_breakdown"] == [{"route_name": "Lake Road", "count": 1}]
    assert report["class_wise_breakdown"][0]["school_transport"] == 2
    assert rows.total == 2
    assert {r["route"] for r in rows.items} == {"Lake Road", "Not Assigned"}

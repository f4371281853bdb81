import pytest

from src.campus_manager.campus_manager.core.enums import PaymentMethod, ReferenceType
from src.campus_manager.campus_manager.core.exceptions import NotFoundError, ValidationError
from src.campus_manager.campus_manager.finance.service import monthly_trend
from tests.fakes import FIXED_NOW


def _expense(**overrides):
    payload = {
        "date": "2025-05-20",
        "category": "Maintenance",
        "description": "Roof repair work",
        "amount": 4500,
        "paymentMethod": "cash",
        "approvedBy": "Principal",
    }
    payload.update(overrides)
    return payload


def test_create_expense_assigns_voucher_and_branch(container, branch, branch_admin):
    expense = container.expense_service.create_expense(branch_admin, _expense())

    assert expense.voucher_no.startswith("VCH")
    assert expense.branch_id == branch.id
    assert expense.payment_method == PaymentMethod.CASH


def test_expense_description_minimum_and_method_subset(container, branch_admin):
    with pytest.raises(ValidationError) as excinfo:
        container.expense_service.create_expense(branch_admin, _expense(description="Fix", paymentMethod="online"))

    assert {e.field for e in excinfo.value.errors} == {"description", "paymentMethod"}


def test_list_expenses_date_range_and_sort(container, branch_admin):
    container.expense_service.create_expense(branch_admin, _expense(date="2025-01-10", amount=100))
    container.expense_service.create_expense(branch_admin, _expense(date="2025-03-10", amount=300))
    container.expense_service.create_expense(branch_admin, _expense(date="2025-05-10", amount=200))

    page = container.expense_service.list_expenses(
        branch_admin,
        start=FIXED_NOW.replace(month=2, day=1, hour=0, minute=0),
        end=FIXED_NOW.replace(month=12, day=31),
        sort_by="amount",
        ascending=True,
    )

    assert [e.amount for e in page.items] == [200, 300]


def test_expense_category_in_use_cannot_be_deleted(container, branch_admin):
    category = container.expense_category_service.create_entry(branch_admin, {"name": "Maintenance"})
    container.expense_service.create_expense(branch_admin, _expense(category="Maintenance"))

    with pytest.raises(ValidationError, match="in use"):
        container.expense_category_service.delete_entry(branch_admin, category.id)


def test_income_credits_account_and_delete_reverses(container, repos, branch_admin):
    account = container.account_service.create_account(branch_admin, {"accountName": "Cash", "accountType": "cash", "openingBalance": 1000})

    income = container.income_service.create_income(
        branch_admin,
        {"category": "Donation", "description": "Alumni gift", "amount": 2500, "receivedFrom": "Alumni Trust", "accountId": account.id},
    )

    assert income.receipt_no.startswith("INC")
    assert income.payment_method == PaymentMethod.CASH
    assert repos.accounts.get(account.id).current_balance == 3500.0
    lines = repos.account_transactions.find_all()
    assert {line.reference_type for line in lines} == {ReferenceType.OPENING_BALANCE, ReferenceType.ADJUSTMENT}

    container.income_service.delete_income(branch_admin, income.id)

    assert repos.accounts.get(account.id).current_balance == 1000.0
    assert repos.account_transactions.count() == 1


def test_income_with_unknown_account_writes_nothing(container, repos, branch_admin):
    with pytest.raises(NotFoundError):
        container.income_service.create_income(
            branch_admin,
            {"category": "Rent", "description": "Hall rent", "amount": 800, "receivedFrom": "Community", "accountId": 42},
        )

    assert repos.income.count() == 0


def test_income_account_must_belong_to_income_branch(container, repos, super_admin, branch, other_branch):
    account = container.account_service.create_account(super_admin, {"accountName": "Main Cash", "accountType": "cash", "openingBalance": 500, "branchId": branch.id})

    with pytest.raises(ValidationError, match="Account does not belong to this branch"):
        container.income_service.create_income(
            super_admin,
            {"category": "Fees", "description": "Hall booking", "amount": 300, "receivedFrom": "Parents", "accountId": account.id, "branchId": other_branch.id},
        )

    assert repos.income.count() == 0
    assert repos.accounts.get(account.id).current_balance == 500.0


def test_income_validation_message(container, branch_admin):
    with pytest.raises(ValidationError, match="Category, description, amount, and source are required"):
        container.income_service.create_income(branch_admin, {"amount": 0})


def test_monthly_trend_fills_empty_months():
    class Row:
        def __init__(self, date, amount):
            self.date = date
            self.amount = amount

    rows = [Row(FIXED_NOW, 100), Row(FIXED_NOW.replace(month=4), 50), Row(FIXED_NOW.replace(year=2020), 999)]

    trend = monthly_trend(rows, lambda r: r.date, lambda r: r.amount, moment=FIXED_NOW, months=3)

    assert trend == [
        {"month": "2025-04", "total": 50.0, "count": 1},
        {"month": "2025-05", "total": 0.0, "count": 0},
        {"month": "2025-06", "total": 100.0, "count": 1},
    ]

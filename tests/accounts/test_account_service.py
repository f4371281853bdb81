import pytest

from src.campus_manager.campus_manager.core.enums import ReferenceType, Role, TransactionType
from src.campus_manager.campus_manager.core.exceptions import AuthorizationError, ValidationError
from tests.fakes import make_user


def _cash(container, user, **overrides):
    payload = {"accountName": "Office Cash", "accountType": "cash", "openingBalance": 5000}
    payload.update(overrides)
    return container.account_service.create_account(user, payload)


def test_opening_balance_writes_first_ledger_line(container, repos, branch_admin):
    account = _cash(container, branch_admin)

    assert account.current_balance == 5000.0
    lines = repos.account_transactions.find_all()
    assert len(lines) == 1
    assert lines[0].reference_type == ReferenceType.OPENING_BALANCE
    assert lines[0].balance_after == 5000.0


def test_zero_opening_balance_writes_no_ledger_line(container, repos, branch_admin):
    _cash(container, branch_admin, openingBalance=0)

    assert repos.account_transactions.count() == 0


def test_bank_account_needs_account_number(container, branch_admin):
    with pytest.raises(ValidationError, match="Account number is required"):
        container.account_service.create_account(branch_admin, {"accountName": "SBI", "accountType": "bank"})

    account = container.account_service.create_account(
        branch_admin, {"accountName": "SBI", "accountType": "bank", "accountNumber": "0011223344", "ifscCode": "sbin0001"}
    )
    assert account.ifsc_code == "SBIN0001"


def test_record_transaction_moves_balance(container, branch_admin):
    account = _cash(container, branch_admin)

    debit = container.account_service.record_transaction(
        branch_admin,
        account.id,
        transaction_type=TransactionType.DEBIT,
        amount=1200.5,
        reference_type=ReferenceType.EXPENSE,
        description="Stationery",
    )

    assert debit.balance_before == 5000.0
    assert debit.balance_after == 3799.5
    assert container.account_service.get_account(branch_admin, account.id).current_balance == 3799.5


def test_reconcile_marks_only_pending_lines(container, branch_admin):
    account = _cash(container, branch_admin)
    _, page = container.account_service.list_transactions(branch_admin, account.id)
    opening_id = page.items[0].id

    assert container.account_service.reconcile(branch_admin, account.id, {"transactionIds": [opening_id]}) == 1
    assert container.account_service.reconcile(branch_admin, account.id, {"transactionIds": [opening_id]}) == 0

    _, reconciled = container.account_service.list_transactions(branch_admin, account.id, is_reconciled=True)
    assert reconciled.total == 1
    assert reconciled.items[0].reconciled_date is not None


def test_reconcile_requires_ids(container, branch_admin):
    account = _cash(container, branch_admin)

    with pytest.raises(ValidationError, match="Transaction IDs are required"):
        container.account_service.reconcile(branch_admin, account.id, {"transactionIds": []})


def test_accounts_of_other_branch_are_forbidden(container, branch_admin, other_branch):
    account = _cash(container, make_user(Role.BRANCH_ADMIN, branch_id=other_branch.id))

    with pytest.raises(AuthorizationError):
        container.account_service.get_account(branch_admin, account.id)


def test_balances_split_cash_and_bank(container, branch_admin):
    _cash(container, branch_admin, openingBalance=1000)
    container.account_service.create_account(
        branch_admin, {"accountName": "HDFC", "accountType": "bank", "accountNumber": "99887766", "openingBalance": 25000}
    )

    balances = container.account_service.balances(branch_admin)

    assert balances["cash_balance"] == 1000.0
    assert balances["bank_balance"] == 25000.0
    assert [a.account_name for a in balances["accounts"]] == ["HDFC", "Office Cash"]

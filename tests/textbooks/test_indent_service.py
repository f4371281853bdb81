from datetime import timedelta
from pathlib import Path

import pytest

from src.campus_manager.campus_manager.common.datetime_utils import now_local
from src.campus_manager.campus_manager.core.enums import (
    IndentItemStatus,
    IndentStatus,
    PaymentStatus,
    Role,
    Status,
)
from src.campus_manager.campus_manager.core.exceptions import ValidationError
from src.campus_manager.campus_manager.textbooks.indent_service import payment_summary
from tests.fakes import make_user


@pytest.fixture
def books(container, branch_admin, school_class):
    def create(code, price, quantity):
        return container.textbook_service.create_book(
            branch_admin,
            {
                "bookCode": code,
                "title": f"Book {code}",
                "subject": "General",
                "classId": school_class.id,
                "publisher": "Press",
                "price": price,
                "quantity": quantity,
                "academicYear": "2025-2026",
            },
        )

    return create("ENG5", 150, 10), create("SCI5", 200, 5)


def _indent(container, user, student, books, **overrides):
    english, science = books
    payload = {
        "studentId": student.id,
        "items": [{"textbookId": english.id, "quantity": 2}, {"textbookId": science.id, "quantity": 1}],
        "paymentMethod": "cash",
        "paidAmount": 200,
    }
    payload.update(overrides)
    return container.indent_service.create_indent(user, payload)


@pytest.mark.parametrize(
    "total_amount, paid, expected",
    [(500, 500, (0, PaymentStatus.PAID)), (500, 200, (300, PaymentStatus.PARTIAL)), (500, 0, (500, PaymentStatus.PENDING))],
)
def test_payment_summary(total_amount, paid, expected):
    assert payment_summary(total_amount, paid) == expected


def test_create_indent_snapshots_books_and_numbers_sequentially(container, branch_admin, add_student, books):
    student = add_student(section="B")

    first = _indent(container, branch_admin, student, books)
    second = _indent(container, branch_admin, student, books)

    year = now_local().year
    assert first.indent_no == f"TBI{year}0001"
    assert second.indent_no == f"TBI{year}0002"
    assert first.status == IndentStatus.PENDING
    assert first.total_amount == 500.0
    assert (first.balance_amount, first.payment_status) == (300.0, PaymentStatus.PARTIAL)
    assert first.division == "B"
    assert [i.item_id for i in first.items] == [1, 2]
    assert first.items[0].title == "Book ENG5"


def test_create_indent_checks_stock_without_reserving(container, repos, branch_admin, add_student, books):
    student = add_student()
    _, science = books

    with pytest.raises(ValidationError, match="Insufficient stock for Book SCI5"):
        _indent(container, branch_admin, student, books, items=[{"textbookId": science.id, "quantity": 6}])

    _indent(container, branch_admin, student, books)
    assert repos.textbooks.get(science.id).available == 5


def test_user_without_branch_cannot_create_indent(container, add_student, books):
    student = add_student()
    drifter = make_user(Role.TEACHER, branch_id=None)

    with pytest.raises(ValidationError, match="branch information is missing"):
        _indent(container, drifter, student, books)


def test_issue_then_return_restocks_usable_copies(container, repos, branch_admin, add_student, books):
    english, science = books
    indent = _indent(container, branch_admin, add_student(), books)

    issued = container.indent_service.issue_indent(branch_admin, indent.id)
    assert issued.status == IndentStatus.ISSUED
    assert repos.textbooks.get(english.id).available == 8
    assert repos.textbooks.get(science.id).available == 4

    partial = container.indent_service.return_items(
        branch_admin, indent.id, {"items": [{"itemId": 1, "returnedQuantity": 1, "condition": "good"}]}
    )
    assert partial.status == IndentStatus.PARTIALLY_RETURNED
    assert partial.items[0].status == IndentItemStatus.PARTIALLY_RETURNED
    assert repos.textbooks.get(english.id).available == 9

    done = container.indent_service.return_items(
        branch_admin,
        indent.id,
        {
            "items": [
                {"itemId": 1, "returnedQuantity": 1, "condition": "fair"},
                {"itemId": 2, "returnedQuantity": 1, "condition": "lost", "remarks": "Left on bus"},
            ]
        },
    )
    assert done.status == IndentStatus.RETURNED
    assert done.items[1].remarks == "Left on bus"
    assert repos.textbooks.get(english.id).available == 10
    assert repos.textbooks.get(science.id).available == 4


def test_cannot_return_more_than_outstanding(container, branch_admin, add_student, books):
    indent = _indent(container, branch_admin, add_student(), books)
    container.indent_service.issue_indent(branch_admin, indent.id)

    with pytest.raises(ValidationError, match="Maximum returnable: 2"):
        container.indent_service.return_items(
            branch_admin, indent.id, {"items": [{"itemId": 1, "returnedQuantity": 3, "condition": "good"}]}
        )


def test_returns_need_an_issued_indent(container, branch_admin, add_student, books):
    indent = _indent(container, branch_admin, add_student(), books)

    with pytest.raises(ValidationError, match="Only issued or partially returned"):
        container.indent_service.return_items(
            branch_admin, indent.id, {"items": [{"itemId": 1, "returnedQuantity": 1, "condition": "good"}]}
        )


def test_issue_fails_when_stock_ran_out_after_creation(container, repos, branch_admin, add_student, books):
    _, science = books
    indent = _indent(container, branch_admin, add_student(), books)
    repos.textbooks.adjust_available({science.id: -5})

    with pytest.raises(ValidationError, match="Insufficient stock"):
        container.indent_service.issue_indent(branch_admin, indent.id)
    assert container.indent_service.get_indent(branch_admin, indent.id).status == IndentStatus.PENDING


def test_cancel_only_pending_and_keeps_reason(container, branch_admin, add_student, books):
    indent = _indent(container, branch_admin, add_student(), books)

    cancelled = container.indent_service.cancel_indent(branch_admin, indent.id, "Duplicate request")

    assert cancelled.status == IndentStatus.CANCELLED
    assert cancelled.remarks == "Duplicate request"
    with pytest.raises(ValidationError, match="Only pending indents can be issued"):
        container.indent_service.issue_indent(branch_admin, indent.id)
    with pytest.raises(ValidationError, match="cancelled"):
        container.indent_service.update_payment(branch_admin, indent.id, {"paidAmount": 500})


def test_update_payment_recomputes_balance(container, branch_admin, add_student, books):
    indent = _indent(container, branch_admin, add_student(), books)

    paid = container.indent_service.update_payment(branch_admin, indent.id, {"paidAmount": 500})

    assert paid.balance_amount == 0
    assert paid.payment_status == PaymentStatus.PAID


def test_receipt_only_after_issue(container, repos, branch_admin, add_student, books):
    indent = _indent(container, branch_admin, add_student(), books)
    with pytest.raises(ValidationError, match="Receipts can only be generated"):
        container.indent_service.receipt(branch_admin, indent.id)

    container.indent_service.issue_indent(branch_admin, indent.id)
    receipt = container.indent_service.receipt(branch_admin, indent.id)

    assert receipt["total_amount"] == 500.0
    assert receipt["items"][0]["total"] == 300.0
    assert receipt["generated_by"] == branch_admin.name
    assert repos.indents.get(indent.id).receipt_generated is True


def test_overdue_lists_open_indents_past_due(container, branch_admin, add_student, books):
    past = (now_local() - timedelta(days=3)).strftime("%Y-%m-%d")
    future = (now_local() + timedelta(days=30)).strftime("%Y-%m-%d")
    late = _indent(container, branch_admin, add_student(), books, expectedReturnDate=past)
    on_time = _indent(container, branch_admin, add_student(), books, expectedReturnDate=future)
    container.indent_service.issue_indent(branch_admin, late.id)
    container.indent_service.issue_indent(branch_admin, on_time.id)
    _indent(container, branch_admin, add_student(), books, expectedReturnDate=past, items=[{"textbookId": books[0].id, "quantity": 1}])

    page = container.indent_service.overdue(branch_admin)

    assert [i.id for i in page.items] == [late.id]
    assert container.indent_service.stats(branch_admin)["overdue_indents"] == 1


def test_indent_numbers_run_per_branch(container, repos, branch, branch_admin, other_branch, add_student, books):
    north_class = repos.classes.add(
        {"name": "Class 5", "academic_year": "2025-2026", "branch_id": other_branch.id, "status": Status.ACTIVE}
    )
    north_book = repos.textbooks.add(
        {
            "book_code": "NENG5",
            "title": "North English",
            "subject": "English",
            "class_id": north_class.id,
            "class_name": north_class.name,
            "publisher": "Press",
            "price": 100.0,
            "quantity": 10,
            "available": 10,
            "academic_year": "2025-2026",
            "branch_id": other_branch.id,
        }
    )
    north_admin = make_user(Role.BRANCH_ADMIN, branch_id=other_branch.id, user_id=5)
    north_student = add_student(class_id=north_class.id, branch_id=other_branch.id)
    north_payload = {"studentId": north_student.id, "items": [{"textbookId": north_book.id, "quantity": 1}], "paymentMethod": "cash"}

    main = _indent(container, branch_admin, add_student(), books)
    north_first = container.indent_service.create_indent(north_admin, north_payload)
    north_second = container.indent_service.create_indent(north_admin, north_payload)

    year = now_local().year
    assert main.indent_no == north_first.indent_no == f"TBI{year}0001"
    assert north_second.indent_no == f"TBI{year}0002"
    assert (main.branch_id, north_first.branch_id) == (branch.id, other_branch.id)


def test_indent_number_keeps_counting_past_four_digits(container, repos, branch, branch_admin, add_student, books):
    year = now_local().year
    repos.indents.add({"indent_no": f"TBI{year}9999", "items": [], "branch_id": branch.id, "status": IndentStatus.CANCELLED})
    student = add_student()

    first = _indent(container, branch_admin, student, books)
    second = _indent(container, branch_admin, student, books)

    assert (first.indent_no, second.indent_no) == (f"TBI{year}10000", f"TBI{year}10001")


def test_schema_scopes_indent_numbers_to_branch():
    schema = (Path(__file__).resolve().parents[2] / "database" / "schema.sql").read_text(encoding="utf-8")

    assert "UNIQUE KEY uq_indent_no_branch (indent_no, branch_id)" in schema
    assert "indent_no VARCHAR(30) NOT NULL UNIQUE" not in schema

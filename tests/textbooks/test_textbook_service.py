import pytest

from src.campus_manager.campus_manager.core.enums import Status
from src.campus_manager.campus_manager.core.exceptions import ValidationError


def _payload(school_class, **overrides):
    payload = {
        "bookCode": "mat5",
        "title": "Mathematics 5",
        "subject": "Maths",
        "class": school_class.id,
        "publisher": "NCERT",
        "price": 120,
        "quantity": 50,
        "academicYear": "2025-2026",
    }
    payload.update(overrides)
    return payload


def test_create_book_starts_fully_available(container, branch_admin, school_class):
    book = container.textbook_service.create_book(branch_admin, _payload(school_class))

    assert book.book_code == "MAT5"
    assert book.class_name == "Class 5"
    assert book.available == 50
    assert book.availability_status == "available"


def test_book_code_unique_within_branch(container, branch_admin, school_class):
    container.textbook_service.create_book(branch_admin, _payload(school_class))

    with pytest.raises(ValidationError, match="book code already exists"):
        container.textbook_service.create_book(branch_admin, _payload(school_class, title="Another"))


def _north_class(repos, other_branch):
    return repos.classes.add(
        {"name": "Class 5", "academic_year": "2025-2026", "branch_id": other_branch.id, "status": Status.ACTIVE}
    )


def test_book_code_unique_across_branches(container, repos, super_admin, school_class, other_branch):
    container.textbook_service.create_book(super_admin, _payload(school_class, branchId=school_class.branch_id))
    north_class = _north_class(repos, other_branch)

    with pytest.raises(ValidationError, match="book code already exists"):
        container.textbook_service.create_book(super_admin, _payload(north_class, branchId=other_branch.id))
    assert repos.textbooks.count() == 1


def test_renaming_book_code_to_a_taken_one_fails(container, branch_admin, school_class):
    container.textbook_service.create_book(branch_admin, _payload(school_class))
    science = container.textbook_service.create_book(branch_admin, _payload(school_class, bookCode="SCI5"))

    with pytest.raises(ValidationError, match="book code already exists"):
        container.textbook_service.update_book(branch_admin, science.id, {"bookCode": "MAT5"})


def test_book_class_must_be_in_the_book_branch(container, repos, super_admin, school_class, other_branch):
    north_class = _north_class(repos, other_branch)

    with pytest.raises(ValidationError, match="Invalid class selected"):
        container.textbook_service.create_book(super_admin, _payload(north_class, branchId=school_class.branch_id))


def test_quantity_update_keeps_issued_copies_out(container, repos, branch_admin, school_class):
    book = container.textbook_service.create_book(branch_admin, _payload(school_class))
    repos.textbooks.adjust_available({book.id: -10})

    updated = container.textbook_service.update_book(branch_admin, book.id, {"quantity": 30})

    assert updated.quantity == 30
    assert updated.available == 20


@pytest.mark.parametrize("adjustment", [0, 2.5, "5", True, None])
def test_stock_adjustment_must_be_non_zero_integer(container, branch_admin, school_class, adjustment):
    book = container.textbook_service.create_book(branch_admin, _payload(school_class))

    with pytest.raises(ValidationError, match="non-zero integer"):
        container.textbook_service.adjust_stock(branch_admin, book.id, {"adjustment": adjustment})


def test_stock_adjustment_never_goes_negative(container, branch_admin, school_class):
    book = container.textbook_service.create_book(branch_admin, _payload(school_class, quantity=5))

    assert container.textbook_service.adjust_stock(branch_admin, book.id, {"adjustment": 10}).available == 15
    drained = container.textbook_service.adjust_stock(branch_admin, book.id, {"adjustment": -40})
    assert (drained.quantity, drained.available) == (0, 0)


def test_issued_book_cannot_be_deleted(container, repos, branch_admin, school_class):
    book = container.textbook_service.create_book(branch_admin, _payload(school_class))
    repos.textbooks.adjust_available({book.id: -3})

    with pytest.raises(ValidationError, match="3 books are currently issued"):
        container.textbook_service.delete_book(branch_admin, book.id)


def test_list_books_by_availability(container, repos, branch_admin, school_class):
    full = container.textbook_service.create_book(branch_admin, _payload(school_class, bookCode="A1", quantity=100))
    low = container.textbook_service.create_book(branch_admin, _payload(school_class, bookCode="A2", quantity=100))
    empty = container.textbook_service.create_book(branch_admin, _payload(school_class, bookCode="A3", quantity=10))
    repos.textbooks.adjust_available({low.id: -95, empty.id: -10})

    def codes(availability):
        page = container.textbook_service.list_books(branch_admin, availability=availability)
        return sorted(row["book_code"] for row in page.items)

    assert codes("low_stock") == ["A2"]
    assert codes("out_of_stock") == ["A3"]
    assert codes("available") == ["A1", "A2"]
    with pytest.raises(ValidationError):
        codes("plenty")
    assert full.id


def test_textbook_stats(container, repos, branch_admin, school_class):
    book = container.textbook_service.create_book(branch_admin, _payload(school_class, price=100, quantity=10))
    repos.textbooks.adjust_available({book.id: -4})

    stats = container.textbook_service.stats(branch_admin)

    assert stats["total_books"] == 10
    assert stats["issued_books"] == 4
    assert stats["total_value"] == 1000.0
    assert stats["available_value"] == 600.0
    assert stats["class_stats"] == [{"name": "Class 5", "total_books": 10, "available_books": 6, "titles": 1}]

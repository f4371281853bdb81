from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ..activity.service import ActivityLogService
from ..branches.service import BranchService
from ..classes.repository import ClassRepository
from ..common.access import CurrentUser, branch_scope, load_in_scope
from ..common.query import ListQuery, Page
from ..common.validators import Payload
from ..core.enums import ActivityAction
from ..core.exceptions import ValidationError
from .model import TextBook
from .repository import TextBookRepository

logger = logging.getLogger(__name__)

AVAILABILITY = ("available", "out_of_stock", "low_stock")
SORTABLE = {
    "title": "title",
    "class": "class_name",
    "subject": "subject",
    "price": "price",
    "quantity": "quantity",
    "available": "available",
    "createdAt": "created_at",
}


def parse_textbook(data: Mapping[str, Any], *, partial: bool = False) -> dict:
    data = dict(data or {})
    if "classId" not in data and "class" in data:
        data["classId"] = data["class"]

    p = Payload(data, partial=partial)
    if not partial:
        p.string("bookCode", required=True, max_len=30, upper=True, label="Book code")
    p.string("title", required=True, min_len=2, max_len=200, label="Title")
    p.string("subject", required=True, max_len=100, label="Subject")
    p.identifier("classId", required=True, label="Class")
    p.string("publisher", required=True, max_len=200, label="Publisher")
    p.number("price", required=True, minimum=0, label="Price")
    p.integer("quantity", required=True, minimum=0, label="Quantity")
    p.string("academicYear", required=True, max_len=20, label="Academic year")
    p.identifier("branchId", label="Branch")
    return p.validate()


def stock_after_adjustment(book: TextBook, adjustment: int) -> tuple[int, int]:
    """New (quantity, available) after adding copies; issued copies stay issued."""
    quantity = max(0, book.quantity + adjustment)
    available = max(0, quantity - book.issued_count)
    return quantity, available


class TextbookService:
    """Use case: textbook inventory per branch."""

    def __init__(
        self,
        books: TextBookRepository,
        classes: ClassRepository,
        *,
        branches: BranchService,
        activity: ActivityLogService,
    ):
        self._books = books
        self._classes = classes
        self._branches = branches
        self._activity = activity

    def list_books(
        self,
        user: CurrentUser,
        *,
        search: Optional[str] = None,
        class_id: Optional[int] = None,
        subject: Optional[str] = None,
        academic_year: Optional[str] = None,
        availability: Optional[str] = None,
        sort_by: str = "title",
        ascending: bool = True,
        page: int = 1,
        limit: int = 10,
    ) -> Page[dict]:
        if availability and availability not in AVAILABILITY:
            raise ValidationError(f"Availability must be one of: {', '.join(AVAILABILITY)}")

        query = ListQuery(
            search=search,
            search_fields=("title", "book_code", "subject", "publisher"),
            order_by=SORTABLE.get(sort_by, "title"),
            descending=not ascending,
        )
        query = query.where(branch_id=branch_scope(user), class_id=class_id, subject=subject, academic_year=academic_year)
        if availability == "available":
            query = query.between("available", 1, None)
        elif availability == "out_of_stock":
            query = query.where(available=0)

        if availability == "low_stock":
            # Ratio against quantity is filtered in Python.
            books = [b for b in self._books.find_all(query) if b.is_low_stock]
            page_of_books = Page.from_items(books, page=page, limit=limit)
        else:
            page_of_books = self._books.find_page(query.paged(page, limit))
        return Page(
            items=[b.listing() for b in page_of_books.items],
            total=page_of_books.total,
            page=page_of_books.page,
            limit=page_of_books.limit,
        )

    def get_book(self, user: CurrentUser, book_id: int) -> TextBook:
        return load_in_scope(self._books, user, book_id, "Textbook not found")

    def _class_name(self, branch_id: int, class_id: int) -> str:
        school_class = self._classes.get(class_id)
        if school_class is None or school_class.branch_id != branch_id:
            raise ValidationError("Invalid class selected")
        return school_class.name

    def create_book(self, user: CurrentUser, data: Mapping[str, Any]) -> TextBook:
        values = parse_textbook(data)
        values["branch_id"] = self._branches.resolve_branch_id(user, values.get("branch_id"))
        # Book codes are unique across all branches
        if self._books.find_one(book_code=values["book_code"]):
            raise ValidationError("Textbook with this book code already exists")
        values["class_name"] = self._class_name(values["branch_id"], values["class_id"])
        values["available"] = values["quantity"]

        created = self._books.add(values)
        self._activity.record(user, ActivityAction.CREATE, "TextBooks", f"Created textbook: {created.title} ({created.book_code})", branch_id=created.branch_id)
        return created

    def update_book(self, user: CurrentUser, book_id: int, data: Mapping[str, Any]) -> TextBook:
        current = self.get_book(user, book_id)
        changes = parse_textbook(data, partial=True)
        changes.pop("branch_id", None)
        if "book_code" in changes and changes["book_code"] != current.book_code:
            if self._books.find_one(book_code=changes["book_code"]):
                raise ValidationError("Textbook with this book code already exists")
        if "class_id" in changes:
            changes["class_name"] = self._class_name(current.branch_id, changes["class_id"])
        if "quantity" in changes:
            changes["available"] = max(0, changes["quantity"] - current.issued_count)

        updated = self._books.update(current.id, changes)
        self._activity.record(user, ActivityAction.UPDATE, "TextBooks", f"Updated textbook: {updated.title} ({updated.book_code})", branch_id=updated.branch_id)
        return updated

    def delete_book(self, user: CurrentUser, book_id: int) -> None:
        current = self.get_book(user, book_id)
        if current.issued_count > 0:
            raise ValidationError(f"Cannot delete textbook. {current.issued_count} books are currently issued to students.")

        self._books.delete(current.id)
        self._activity.record(user, ActivityAction.DELETE, "TextBooks", f"Deleted textbook: {current.title} ({current.book_code})", branch_id=current.branch_id)

    def adjust_stock(self, user: CurrentUser, book_id: int, data: Mapping[str, Any]) -> TextBook:
        adjustment = (data or {}).get("adjustment")
        if isinstance(adjustment, bool) or not isinstance(adjustment, (int, float)) or adjustment != int(adjustment) or int(adjustment) == 0:
            raise ValidationError("Stock adjustment value is required and must be a non-zero integer")
        current = self.get_book(user, book_id)
        quantity, available = stock_after_adjustment(current, int(adjustment))

        updated = self._books.update(current.id, {"quantity": quantity, "available": available})
        verb = "Added" if adjustment > 0 else "Removed"
        self._activity.record(
            user,
            ActivityAction.UPDATE,
            "TextBooks",
            f"{verb} {abs(int(adjustment))} copies of {current.title}. New stock: {quantity}",
            branch_id=current.branch_id,
        )
        return updated

    def stats(self, user: CurrentUser) -> dict:
        books = self._books.find_all(ListQuery().where(branch_id=branch_scope(user)))

        def grouped(key) -> list[dict]:
            groups: dict[str, dict] = {}
            for book in books:
                name = key(book)
                row = groups.setdefault(name, {"name": name, "total_books": 0, "available_books": 0, "titles": 0})
                row["total_books"] += book.quantity
                row["available_books"] += book.available
                row["titles"] += 1
            return list(groups.values())

        by_class = sorted(grouped(lambda b: b.class_name), key=lambda r: r["name"])
        by_subject = sorted(grouped(lambda b: b.subject), key=lambda r: r["total_books"], reverse=True)
        return {
            "total_books": sum(b.quantity for b in books),
            "total_titles": len(books),
            "available_books": sum(b.available for b in books),
            "issued_books": sum(b.issued_count for b in books),
            "out_of_stock_books": sum(1 for b in books if b.available == 0),
            "low_stock_books": sum(1 for b in books if b.is_low_stock),
            "class_stats": by_class,
            "subject_stats": by_subject,
            "total_value": round(sum(b.quantity * b.price for b in books), 2),
            "available_value": round(sum(b.available * b.price for b in books), 2),
        }

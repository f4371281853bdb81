from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Any, Mapping, Optional

from ..activity.service import ActivityLogService
from ..common.access import CurrentUser, branch_scope, load_in_scope
from ..common.aggregation import total
from ..common.datetime_utils import month_key, now_local, start_of_month
from ..common.query import ListQuery, Page
from ..common.validators import Payload
from ..core.enums import (
    RESTOCKABLE_CONDITIONS,
    ActivityAction,
    BookCondition,
    IndentItemStatus,
    IndentStatus,
    PaymentMethod,
    PaymentStatus,
)
from ..core.exceptions import NotFoundError, ValidationError
from ..students.repository import StudentRepository
from .model import IndentItem, TextbookIndent
from .repository import TextBookRepository, TextbookIndentRepository

logger = logging.getLogger(__name__)

INDENT_METHODS = (PaymentMethod.CASH, PaymentMethod.BANK, PaymentMethod.ONLINE, PaymentMethod.ADJUSTMENT)
OPEN_STATUSES = (IndentStatus.ISSUED, IndentStatus.PARTIALLY_RETURNED)
RECEIPT_STATUSES = (IndentStatus.ISSUED, IndentStatus.PARTIALLY_RETURNED, IndentStatus.RETURNED)
SORTABLE = {
    "indentNo": "indent_no",
    "studentName": "student_name",
    "issueDate": "issue_date",
    "totalAmount": "total_amount",
    "createdAt": "created_at",
}


def payment_summary(total_amount: float, paid_amount: float) -> tuple[float, PaymentStatus]:
    """Balance and payment status for an amount due and an amount paid."""
    balance = round(total_amount - paid_amount, 2)
    if balance <= 0:
        return balance, PaymentStatus.PAID
    if paid_amount > 0:
        return balance, PaymentStatus.PARTIAL
    return balance, PaymentStatus.PENDING


def _parse_line(p: Payload) -> dict:
    p.identifier("textbookId", required=True, label="Textbook")
    p.integer("quantity", required=True, minimum=1, label="Quantity")
    return p.values


def _parse_return(p: Payload) -> dict:
    p.identifier("itemId", required=True, label="Item")
    p.integer("returnedQuantity", required=True, minimum=1, label="Returned quantity")
    p.choice("condition", BookCondition, required=True, label="Condition")
    p.string("remarks", max_len=500)
    return p.values


def parse_indent(data: Mapping[str, Any]) -> dict:
    p = Payload(data)
    p.identifier("studentId", required=True, label="Student")
    p.items("items", _parse_line, required=True, min_items=1, min_message="At least one textbook is required")
    p.choice("paymentMethod", PaymentMethod, allowed=INDENT_METHODS, required=True, label="Payment method")
    p.number("paidAmount", minimum=0, default=0, label="Paid amount")
    p.date("expectedReturnDate", label="Expected return date")
    p.string("remarks", max_len=500)
    return p.validate()


def parse_indent_payment(data: Mapping[str, Any]) -> dict:
    p = Payload(data, partial=True)
    p.choice("paymentMethod", PaymentMethod, allowed=INDENT_METHODS, label="Payment method")
    p.number("paidAmount", minimum=0, label="Paid amount")
    p.date("expectedReturnDate", label="Expected return date")
    p.string("remarks", max_len=500)
    return p.validate()


def parse_returns(data: Mapping[str, Any]) -> list[dict]:
    p = Payload(data)
    p.items("items", _parse_return, required=True, min_items=1, min_message="At least one item to return is required")
    return p.validate()["items"]


class IndentService:
    """Use case: issuing textbooks to students and taking them back.

    Lifecycle: pending -> issued -> partially_returned -> returned, or
    pending -> cancelled. Stock leaves the shelf on issue and comes back on
    return when the copy is still usable.
    """

    def __init__(
        self,
        indents: TextbookIndentRepository,
        books: TextBookRepository,
        students: StudentRepository,
        *,
        activity: ActivityLogService,
    ):
        self._indents = indents
        self._books = books
        self._students = students
        self._activity = activity

    def list_indents(
        self,
        user: CurrentUser,
        *,
        search: Optional[str] = None,
        student_id: Optional[int] = None,
        status: Optional[IndentStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
        class_name: Optional[str] = None,
        academic_year: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        overdue: bool = False,
        sort_by: str = "createdAt",
        ascending: bool = False,
        page: int = 1,
        limit: int = 10,
    ) -> Page[TextbookIndent]:
        query = ListQuery(
            search=search,
            search_fields=("indent_no", "student_name", "admission_no"),
            order_by=SORTABLE.get(sort_by, "created_at"),
            descending=not ascending,
        )
        query = query.where(
            branch_id=branch_scope(user),
            student_id=student_id,
            status=status,
            payment_status=payment_status,
            class_name=class_name,
            academic_year=academic_year,
        ).between("issue_date", date_from, date_to)
        if overdue:
            query = self._overdue_query(query)
        return self._indents.find_page(query.paged(page, limit))

    @staticmethod
    def _overdue_query(query: ListQuery) -> ListQuery:
        return query.where(status=list(OPEN_STATUSES)).before("expected_return_date", now_local())

    def overdue(self, user: CurrentUser, *, page: int = 1, limit: int = 10) -> Page[TextbookIndent]:
        query = ListQuery(order_by="expected_return_date", descending=False).where(branch_id=branch_scope(user))
        return self._indents.find_page(self._overdue_query(query).paged(page, limit))

    def get_indent(self, user: CurrentUser, indent_id: int) -> TextbookIndent:
        return load_in_scope(self._indents, user, indent_id, "Textbook indent not found")

    def _next_indent_no(self, branch_id: int, year: int) -> str:
        prefix = f"TBI{year}"
        query = ListQuery(contains={"indent_no": prefix}, order_by="id", limit=1).where(branch_id=branch_id)
        last = self._indents.find_all(query)
        number = 1
        if last and last[0].indent_no.startswith(prefix):
            number = int(last[0].indent_no[len(prefix):]) + 1
        return f"{prefix}{number:04d}"

    def create_indent(self, user: CurrentUser, data: Mapping[str, Any]) -> TextbookIndent:
        if not user.branch_id and not user.is_super_admin:
            raise ValidationError("User branch information is missing. Please contact administrator.")
        values = parse_indent(data)
        student = load_in_scope(self._students, user, values["student_id"], "Student not found")
        branch_id = user.branch_id or student.branch_id

        lines = []
        for number, line in enumerate(values["items"], start=1):
            book = self._books.get(line["textbook_id"])
            if book is None or book.branch_id != branch_id:
                raise NotFoundError("One or more textbooks not found")
            if book.available < line["quantity"]:
                raise ValidationError(f"Insufficient stock for {book.title}. Available: {book.available}, Requested: {line['quantity']}")
            lines.append(
                IndentItem(
                    item_id=number,
                    textbook_id=book.id,
                    book_code=book.book_code,
                    title=book.title,
                    subject=book.subject,
                    price=book.price,
                    quantity=line["quantity"],
                )
            )

        now = now_local()
        total_amount = round(sum(i.line_total for i in lines), 2)
        paid = float(values.get("paid_amount") or 0)
        balance, payment_status = payment_summary(total_amount, paid)

        indent = self._indents.add(
            {
                "indent_no": self._next_indent_no(branch_id, now.year),
                "student_id": student.id,
                "student_name": student.name,
                "admission_no": student.admission_no,
                "class_name": student.class_name,
                "division": student.section,
                "academic_year": str(now.year),
                "items": tuple(lines),
                "total_amount": total_amount,
                "payment_method": values["payment_method"],
                "paid_amount": paid,
                "balance_amount": balance,
                "payment_status": payment_status,
                "issue_date": now,
                "expected_return_date": values.get("expected_return_date"),
                "status": IndentStatus.PENDING,
                "issued_by": user.user_id,
                "issued_by_name": user.name,
                "remarks": values.get("remarks"),
                "branch_id": branch_id,
            }
        )
        self._activity.record(
            user,
            ActivityAction.CREATE,
            "textbook_indents",
            f"Created textbook indent {indent.indent_no} for student {student.name}",
            branch_id=branch_id,
        )
        return indent

    def issue_indent(self, user: CurrentUser, indent_id: int) -> TextbookIndent:
        indent = self.get_indent(user, indent_id)
        if indent.status != IndentStatus.PENDING:
            raise ValidationError("Only pending indents can be issued")

        needed = Counter()
        for item in indent.items:
            needed[item.textbook_id] += item.quantity
        for book_id, quantity in needed.items():
            book = self._books.get(book_id)
            if book is None:
                raise NotFoundError("One or more textbooks not found")
            if book.available < quantity:
                raise ValidationError(f"Insufficient stock for {book.title}. Available: {book.available}, Requested: {quantity}")

        self._books.adjust_available({book_id: -quantity for book_id, quantity in needed.items()})
        updated = self._indents.update(indent.id, {"status": IndentStatus.ISSUED, "issue_date": now_local()})
        self._activity.record(user, ActivityAction.UPDATE, "textbook_indents", f"Issued textbook indent {indent.indent_no}", branch_id=indent.branch_id)
        return updated

    def return_items(self, user: CurrentUser, indent_id: int, data: Mapping[str, Any]) -> TextbookIndent:
        returns = parse_returns(data)
        indent = self.get_indent(user, indent_id)
        if indent.status not in OPEN_STATUSES:
            raise ValidationError("Only issued or partially returned indents can have returns processed")

        items = {item.item_id: item for item in indent.items}
        restock = Counter()
        now = now_local()
        for entry in returns:
            item = items.get(entry["item_id"])
            if item is None:
                raise NotFoundError(f"Item with ID {entry['item_id']} not found in indent")
            count = entry["returned_quantity"]
            if count > item.outstanding:
                raise ValidationError(f"Cannot return {count} of {item.title}. Maximum returnable: {item.outstanding}")

            items[item.item_id] = item.returned(count, entry["condition"], now, entry.get("remarks"))
            if entry["condition"] in RESTOCKABLE_CONDITIONS:
                restock[item.textbook_id] += count

        new_items = tuple(items[i.item_id] for i in indent.items)
        if all(i.status == IndentItemStatus.RETURNED for i in new_items):
            status = IndentStatus.RETURNED
        else:
            status = IndentStatus.PARTIALLY_RETURNED

        self._books.adjust_available(dict(restock))
        updated = self._indents.update(indent.id, {"items": new_items, "status": status})
        self._activity.record(user, ActivityAction.UPDATE, "textbook_indents", f"Processed return for textbook indent {indent.indent_no}", branch_id=indent.branch_id)
        return updated

    def cancel_indent(self, user: CurrentUser, indent_id: int, reason: Optional[str] = None) -> TextbookIndent:
        indent = self.get_indent(user, indent_id)
        if indent.status != IndentStatus.PENDING:
            raise ValidationError("Only pending indents can be cancelled")

        remarks = reason or indent.remarks
        updated = self._indents.update(indent.id, {"status": IndentStatus.CANCELLED, "remarks": remarks})
        self._activity.record(user, ActivityAction.UPDATE, "textbook_indents", f"Cancelled textbook indent {indent.indent_no}", branch_id=indent.branch_id)
        return updated

    def update_payment(self, user: CurrentUser, indent_id: int, data: Mapping[str, Any]) -> TextbookIndent:
        indent = self.get_indent(user, indent_id)
        if indent.status == IndentStatus.CANCELLED:
            raise ValidationError("Cannot update a cancelled indent")
        changes = parse_indent_payment(data)
        if "paid_amount" in changes:
            changes["balance_amount"], changes["payment_status"] = payment_summary(indent.total_amount, changes["paid_amount"])

        updated = self._indents.update(indent.id, changes)
        self._activity.record(user, ActivityAction.UPDATE, "textbook_indents", f"Updated textbook indent {indent.indent_no}", branch_id=indent.branch_id)
        return updated

    def receipt(self, user: CurrentUser, indent_id: int) -> dict:
        indent = self.get_indent(user, indent_id)
        if indent.status not in RECEIPT_STATUSES:
            raise ValidationError("Receipts can only be generated for issued or returned indents")

        self._indents.update(indent.id, {"receipt_generated": True})
        self._activity.record(user, ActivityAction.CREATE, "textbook_indents", f"Generated receipt for textbook indent {indent.indent_no}", branch_id=indent.branch_id)
        return {
            "indent_no": indent.indent_no,
            "student_name": indent.student_name,
            "admission_no": indent.admission_no,
            "class_name": indent.class_name,
            "division": indent.division,
            "items": [
                {
                    "title": i.title,
                    "book_code": i.book_code,
                    "subject": i.subject,
                    "quantity": i.quantity,
                    "returned_quantity": i.returned_quantity,
                    "price": i.price,
                    "total": i.line_total,
                    "status": i.status,
                }
                for i in indent.items
            ],
            "total_amount": indent.total_amount,
            "paid_amount": indent.paid_amount,
            "balance_amount": indent.balance_amount,
            "payment_method": indent.payment_method,
            "issue_date": indent.issue_date,
            "expected_return_date": indent.expected_return_date,
            "issued_by": indent.issued_by_name,
            "remarks": indent.remarks,
            "status": indent.status,
            "generated_at": now_local(),
            "generated_by": user.name,
        }

    def stats(self, user: CurrentUser) -> dict:
        now = now_local()
        indents = self._indents.find_all(ListQuery().where(branch_id=branch_scope(user)))
        open_indents = [i for i in indents if i.status in OPEN_STATUSES]
        due = [i for i in indents if i.payment_status in (PaymentStatus.PENDING, PaymentStatus.PARTIAL)]

        monthly: dict[str, dict] = {}
        for indent in indents:
            created = indent.created_at or indent.issue_date
            if created < start_of_month(now):
                continue
            row = monthly.setdefault(month_key(created), {"month": month_key(created), "indents": 0, "value": 0.0})
            row["indents"] += 1
            row["value"] = round(row["value"] + indent.total_amount, 2)

        by_class: dict[str, dict] = {}
        for indent in indents:
            row = by_class.setdefault(indent.class_name, {"class_name": indent.class_name, "indents": 0, "value": 0.0})
            row["indents"] += 1
            row["value"] = round(row["value"] + indent.total_amount, 2)

        return {
            "total_indents": len(indents),
            "pending_indents": sum(1 for i in indents if i.status == IndentStatus.PENDING),
            "issued_indents": len(open_indents),
            "returned_indents": sum(1 for i in indents if i.status == IndentStatus.RETURNED),
            "overdue_indents": sum(1 for i in open_indents if i.expected_return_date and i.expected_return_date < now),
            "total_value": total(indents, lambda i: i.total_amount),
            "pending_payments": total(due, lambda i: i.balance_amount),
            "monthly_stats": sorted(monthly.values(), key=lambda r: r["month"]),
            "class_stats": sorted(by_class.values(), key=lambda r: r["indents"], reverse=True),
        }

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import as_datetime
from ..core.constants import LOW_STOCK_RATIO
from ..core.enums import BookCondition, IndentItemStatus, IndentStatus, PaymentMethod, PaymentStatus


@dataclass(frozen=True)
class TextBook:
    id: int
    book_code: str
    title: str
    subject: str
    class_id: int
    class_name: str
    publisher: str
    price: float
    quantity: int
    available: int
    academic_year: str
    branch_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def issued_count(self) -> int:
        return max(self.quantity - self.available, 0)

    @property
    def is_low_stock(self) -> bool:
        return 0 < self.available <= self.quantity * LOW_STOCK_RATIO

    @property
    def availability_status(self) -> str:
        if self.available <= 0:
            return "out_of_stock"
        if self.is_low_stock:
            return "low_stock"
        return "available"

    def listing(self) -> dict:
        """List row: the stored fields plus derived stock info."""
        row = {name: getattr(self, name) for name in self.__dataclass_fields__}
        row["availability_status"] = self.availability_status
        row["issued_count"] = self.issued_count
        return row


@dataclass(frozen=True)
class IndentItem:
    """One textbook line on an indent; book details are copied at issue time."""

    item_id: int
    textbook_id: int
    book_code: str
    title: str
    subject: str
    price: float
    quantity: int
    returned_quantity: int = 0
    status: IndentItemStatus = IndentItemStatus.ISSUED
    condition: BookCondition = BookCondition.GOOD
    return_date: Optional[datetime] = None
    remarks: Optional[str] = None

    @property
    def outstanding(self) -> int:
        return self.quantity - self.returned_quantity

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)

    def returned(self, count: int, condition: BookCondition, moment: datetime, remarks: Optional[str] = None) -> "IndentItem":
        returned_quantity = self.returned_quantity + count
        status = IndentItemStatus.RETURNED if returned_quantity >= self.quantity else IndentItemStatus.PARTIALLY_RETURNED
        return replace(
            self,
            returned_quantity=returned_quantity,
            status=status,
            condition=condition,
            return_date=moment,
            remarks=remarks,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "IndentItem":
        return cls(
            item_id=int(data["item_id"]),
            textbook_id=int(data["textbook_id"]),
            book_code=str(data.get("book_code") or ""),
            title=str(data["title"]),
            subject=str(data.get("subject") or ""),
            price=float(data["price"]),
            quantity=int(data["quantity"]),
            returned_quantity=int(data.get("returned_quantity") or 0),
            status=IndentItemStatus(data.get("status") or IndentItemStatus.ISSUED),
            condition=BookCondition(data.get("condition") or BookCondition.GOOD),
            return_date=as_datetime(data.get("return_date")),
            remarks=data.get("remarks"),
        )


@dataclass(frozen=True)
class TextbookIndent:
    id: int
    indent_no: str
    student_id: int
    student_name: str
    admission_no: str
    class_name: str
    division: str
    academic_year: str
    items: tuple[IndentItem, ...]
    total_amount: float
    payment_method: PaymentMethod
    paid_amount: float
    balance_amount: float
    issue_date: datetime
    branch_id: int
    payment_status: PaymentStatus = PaymentStatus.PENDING
    status: IndentStatus = IndentStatus.PENDING
    expected_return_date: Optional[datetime] = None
    issued_by: Optional[int] = None
    issued_by_name: Optional[str] = None
    remarks: Optional[str] = None
    receipt_generated: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

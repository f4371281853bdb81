from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.enums import DistanceGroup, FeeType, PaymentMethod, PaymentStatus


@dataclass(frozen=True)
class FeeStructure:
    """A fee head for one class and academic year."""

    id: int
    title: str
    fee_type: FeeType
    class_id: int
    class_name: str
    amount: float
    academic_year: str
    branch_id: int
    staff_discount_percent: float = 0
    transport_distance_group: Optional[DistanceGroup] = None
    distance_range: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def amount_for(self, *, is_staff_child: bool) -> float:
        if not is_staff_child or not self.staff_discount_percent:
            return self.amount
        return round(self.amount * (1 - self.staff_discount_percent / 100), 2)


@dataclass(frozen=True)
class FeeItem:
    title: str
    fee_type: FeeType
    amount: float
    fee_structure_id: Optional[int] = None
    transport_distance_group: Optional[DistanceGroup] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FeeItem":
        group = data.get("transport_distance_group")
        structure_id = data.get("fee_structure_id")
        return cls(
            title=str(data["title"]),
            fee_type=FeeType(data["fee_type"]),
            amount=float(data["amount"]),
            fee_structure_id=int(structure_id) if structure_id else None,
            transport_distance_group=DistanceGroup(group) if group else None,
        )


@dataclass(frozen=True)
class FeePayment:
    id: int
    receipt_no: str
    transaction_id: str
    student_id: int
    student_name: str
    class_id: int
    class_name: str
    fee_items: tuple[FeeItem, ...]
    total_amount: float
    payment_date: datetime
    payment_method: PaymentMethod
    branch_id: int
    status: PaymentStatus = PaymentStatus.PAID
    remarks: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

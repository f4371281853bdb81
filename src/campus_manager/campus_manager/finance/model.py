from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import PaymentMethod, Status


@dataclass(frozen=True)
class Expense:
    id: int
    voucher_no: str
    date: datetime
    category: str
    description: str
    amount: float
    payment_method: PaymentMethod
    approved_by: str
    branch_id: int
    remarks: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Income:
    """Money received outside fee collection (donations, rent, grants)."""

    id: int
    receipt_no: str
    date: datetime
    category: str
    description: str
    amount: float
    payment_method: PaymentMethod
    received_from: str
    branch_id: int
    contact_info: Optional[str] = None
    account_id: Optional[int] = None
    remarks: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class ExpenseCategory:
    id: int
    name: str
    branch_id: int
    description: Optional[str] = None
    status: Status = Status.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class IncomeCategory:
    id: int
    name: str
    branch_id: int
    description: Optional[str] = None
    status: Status = Status.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import PaymentMethod, PayrollStatus


@dataclass(frozen=True)
class PayrollEntry:
    """One staff member's salary for a month; `month` holds the month name."""

    id: int
    staff_id: int
    staff_name: str
    month: str
    year: int
    basic_salary: float
    allowances: float
    deductions: float
    net_salary: float
    payment_date: datetime
    payment_method: PaymentMethod
    branch_id: int
    status: PayrollStatus = PayrollStatus.PENDING
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

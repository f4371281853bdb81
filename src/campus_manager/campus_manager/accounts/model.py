from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AccountType, ReferenceType, TransactionType


@dataclass(frozen=True)
class Account:
    """A cash box or bank account. Balances change only through transactions."""

    id: int
    account_name: str
    account_type: AccountType
    opening_balance: float
    current_balance: float
    branch_id: int
    account_number: Optional[str] = None
    bank_name: Optional[str] = None
    branch_name: Optional[str] = None
    ifsc_code: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class AccountTransaction:
    id: int
    account_id: int
    transaction_date: datetime
    transaction_type: TransactionType
    amount: float
    reference_type: ReferenceType
    description: str
    balance_before: float
    balance_after: float
    branch_id: int
    reference_id: Optional[int] = None
    reference_no: Optional[str] = None
    is_reconciled: bool = False
    reconciled_date: Optional[datetime] = None
    remarks: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

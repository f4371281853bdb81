from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class ReceiptConfig:
    """Letterhead printed on a branch's receipts. At most one per branch."""

    id: int
    branch_id: int
    branch_name: str
    school_name: str
    address: str
    phone: str
    email: str
    website: Optional[str] = None
    logo: Optional[str] = None
    principal_name: Optional[str] = None
    tax_number: Optional[str] = None
    registration_number: Optional[str] = None
    footer_text: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

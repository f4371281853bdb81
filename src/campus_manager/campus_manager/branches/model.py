from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Status


@dataclass(frozen=True)
class Branch:
    """A school campus; the tenant boundary for every other record."""

    id: int
    name: str
    code: str
    address: str
    phone: str
    email: str
    principal_name: Optional[str] = None
    established_date: Optional[datetime] = None
    status: Status = Status.ACTIVE
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

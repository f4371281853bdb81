from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Status


@dataclass(frozen=True)
class Staff:
    """An employee of a branch. `department`/`designation` hold names, not ids."""

    id: int
    employee_id: str
    name: str
    designation: str
    department: str
    date_of_joining: datetime
    phone: str
    address: str
    salary: float
    branch_id: int
    email: Optional[str] = None
    status: Status = Status.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Department:
    id: int
    name: str
    code: str
    branch_id: int
    description: Optional[str] = None
    head_of_department: Optional[str] = None
    status: Status = Status.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Designation:
    id: int
    name: str
    branch_id: int
    description: Optional[str] = None
    status: Status = Status.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

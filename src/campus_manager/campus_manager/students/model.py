from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Gender, Status, TransportType


@dataclass(frozen=True)
class Student:
    id: int
    admission_no: str
    name: str
    class_id: int
    class_name: str
    section: str
    date_of_birth: datetime
    date_of_admission: datetime
    guardian_name: str
    guardian_phone: str
    gender: Gender
    address: str
    branch_id: int
    guardian_email: Optional[str] = None
    transport: TransportType = TransportType.NONE
    transport_route_id: Optional[int] = None
    status: Status = Status.ACTIVE
    is_staff_child: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

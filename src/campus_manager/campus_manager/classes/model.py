from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Status


@dataclass(frozen=True)
class SchoolClass:
    """A grade for one academic year in one branch (e.g. "Class 5", 2025-2026)."""

    id: int
    name: str
    academic_year: str
    branch_id: int
    description: Optional[str] = None
    status: Status = Status.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Division:
    """A section of a class (A, B, ...) with an optional class teacher."""

    id: int
    class_id: int
    class_name: str
    name: str
    capacity: int
    branch_id: int
    class_teacher_id: Optional[int] = None
    class_teacher_name: Optional[str] = None
    status: Status = Status.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

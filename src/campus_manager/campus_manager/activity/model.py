from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ActivityAction


@dataclass(frozen=True)
class ActivityLog:
    """Audit trail entry written after every create/update/delete."""

    id: int
    user_id: Optional[int]
    user_name: str
    user_role: str
    action: ActivityAction
    module: str
    details: str
    timestamp: datetime
    ip_address: Optional[str] = None
    branch_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.access import Permission
from ..core.enums import Role, Status


@dataclass(frozen=True)
class User:
    """Domain entity: a login account.

    Note: plain data object (no DB access code). `pin_hash` never leaves the service layer.
    """

    id: int
    name: str
    email: str
    mobile: str
    pin_hash: str
    role: Role
    branch_id: Optional[int] = None
    permissions: tuple[Permission, ...] = ()
    status: Status = Status.ACTIVE
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == Status.ACTIVE

    def public(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "mobile": self.mobile,
            "role": self.role,
            "branch_id": self.branch_id,
            "permissions": self.permissions,
            "status": self.status,
            "last_login": self.last_login,
            "created_at": self.created_at,
        }

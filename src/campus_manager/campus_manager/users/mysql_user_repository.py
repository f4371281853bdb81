from __future__ import annotations

from typing import Optional

from ..common.access import Permission
from ..core.enums import Role, Status
from ..database.mysql_repository import MySQLRepository
from .model import User
from .repository import UserRepository


class MySQLUserRepository(MySQLRepository[User], UserRepository):
    table = "users"
    model = User
    json_columns = frozenset({"permissions"})
    decoders = {
        "role": Role,
        "status": Status,
        "permissions": lambda items: tuple(Permission.from_dict(p) for p in items),
    }

    def get_by_mobile(self, mobile: str) -> Optional[User]:
        return self.find_one(mobile=mobile)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.find_one(email=email.lower())

from __future__ import annotations

from ..core.enums import Status
from ..database.mysql_repository import MySQLRepository
from .model import Staff
from .repository import StaffRepository


class MySQLStaffRepository(MySQLRepository[Staff], StaffRepository):
    table = "staff"
    model = Staff
    decoders = {"status": Status}

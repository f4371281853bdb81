from __future__ import annotations

from ..core.enums import Status
from ..database.mysql_repository import MySQLRepository
from .model import SchoolClass
from .repository import ClassRepository


class MySQLClassRepository(MySQLRepository[SchoolClass], ClassRepository):
    table = "classes"
    model = SchoolClass
    decoders = {"status": Status}

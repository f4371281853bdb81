from __future__ import annotations

from ..core.enums import Status
from ..database.mysql_repository import MySQLRepository
from .model import Division
from .repository import DivisionRepository


class MySQLDivisionRepository(MySQLRepository[Division], DivisionRepository):
    table = "divisions"
    model = Division
    decoders = {"status": Status, "capacity": int}

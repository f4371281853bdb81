from __future__ import annotations

from ..core.enums import Status
from ..database.mysql_repository import MySQLRepository
from .model import Branch
from .repository import BranchRepository


class MySQLBranchRepository(MySQLRepository[Branch], BranchRepository):
    table = "branches"
    model = Branch
    decoders = {"status": Status}

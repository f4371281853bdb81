from __future__ import annotations

from ..core.enums import Status
from ..database.mysql_repository import MySQLRepository
from .model import Department, Designation
from .repository import DepartmentRepository, DesignationRepository


class MySQLDepartmentRepository(MySQLRepository[Department], DepartmentRepository):
    table = "departments"
    model = Department
    decoders = {"status": Status}


class MySQLDesignationRepository(MySQLRepository[Designation], DesignationRepository):
    table = "designations"
    model = Designation
    decoders = {"status": Status}

from __future__ import annotations

from ..core.enums import Gender, Status, TransportType
from ..database.mysql_repository import MySQLRepository
from .model import Student
from .repository import StudentRepository


class MySQLStudentRepository(MySQLRepository[Student], StudentRepository):
    table = "students"
    model = Student
    decoders = {
        "gender": Gender,
        "transport": TransportType,
        "status": Status,
        "is_staff_child": bool,
    }

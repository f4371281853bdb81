from __future__ import annotations

from ..core.enums import PaymentMethod, PayrollStatus
from ..database.mysql_repository import MySQLRepository
from .model import PayrollEntry
from .repository import PayrollRepository


class MySQLPayrollRepository(MySQLRepository[PayrollEntry], PayrollRepository):
    table = "payroll"
    model = PayrollEntry
    decoders = {"payment_method": PaymentMethod, "status": PayrollStatus}
    default_order = "payment_date"

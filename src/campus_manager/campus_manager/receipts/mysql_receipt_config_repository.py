from __future__ import annotations

from ..database.mysql_repository import MySQLRepository
from .model import ReceiptConfig
from .repository import ReceiptConfigRepository


class MySQLReceiptConfigRepository(MySQLRepository[ReceiptConfig], ReceiptConfigRepository):
    table = "receipt_configs"
    model = ReceiptConfig
    decoders = {"is_active": bool}

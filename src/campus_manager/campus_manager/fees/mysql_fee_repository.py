from __future__ import annotations

from ..core.enums import DistanceGroup, FeeType, PaymentMethod, PaymentStatus
from ..database.mysql_repository import MySQLRepository
from .model import FeeItem, FeePayment, FeeStructure
from .repository import FeePaymentRepository, FeeStructureRepository


class MySQLFeeStructureRepository(MySQLRepository[FeeStructure], FeeStructureRepository):
    table = "fee_structures"
    model = FeeStructure
    decoders = {
        "fee_type": FeeType,
        "transport_distance_group": DistanceGroup,
        "is_active": bool,
    }


class MySQLFeePaymentRepository(MySQLRepository[FeePayment], FeePaymentRepository):
    table = "fee_payments"
    model = FeePayment
    json_columns = frozenset({"fee_items"})
    decoders = {
        "fee_items": lambda items: tuple(FeeItem.from_dict(i) for i in items),
        "payment_method": PaymentMethod,
        "status": PaymentStatus,
    }
    default_order = "payment_date"

from __future__ import annotations

from ..core.enums import Status
from ..database.mysql_repository import MySQLRepository
from .model import ClassFee, TransportRoute, Vehicle
from .repository import TransportRouteRepository


class MySQLTransportRouteRepository(MySQLRepository[TransportRoute], TransportRouteRepository):
    table = "transport_routes"
    model = TransportRoute
    json_columns = frozenset({"class_fees", "vehicles"})
    decoders = {
        "status": Status,
        "use_distance_groups": bool,
        "class_fees": lambda items: tuple(ClassFee.from_dict(i) for i in items),
        "vehicles": lambda items: tuple(Vehicle.from_dict(i) for i in items),
    }

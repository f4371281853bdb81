from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.enums import Status


@dataclass(frozen=True)
class DistanceGroupFee:
    group_name: str
    distance_range: str
    amount: float

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DistanceGroupFee":
        return cls(
            group_name=str(data["group_name"]),
            distance_range=str(data["distance_range"]),
            amount=float(data["amount"]),
        )


@dataclass(frozen=True)
class ClassFee:
    """Transport fee charged to one class on a route."""

    class_id: int
    class_name: str
    amount: float
    staff_discount: float = 0
    distance_group_fees: tuple[DistanceGroupFee, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ClassFee":
        return cls(
            class_id=int(data["class_id"]),
            class_name=str(data["class_name"]),
            amount=float(data["amount"]),
            staff_discount=float(data.get("staff_discount") or 0),
            distance_group_fees=tuple(DistanceGroupFee.from_dict(d) for d in data.get("distance_group_fees") or ()),
        )


@dataclass(frozen=True)
class Vehicle:
    vehicle_number: str
    driver_name: str
    driver_phone: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Vehicle":
        return cls(
            vehicle_number=str(data["vehicle_number"]),
            driver_name=str(data["driver_name"]),
            driver_phone=str(data["driver_phone"]),
        )


@dataclass(frozen=True)
class TransportRoute:
    id: int
    route_name: str
    route_code: str
    branch_id: int
    class_fees: tuple[ClassFee, ...] = ()
    description: Optional[str] = None
    use_distance_groups: bool = False
    vehicles: tuple[Vehicle, ...] = ()
    status: Status = Status.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def fee_for_class(self, class_id: int) -> Optional[ClassFee]:
        for fee in self.class_fees:
            if fee.class_id == class_id:
                return fee
        return None

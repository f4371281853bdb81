from __future__ import annotations

from typing import Any, Mapping, Optional

from ..activity.service import ActivityLogService
from ..branches.service import BranchService
from ..common.access import CurrentUser, branch_scope, load_in_scope
from ..common.query import ListQuery, Page
from ..common.validators import Payload
from ..core.enums import ActivityAction, Status
from ..core.exceptions import ValidationError
from ..students.repository import StudentRepository
from .model import ClassFee, DistanceGroupFee, TransportRoute, Vehicle
from .repository import TransportRouteRepository

MODULE = "Transport Routes"


def _parse_distance_fee(p: Payload) -> DistanceGroupFee:
    p.string("groupName", required=True, label="Distance group name")
    p.string("distanceRange", required=True, label="Distance range")
    p.number("amount", required=True, minimum=0, label="Amount")
    v = p.values
    return DistanceGroupFee(group_name=v.get("group_name", ""), distance_range=v.get("distance_range", ""), amount=v.get("amount", 0))


def _parse_class_fee(p: Payload) -> ClassFee:
    p.identifier("classId", required=True, label="Class ID")
    p.string("className", required=True, label="Class name")
    p.number("amount", required=True, minimum=0, label="Amount")
    p.number("staffDiscount", minimum=0, maximum=100, default=0, label="Staff discount")
    p.items("distanceGroupFees", _parse_distance_fee, label="Distance group fees")
    v = p.values
    return ClassFee(
        class_id=v.get("class_id", 0),
        class_name=v.get("class_name", ""),
        amount=v.get("amount", 0),
        staff_discount=v.get("staff_discount", 0),
        distance_group_fees=tuple(v.get("distance_group_fees") or ()),
    )


def _parse_vehicle(p: Payload) -> Vehicle:
    p.string("vehicleNumber", required=True, label="Vehicle number")
    p.string("driverName", required=True, label="Driver name")
    p.string("driverPhone", required=True, label="Driver phone")
    v = p.values
    return Vehicle(vehicle_number=v.get("vehicle_number", ""), driver_name=v.get("driver_name", ""), driver_phone=v.get("driver_phone", ""))


def parse_route(data: Mapping[str, Any], *, partial: bool = False) -> dict:
    p = Payload(data, partial=partial)
    p.string("routeName", required=True, max_len=100, label="Route name")
    p.string("routeCode", required=True, max_len=20, upper=True, label="Route code")
    p.string("description", max_len=500, label="Description")
    p.items(
        "classFees",
        _parse_class_fee,
        required=True,
        min_items=1,
        min_message="At least one class fee is required",
    )
    p.boolean("useDistanceGroups", default=False)
    p.items("vehicles", _parse_vehicle, label="Vehicles")
    p.choice("status", Status, default=Status.ACTIVE)
    p.identifier("branchId", label="Branch")
    values = p.validate()
    for key in ("class_fees", "vehicles"):
        if values.get(key) is not None:
            values[key] = tuple(values[key])
    return values


class TransportRouteService:
    """Use case: bus routes with per-class (and optionally per-distance) fees."""

    def __init__(
        self,
        routes: TransportRouteRepository,
        students: StudentRepository,
        *,
        branches: BranchService,
        activity: ActivityLogService,
    ):
        self._routes = routes
        self._students = students
        self._branches = branches
        self._activity = activity

    def list_routes(
        self,
        user: CurrentUser,
        *,
        search: Optional[str] = None,
        status: Optional[Status] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[TransportRoute]:
        query = ListQuery(search=search, search_fields=("route_name", "route_code", "description"), order_by="route_name", descending=False)
        query = query.where(branch_id=branch_scope(user), status=status)
        return self._routes.find_page(query.paged(page, limit))

    def get_route(self, user: CurrentUser, route_id: int) -> TransportRoute:
        return load_in_scope(self._routes, user, route_id, "Transport route not found")

    def _ensure_unique(self, route_code: str, exclude_id: Optional[int] = None) -> None:
        existing = self._routes.find_one(route_code=route_code)
        if existing and existing.id != exclude_id:
            raise ValidationError("Route code already exists")

    def create_route(self, user: CurrentUser, data: Mapping[str, Any]) -> TransportRoute:
        values = parse_route(data)
        values["branch_id"] = self._branches.resolve_branch_id(user, values.get("branch_id"))
        self._ensure_unique(values["route_code"])

        created = self._routes.add(values)
        self._activity.record(user, ActivityAction.CREATE, MODULE, f"Created transport route: {created.route_name} ({created.route_code})", branch_id=created.branch_id)
        return created

    def update_route(self, user: CurrentUser, route_id: int, data: Mapping[str, Any]) -> TransportRoute:
        current = self.get_route(user, route_id)
        changes = parse_route(data, partial=True)
        changes.pop("branch_id", None)
        if "route_code" in changes:
            self._ensure_unique(changes["route_code"], exclude_id=current.id)

        updated = self._routes.update(current.id, changes)
        self._activity.record(user, ActivityAction.UPDATE, MODULE, f"Updated transport route: {updated.route_name}", branch_id=updated.branch_id)
        return updated

    def delete_route(self, user: CurrentUser, route_id: int) -> None:
        current = self.get_route(user, route_id)
        if self._students.count(ListQuery().where(transport_route_id=current.id)) > 0:
            raise ValidationError("Cannot delete transport route with assigned students. Please reassign students first.")

        self._routes.delete(current.id)
        self._activity.record(user, ActivityAction.DELETE, MODULE, f"Deleted transport route: {current.route_name} ({current.route_code})", branch_id=current.branch_id)

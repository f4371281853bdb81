from __future__ import annotations

from flask import Flask

from ..common.http import arg_enum, arg_str, json_endpoint, page_args, page_response, permission_required, request_json, success
from ..container import Container
from ..core.enums import PermissionAction, Status

# Routes are managed alongside students; there is no separate transport permission
MODULE = "students"


def register(app: Flask, container: Container) -> None:
    routes = container.transport_service

    @app.route("/api/transport-routes", methods=["GET"], endpoint="transport_routes_list")
    @json_endpoint("Server error while fetching transport routes")
    @permission_required(MODULE, PermissionAction.READ)
    def list_routes(user):
        page, limit = page_args()
        result = routes.list_routes(user, search=arg_str("search"), status=arg_enum("status", Status), page=page, limit=limit)
        return page_response(result, "Transport routes retrieved successfully")

    @app.route("/api/transport-routes/<int:route_id>", methods=["GET"], endpoint="transport_routes_get")
    @json_endpoint("Server error while fetching transport route")
    @permission_required(MODULE, PermissionAction.READ)
    def get_route(user, route_id: int):
        return success(routes.get_route(user, route_id), "Transport route retrieved successfully")

    @app.route("/api/transport-routes", methods=["POST"], endpoint="transport_routes_create")
    @json_endpoint("Server error while creating transport route")
    @permission_required(MODULE, PermissionAction.CREATE)
    def create_route(user):
        return success(routes.create_route(user, request_json()), "Transport route created successfully", status=201)

    @app.route("/api/transport-routes/<int:route_id>", methods=["PUT"], endpoint="transport_routes_update")
    @json_endpoint("Server error while updating transport route")
    @permission_required(MODULE, PermissionAction.UPDATE)
    def update_route(user, route_id: int):
        return success(routes.update_route(user, route_id, request_json()), "Transport route updated successfully")

    @app.route("/api/transport-routes/<int:route_id>", methods=["DELETE"], endpoint="transport_routes_delete")
    @json_endpoint("Server error while deleting transport route")
    @permission_required(MODULE, PermissionAction.DELETE)
    def delete_route(user, route_id: int):
        routes.delete_route(user, route_id)
        return success(message="Transport route deleted successfully")

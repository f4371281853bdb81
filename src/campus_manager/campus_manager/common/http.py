from __future__ import annotations

import logging
from enum import Enum
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from flask import current_app, jsonify, request, session

from ..core.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from ..core.enums import PermissionAction, Role
from ..core.exceptions import AuthenticationError, DomainError, FieldError, ValidationError
from .access import CurrentUser, Permission, require_permission, require_role
from .datetime_utils import as_datetime
from .query import Page, clamp_limit, parse_page
from .serialization import to_json
from .validators import QUERY_VALIDATION_FAILED

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


def success(data: Any = None, message: str = "", *, status: int = 200, pagination: Optional[dict] = None, **extra: Any):
    body: dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = to_json(data)
    if pagination is not None:
        body["pagination"] = to_json(pagination)
    for key, value in extra.items():
        body[key] = to_json(value)
    return jsonify(body), status


def page_response(page: Page, message: str, **extra: Any):
    return success(page.items, message, pagination=page.meta(), **extra)


def failure(message: str, *, status: int = 400, error: Optional[str] = None, errors: Optional[list] = None):
    body: dict[str, Any] = {"success": False, "message": message}
    if error:
        body["error"] = error
    if errors:
        body["errors"] = errors
    return jsonify(body), status


def validation_failure(exc: ValidationError):
    if not exc.errors:
        return failure(str(exc), status=400)
    errors = [{"field": e.field, "message": e.message} for e in exc.errors]
    if len(errors) == 1:
        return failure(str(exc), status=400, error=errors[0]["message"])
    return failure(str(exc), status=400, error="Multiple validation errors occurred", errors=errors)


def json_endpoint(failure_message: str):
    """Map domain errors to the JSON envelope; anything else becomes a 500."""

    def decorator(view: Callable):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except ValidationError as e:
                return validation_failure(e)
            except DomainError as e:
                return failure(str(e), status=e.status_code)
            except Exception as e:
                logger.exception(failure_message)
                detail = str(e) if current_app.config.get("DEBUG") else None
                return failure(failure_message, status=500, error=detail)

        return wrapper

    return decorator


def store_session_user(user_id: int, name: str, role: Role, branch_id: Optional[int], permissions: list[dict]) -> None:
    session["user_id"] = user_id
    session["name"] = name
    session["role"] = role.value
    session["branch_id"] = branch_id
    session["permissions"] = permissions


def current_user() -> CurrentUser:
    if "user_id" not in session:
        raise AuthenticationError("Authentication required. Please log in.")
    return CurrentUser(
        user_id=int(session["user_id"]),
        name=str(session.get("name", "")),
        role=Role(session["role"]),
        branch_id=session.get("branch_id"),
        permissions=tuple(Permission.from_dict(p) for p in session.get("permissions") or []),
        ip_address=request.remote_addr,
    )


def login_required(view: Callable):
    """Inject the session user as the first argument."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        return view(current_user(), *args, **kwargs)

    return wrapper


def permission_required(module: str, action: PermissionAction):
    def decorator(view: Callable):
        @wraps(view)
        def wrapper(*args, **kwargs):
            user = current_user()
            require_permission(user, module, action)
            return view(user, *args, **kwargs)

        return wrapper

    return decorator


def roles_required(*roles: Role):
    def decorator(view: Callable):
        @wraps(view)
        def wrapper(*args, **kwargs):
            user = current_user()
            require_role(user, *roles)
            return view(user, *args, **kwargs)

        return wrapper

    return decorator


def request_json() -> dict:
    return request.get_json(silent=True) or {}


def page_args(default_limit: Optional[int] = None) -> tuple[int, int]:
    default = default_limit or int(current_app.config.get("DEFAULT_PAGE_LIMIT", DEFAULT_PAGE_LIMIT))
    maximum = int(current_app.config.get("MAX_PAGE_LIMIT", MAX_PAGE_LIMIT))
    return parse_page(request.args.get("page")), clamp_limit(request.args.get("limit"), default=default, maximum=maximum)


def arg_str(name: str) -> Optional[str]:
    value = request.args.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def arg_int(name: str) -> Optional[int]:
    value = arg_str(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(QUERY_VALIDATION_FAILED, _field_errors(name, "must be a number"))


def arg_bool(name: str) -> Optional[bool]:
    value = arg_str(name)
    if value is None:
        return None
    return value.lower() in {"true", "1", "yes"}


def arg_enum(name: str, enum_cls: type[E]) -> Optional[E]:
    value = arg_str(name)
    if value is None or value.lower() == "all":
        return None
    try:
        return enum_cls(value.lower())
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(QUERY_VALIDATION_FAILED, _field_errors(name, f"must be one of: {allowed}"))


def arg_date(name: str):
    value = arg_str(name)
    if value is None:
        return None
    try:
        return as_datetime(value)
    except (TypeError, ValueError):
        raise ValidationError(QUERY_VALIDATION_FAILED, _field_errors(name, "must be a valid date"))


def _field_errors(name: str, message: str) -> list[FieldError]:
    return [FieldError(field=name, message=f"{name} {message}")]

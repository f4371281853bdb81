from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..activity.service import ActivityLogService
from ..common.access import CurrentUser, Permission, branch_scope
from ..common.datetime_utils import now_local
from ..common.query import ListQuery, Page
from ..common.validators import Payload, require_min_length, require_non_empty
from ..core.constants import MIN_PIN_LENGTH, MOBILE_PATTERN
from ..core.enums import ADMIN_ROLES, ActivityAction, PermissionAction, Role, Status
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)

MODULE = "Users"


def _parse_permission(p: Payload) -> Permission:
    module = p.string("module", required=True, label="Permission module") or ""
    actions = []
    for raw in p.raw("actions") or []:
        try:
            actions.append(PermissionAction(str(raw)))
        except ValueError:
            p.error("actions", f"Unknown permission action: {raw}")
    return Permission(module=module, actions=tuple(actions))


def parse_user(data: Mapping[str, Any], *, partial: bool = False) -> dict:
    p = Payload(data, partial=partial)
    p.email("email", required=True, label="Email")
    p.string(
        "mobile",
        required=True,
        pattern=MOBILE_PATTERN,
        pattern_message="Please provide a valid mobile number",
        label="Mobile",
    )
    p.string("pin", required=True, min_len=MIN_PIN_LENGTH, label="PIN")
    p.string("name", required=True, min_len=2, max_len=100, label="Name")
    p.choice("role", Role, required=True, label="Role")
    p.identifier("branchId", label="Branch")
    p.items("permissions", _parse_permission, label="Permissions")
    p.choice("status", Status, default=Status.ACTIVE)
    values = p.validate()
    if "permissions" in values:
        values["permissions"] = tuple(values["permissions"])
    return values


class AuthService:
    """Use case: authenticate users (mobile + PIN) and manage their own PIN."""

    def __init__(self, users: UserRepository, *, activity: ActivityLogService):
        self._users = users
        self._activity = activity

    def authenticate(self, mobile: str, pin: str, *, ip_address: Optional[str] = None) -> User:
        mobile = require_non_empty(mobile or "", "Mobile")
        pin = require_non_empty(pin or "", "PIN")

        user = self._users.get_by_mobile(mobile)
        if not user:
            raise AuthenticationError("Invalid credentials")
        if not user.is_active:
            raise AuthenticationError("Account is inactive. Please contact administrator.")

        try:
            ok = check_password_hash(user.pin_hash, pin)
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False
        if not ok:
            raise AuthenticationError("Invalid credentials")

        user = self._users.update(user.id, {"last_login": now_local()}) or user
        self._activity.record(
            self.session_user(user, ip_address=ip_address),
            ActivityAction.LOGIN,
            "Authentication",
            "User logged in successfully",
            branch_id=user.branch_id,
        )
        return user

    def logout(self, user: CurrentUser) -> None:
        self._activity.record(user, ActivityAction.LOGOUT, "Authentication", "User logged out")

    @staticmethod
    def session_user(user: User, *, ip_address: Optional[str] = None) -> CurrentUser:
        return CurrentUser(
            user_id=user.id,
            name=user.name,
            role=user.role,
            branch_id=user.branch_id,
            permissions=user.permissions,
            ip_address=ip_address,
        )

    def profile(self, user: CurrentUser) -> User:
        found = self._users.get(user.user_id)
        if not found:
            raise NotFoundError("User not found")
        return found

    def change_pin(self, user: CurrentUser, *, current_pin: str, new_pin: str) -> None:
        found = self.profile(user)
        if not check_password_hash(found.pin_hash, current_pin or ""):
            raise ValidationError("Current PIN is incorrect")
        require_min_length(new_pin, "New PIN", MIN_PIN_LENGTH)
        self._users.update(found.id, {"pin_hash": generate_password_hash(new_pin)})
        self._activity.record(user, ActivityAction.UPDATE, MODULE, "Changed own PIN")


class UserService:
    """Use case: manage login accounts (super admin / branch admin)."""

    def __init__(self, users: UserRepository, *, activity: ActivityLogService):
        self._users = users
        self._activity = activity

    def list_users(
        self,
        user: CurrentUser,
        *,
        search: Optional[str] = None,
        role: Optional[Role] = None,
        status: Optional[Status] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[User]:
        query = ListQuery(search=search, search_fields=("name", "email", "mobile"))
        query = query.where(branch_id=branch_scope(user), role=role, status=status)
        return self._users.find_page(query.paged(page, limit))

    def get_user(self, user: CurrentUser, user_id: int) -> User:
        target = self._users.get(user_id)
        if not target:
            raise NotFoundError("User not found")
        self._ensure_manageable(user, target)
        return target

    def _ensure_manageable(self, user: CurrentUser, target: User) -> None:
        if user.is_super_admin:
            return
        if not user.branch_id or target.branch_id != user.branch_id:
            raise AuthorizationError("Access denied for this user")

    def _ensure_unique(self, *, email: Optional[str], mobile: Optional[str], exclude_id: Optional[int] = None) -> None:
        if email:
            found = self._users.get_by_email(email)
            if found and found.id != exclude_id:
                raise ValidationError("Email already in use" if exclude_id else "User with this email or mobile already exists")
        if mobile:
            found = self._users.get_by_mobile(mobile)
            if found and found.id != exclude_id:
                raise ValidationError("Mobile number already in use" if exclude_id else "User with this email or mobile already exists")

    def create_user(self, user: CurrentUser, data: Mapping[str, Any]) -> User:
        values = parse_user(data)
        role: Role = values["role"]

        if user.role == Role.BRANCH_ADMIN and role in ADMIN_ROLES:
            raise AuthorizationError("Branch admins cannot create admin accounts")
        self._ensure_unique(email=values["email"], mobile=values["mobile"])

        if role == Role.SUPER_ADMIN:
            branch_id = None
        elif user.is_super_admin:
            branch_id = values.get("branch_id")
        else:
            branch_id = user.branch_id
        if role != Role.SUPER_ADMIN and not branch_id:
            raise ValidationError("Branch ID is required for non-super admin users")

        pin = values.pop("pin")
        created = self._users.add({**values, "branch_id": branch_id, "pin_hash": generate_password_hash(pin)})
        self._activity.record(user, ActivityAction.CREATE, MODULE, f"Created user: {created.name} ({created.role.value})", branch_id=branch_id)
        return created

    def update_user(self, user: CurrentUser, user_id: int, data: Mapping[str, Any]) -> User:
        target = self.get_user(user, user_id)
        changes = parse_user(data, partial=True)

        if not user.is_super_admin:
            if changes.get("role") in ADMIN_ROLES:
                raise AuthorizationError("Branch admins cannot assign admin roles")
            if changes.get("branch_id") and changes["branch_id"] != user.branch_id:
                raise AuthorizationError("Branch admins cannot change branch assignment")
            changes.pop("branch_id", None)

        self._ensure_unique(
            email=changes.get("email") if changes.get("email") != target.email else None,
            mobile=changes.get("mobile") if changes.get("mobile") != target.mobile else None,
            exclude_id=target.id,
        )

        if "pin" in changes:
            changes["pin_hash"] = generate_password_hash(changes.pop("pin"))
        role = changes.get("role", target.role)
        if role == Role.SUPER_ADMIN:
            changes["branch_id"] = None
        elif not changes.get("branch_id", target.branch_id):
            raise ValidationError("Branch ID is required for non-super admin users")

        updated = self._users.update(target.id, changes)
        self._activity.record(user, ActivityAction.UPDATE, MODULE, f"Updated user: {updated.name}", branch_id=updated.branch_id)
        return updated

    def delete_user(self, user: CurrentUser, user_id: int) -> None:
        target = self.get_user(user, user_id)
        if not user.is_super_admin and target.role in ADMIN_ROLES:
            raise AuthorizationError("Branch admins cannot delete admin accounts")
        if target.id == user.user_id:
            raise ValidationError("You cannot delete your own account")

        self._users.delete(target.id)
        self._activity.record(user, ActivityAction.DELETE, MODULE, f"Deleted user: {target.name} ({target.email})", branch_id=target.branch_id)

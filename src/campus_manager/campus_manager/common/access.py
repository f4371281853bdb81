from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import ADMIN_ROLES, PermissionAction, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError


@dataclass(frozen=True)
class Permission:
    module: str
    actions: tuple[PermissionAction, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Permission":
        return cls(
            module=str(data.get("module", "")),
            actions=tuple(PermissionAction(a) for a in data.get("actions", ())),
        )


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated caller, as restored from the Flask session."""

    user_id: int
    name: str
    role: Role
    branch_id: Optional[int]
    permissions: tuple[Permission, ...] = field(default_factory=tuple)
    ip_address: Optional[str] = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


def has_permission(user: CurrentUser, module: str, action: PermissionAction) -> bool:
    if user.is_admin:
        return True
    for perm in user.permissions:
        if perm.module == module and action in perm.actions:
            return True
    return False


def require_permission(user: CurrentUser, module: str, action: PermissionAction) -> None:
    if not has_permission(user, module, action):
        raise AuthorizationError(f"Access denied. You don't have permission to {action.value} {module}.")


def require_role(user: CurrentUser, *roles: Role) -> None:
    if user.role not in roles:
        raise AuthorizationError("Access denied. Insufficient permissions.")


def branch_scope(user: CurrentUser) -> Optional[int]:
    """Branch filter for list/get queries; None means all branches (super admin).

    Every other role is pinned to its own branch and is refused without one.
    """
    if user.is_super_admin:
        return None
    if user.branch_id is None:
        raise AuthorizationError("Access denied. No branch is assigned to this account.")
    return user.branch_id


def scoped_branch(user: CurrentUser, requested: Optional[int] = None) -> Optional[int]:
    """Like branch_scope, but lets a super admin narrow to one branch."""
    if user.is_super_admin:
        return requested
    return branch_scope(user)


def can_access_branch(user: CurrentUser, branch_id: Optional[int]) -> bool:
    return user.is_super_admin or (user.branch_id is not None and user.branch_id == branch_id)


def resolve_branch_id(
    user: CurrentUser,
    provided: Optional[int] = None,
    *,
    active_branch_ids: Sequence[int] = (),
) -> int:
    """Pick the branch a new record belongs to.

    Order: explicit value, the user's own branch, then (super admin only) the
    first active branch.
    """
    if provided and (user.is_super_admin or provided == user.branch_id):
        return int(provided)
    if user.branch_id:
        return int(user.branch_id)
    if user.is_super_admin and active_branch_ids:
        return int(active_branch_ids[0])
    raise ValidationError("Branch information is required for this operation")


def load_in_scope(repo: Any, user: CurrentUser, entity_id: int, not_found: str) -> Any:
    """Fetch a record, hiding records from other branches behind a 404."""
    entity = repo.get(entity_id)
    scope = branch_scope(user)
    if entity is None or (scope is not None and getattr(entity, "branch_id", None) != scope):
        raise NotFoundError(not_found)
    return entity

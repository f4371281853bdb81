from __future__ import annotations

from typing import Any, Mapping, Optional

from ..activity.service import ActivityLogService
from ..branches.service import BranchService
from ..common.access import CurrentUser, can_access_branch, require_role
from ..common.query import ListQuery
from ..common.validators import Payload
from ..core.enums import ActivityAction, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import ReceiptConfig
from .repository import ReceiptConfigRepository

MODULE = "Receipt Config"


def parse_receipt_config(data: Mapping[str, Any], *, partial: bool = False) -> dict:
    p = Payload(data, partial=partial)
    p.identifier("branchId", label="Branch")
    p.string("schoolName", required=True, max_len=200, label="School name")
    p.string("address", required=True, max_len=500, label="Address")
    p.string("phone", required=True, max_len=30, label="Phone")
    p.email("email", required=True, label="Email")
    p.string("website", max_len=200)
    p.string("logo", max_len=500)
    p.string("principalName", max_len=100)
    p.string("taxNumber", max_len=50)
    p.string("registrationNumber", max_len=50)
    p.string("footerText", max_len=500)
    p.boolean("isActive", default=True)
    return p.validate()


class ReceiptConfigService:
    """Use case: per-branch receipt letterhead."""

    def __init__(self, configs: ReceiptConfigRepository, *, branches: BranchService, activity: ActivityLogService):
        self._configs = configs
        self._branches = branches
        self._activity = activity

    def list_configs(self, user: CurrentUser) -> list[ReceiptConfig]:
        require_role(user, Role.SUPER_ADMIN)
        return self._configs.find_all(ListQuery(order_by="branch_name", descending=False))

    def active_for_branch(self, branch_id: int) -> Optional[ReceiptConfig]:
        return self._configs.find_one(branch_id=branch_id, is_active=True)

    def current(self, user: CurrentUser, *, branch_id: Optional[int] = None) -> ReceiptConfig:
        if user.is_super_admin:
            if branch_id:
                config = self.active_for_branch(branch_id)
            else:
                found = self._configs.find_all(ListQuery(order_by="created_at", descending=False, limit=1).where(is_active=True))
                config = found[0] if found else None
        else:
            if not user.branch_id:
                raise ValidationError("User branch information is missing")
            config = self.active_for_branch(user.branch_id)
        if not config:
            raise NotFoundError("Receipt configuration not found")
        return config

    def for_branch(self, user: CurrentUser, branch_id: int) -> ReceiptConfig:
        if not can_access_branch(user, branch_id):
            raise AuthorizationError("Access denied to this branch configuration")
        config = self.active_for_branch(branch_id)
        if not config:
            raise NotFoundError("Receipt configuration not found for this branch")
        return config

    def get_config(self, user: CurrentUser, config_id: int) -> ReceiptConfig:
        return self._get_manageable(user, config_id)

    def _get_manageable(self, user: CurrentUser, config_id: int) -> ReceiptConfig:
        config = self._configs.get(config_id)
        if not config:
            raise NotFoundError("Receipt configuration not found")
        if not can_access_branch(user, config.branch_id):
            raise AuthorizationError("Access denied to this configuration")
        return config

    def create_config(self, user: CurrentUser, data: Mapping[str, Any]) -> ReceiptConfig:
        require_role(user, Role.SUPER_ADMIN, Role.BRANCH_ADMIN)
        values = parse_receipt_config(data)
        if user.is_super_admin:
            if not values.get("branch_id"):
                raise ValidationError("Branch ID is required")
            branch_id = values["branch_id"]
        else:
            branch_id = user.branch_id
        if not branch_id:
            raise ValidationError("Branch information is required for this operation")
        branch = self._branches.get_branch(branch_id)

        if self._configs.find_one(branch_id=branch_id):
            raise ValidationError("Receipt configuration already exists for this branch")

        created = self._configs.add({**values, "branch_id": branch_id, "branch_name": branch.name})
        self._activity.record(user, ActivityAction.CREATE, MODULE, f"Created receipt configuration for {branch.name}", branch_id=branch_id)
        return created

    def update_config(self, user: CurrentUser, config_id: int, data: Mapping[str, Any]) -> ReceiptConfig:
        require_role(user, Role.SUPER_ADMIN, Role.BRANCH_ADMIN)
        current = self._get_manageable(user, config_id)
        changes = parse_receipt_config(data, partial=True)
        changes.pop("branch_id", None)

        updated = self._configs.update(current.id, changes)
        self._activity.record(user, ActivityAction.UPDATE, MODULE, f"Updated receipt configuration for {current.branch_name}", branch_id=current.branch_id)
        return updated

    def delete_config(self, user: CurrentUser, config_id: int) -> None:
        require_role(user, Role.SUPER_ADMIN, Role.BRANCH_ADMIN)
        current = self._get_manageable(user, config_id)
        self._configs.delete(current.id)
        self._activity.record(user, ActivityAction.DELETE, MODULE, f"Deleted receipt configuration for {current.branch_name}", branch_id=current.branch_id)

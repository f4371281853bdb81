from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..activity.service import ActivityLogService
from ..common.access import CurrentUser, require_role, resolve_branch_id
from ..common.query import ListQuery, Page
from ..common.repository import Repository
from ..common.validators import Payload
from ..core.constants import MOBILE_PATTERN
from ..core.enums import ActivityAction, Role, Status
from ..core.exceptions import NotFoundError, ValidationError
from .model import Branch
from .repository import BranchRepository

MODULE = "Branches"


def parse_branch(data: Mapping[str, Any], *, partial: bool = False) -> dict:
    p = Payload(data, partial=partial)
    p.string("name", required=True, max_len=100, label="Branch name")
    p.string("code", required=True, max_len=10, upper=True, label="Branch code")
    p.string("address", required=True, max_len=500, label="Address")
    p.string("phone", required=True, pattern=MOBILE_PATTERN, pattern_message="Please provide a valid phone number", label="Phone")
    p.email("email", required=True, label="Email")
    p.string("principalName", max_len=100, label="Principal name")
    p.date("establishedDate", label="Established date")
    p.choice("status", Status, default=Status.ACTIVE)
    return p.validate()


class BranchService:
    """Use case: manage campuses (super admin only) and resolve a record's branch."""

    def __init__(
        self,
        branches: BranchRepository,
        *,
        activity: ActivityLogService,
        dependents: Sequence[Repository] = (),
    ):
        self._branches = branches
        self._activity = activity
        self._dependents = list(dependents)

    def add_dependent(self, repo: Repository) -> None:
        self._dependents.append(repo)

    def active_branch_ids(self) -> list[int]:
        query = ListQuery(order_by="created_at", descending=False).where(status=Status.ACTIVE)
        return [b.id for b in self._branches.find_all(query)]

    def resolve_branch_id(self, user: CurrentUser, provided: Optional[int] = None) -> int:
        ids = self.active_branch_ids() if user.is_super_admin and not provided and not user.branch_id else []
        return resolve_branch_id(user, provided, active_branch_ids=ids)

    def get_branch(self, branch_id: int) -> Branch:
        branch = self._branches.get(branch_id)
        if not branch:
            raise NotFoundError("Branch not found")
        return branch

    def list_branches(self, user: CurrentUser, *, status: Optional[Status] = None, search: Optional[str] = None, page: int = 1, limit: int = 10) -> Page[Branch]:
        require_role(user, Role.SUPER_ADMIN)
        query = ListQuery(search=search, search_fields=("name", "code"), order_by="name", descending=False)
        return self._branches.find_page(query.where(status=status).paged(page, limit))

    def create_branch(self, user: CurrentUser, data: Mapping[str, Any]) -> Branch:
        require_role(user, Role.SUPER_ADMIN)
        values = parse_branch(data)
        if self._branches.find_one(code=values["code"]):
            raise ValidationError("Branch with this code already exists")
        branch = self._branches.add({**values, "created_by": user.user_id})
        self._activity.record(user, ActivityAction.CREATE, MODULE, f"Created branch: {branch.name} ({branch.code})", branch_id=branch.id)
        return branch

    def update_branch(self, user: CurrentUser, branch_id: int, data: Mapping[str, Any]) -> Branch:
        require_role(user, Role.SUPER_ADMIN)
        branch = self.get_branch(branch_id)
        changes = parse_branch(data, partial=True)
        if "code" in changes and changes["code"] != branch.code:
            if self._branches.find_one(code=changes["code"]):
                raise ValidationError("Branch with this code already exists")
        updated = self._branches.update(branch_id, changes)
        self._activity.record(user, ActivityAction.UPDATE, MODULE, f"Updated branch: {updated.name}", branch_id=branch_id)
        return updated

    def delete_branch(self, user: CurrentUser, branch_id: int) -> None:
        require_role(user, Role.SUPER_ADMIN)
        branch = self.get_branch(branch_id)
        for repo in self._dependents:
            if repo.count(ListQuery().where(branch_id=branch_id)) > 0:
                raise ValidationError("Cannot delete branch with existing records. Deactivate it instead.")
        self._branches.delete(branch_id)
        self._activity.record(user, ActivityAction.DELETE, MODULE, f"Deleted branch: {branch.name} ({branch.code})", branch_id=None)

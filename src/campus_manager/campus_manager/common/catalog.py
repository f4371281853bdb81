from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

from ..core.enums import ActivityAction, Status
from ..core.exceptions import ValidationError
from .access import CurrentUser, branch_scope, load_in_scope
from .query import ListQuery, Page
from .repository import Repository
from .validators import Payload


def parse_catalog_entry(data: Mapping[str, Any], *, partial: bool = False, label: str = "Name") -> dict:
    p = Payload(data, partial=partial)
    p.string("name", required=True, max_len=100, label=label)
    p.string("description", max_len=500, label="Description")
    p.choice("status", Status, default=Status.ACTIVE)
    p.identifier("branchId", label="Branch")
    return p.validate()


class CatalogService:
    """Use case: simple per-branch lookup lists (designations, expense/income categories).

    Each entry has a name that is unique within its branch, a description and a status.
    """

    def __init__(
        self,
        entries: Repository,
        *,
        module: str,
        entity: str,
        activity: Any,
        resolve_branch: Callable[[CurrentUser, Optional[int]], int],
        in_use: Optional[Callable[[Any], bool]] = None,
    ):
        self._entries = entries
        self._module = module
        self._entity = entity
        self._activity = activity
        self._resolve_branch = resolve_branch
        self._in_use = in_use

    def list_entries(
        self,
        user: CurrentUser,
        *,
        search: Optional[str] = None,
        status: Optional[Status] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page:
        query = ListQuery(search=search, search_fields=("name", "description"), order_by="name", descending=False)
        query = query.where(branch_id=branch_scope(user), status=status)
        return self._entries.find_page(query.paged(page, limit))

    def active_entries(self, user: CurrentUser) -> list:
        query = ListQuery(order_by="name", descending=False).where(branch_id=branch_scope(user), status=Status.ACTIVE)
        return self._entries.find_all(query)

    def get_entry(self, user: CurrentUser, entry_id: int):
        return load_in_scope(self._entries, user, entry_id, f"{self._entity} not found")

    def _ensure_unique(self, name: str, branch_id: int, exclude_id: Optional[int] = None) -> None:
        existing = self._entries.find_one(name=name, branch_id=branch_id)
        if existing and existing.id != exclude_id:
            raise ValidationError(f"{self._entity} with this name already exists")

    def create_entry(self, user: CurrentUser, data: Mapping[str, Any]):
        values = parse_catalog_entry(data, label=f"{self._entity} name")
        values["branch_id"] = self._resolve_branch(user, values.get("branch_id"))
        self._ensure_unique(values["name"], values["branch_id"])

        created = self._entries.add(values)
        self._activity.record(user, ActivityAction.CREATE, self._module, f"Created {self._entity.lower()}: {created.name}", branch_id=created.branch_id)
        return created

    def update_entry(self, user: CurrentUser, entry_id: int, data: Mapping[str, Any]):
        current = self.get_entry(user, entry_id)
        changes = parse_catalog_entry(data, partial=True, label=f"{self._entity} name")
        changes.pop("branch_id", None)
        if "name" in changes:
            self._ensure_unique(changes["name"], current.branch_id, exclude_id=current.id)

        updated = self._entries.update(current.id, changes)
        self._activity.record(user, ActivityAction.UPDATE, self._module, f"Updated {self._entity.lower()}: {updated.name}", branch_id=updated.branch_id)
        return updated

    def delete_entry(self, user: CurrentUser, entry_id: int) -> None:
        current = self.get_entry(user, entry_id)
        if self._in_use is not None and self._in_use(current):
            raise ValidationError(f"Cannot delete {self._entity.lower()} that is in use")

        self._entries.delete(current.id)
        self._activity.record(user, ActivityAction.DELETE, self._module, f"Deleted {self._entity.lower()}: {current.name}", branch_id=current.branch_id)

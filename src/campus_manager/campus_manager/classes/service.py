from __future__ import annotations

from typing import Any, Mapping, Optional

from ..activity.service import ActivityLogService
from ..branches.service import BranchService
from ..common.access import CurrentUser, branch_scope, load_in_scope
from ..common.aggregation import group_totals
from ..common.query import ListQuery, Page
from ..common.validators import Payload
from ..core.enums import ActivityAction, Status
from ..core.exceptions import NotFoundError, ValidationError
from ..staff.repository import StaffRepository
from ..students.repository import StudentRepository
from .model import Division, SchoolClass
from .repository import ClassRepository, DivisionRepository


def parse_class(data: Mapping[str, Any], *, partial: bool = False) -> dict:
    p = Payload(data, partial=partial)
    p.string("name", required=True, max_len=50, label="Class name")
    p.string("description", max_len=500, label="Description")
    p.string("academicYear", required=True, max_len=20, label="Academic year")
    p.choice("status", Status, default=Status.ACTIVE)
    p.identifier("branchId", label="Branch")
    return p.validate()


def parse_division(data: Mapping[str, Any], *, partial: bool = False) -> dict:
    p = Payload(data, partial=partial)
    p.identifier("classId", required=True, label="Class")
    p.string("name", required=True, max_len=20, label="Division name")
    p.integer("capacity", required=True, minimum=1, maximum=200, label="Capacity")
    p.identifier("classTeacherId", label="Class teacher")
    p.choice("status", Status, default=Status.ACTIVE)
    return p.validate()


class ClassService:
    """Use case: classes per academic year."""

    def __init__(
        self,
        classes: ClassRepository,
        divisions: DivisionRepository,
        students: StudentRepository,
        *,
        branches: BranchService,
        activity: ActivityLogService,
    ):
        self._classes = classes
        self._divisions = divisions
        self._students = students
        self._branches = branches
        self._activity = activity

    def list_classes(
        self,
        user: CurrentUser,
        *,
        search: Optional[str] = None,
        academic_year: Optional[str] = None,
        status: Optional[Status] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[SchoolClass]:
        query = ListQuery(search=search, search_fields=("name", "description"), order_by="name", descending=False)
        query = query.where(branch_id=branch_scope(user), academic_year=academic_year, status=status)
        return self._classes.find_page(query.paged(page, limit))

    def get_class(self, user: CurrentUser, class_id: int) -> SchoolClass:
        return load_in_scope(self._classes, user, class_id, "Class not found")

    def _ensure_unique(self, *, name: str, academic_year: str, branch_id: int, exclude_id: Optional[int] = None) -> None:
        existing = self._classes.find_one(name=name, academic_year=academic_year, branch_id=branch_id)
        if existing and existing.id != exclude_id:
            raise ValidationError("Class with this name already exists for this academic year")

    def create_class(self, user: CurrentUser, data: Mapping[str, Any]) -> SchoolClass:
        values = parse_class(data)
        values["branch_id"] = self._branches.resolve_branch_id(user, values.get("branch_id"))
        self._ensure_unique(name=values["name"], academic_year=values["academic_year"], branch_id=values["branch_id"])

        created = self._classes.add(values)
        self._activity.record(user, ActivityAction.CREATE, "Classes", f"Created class: {created.name} ({created.academic_year})", branch_id=created.branch_id)
        return created

    def update_class(self, user: CurrentUser, class_id: int, data: Mapping[str, Any]) -> SchoolClass:
        current = self.get_class(user, class_id)
        changes = parse_class(data, partial=True)
        changes.pop("branch_id", None)
        if "name" in changes or "academic_year" in changes:
            self._ensure_unique(
                name=changes.get("name", current.name),
                academic_year=changes.get("academic_year", current.academic_year),
                branch_id=current.branch_id,
                exclude_id=current.id,
            )

        updated = self._classes.update(current.id, changes)
        if "name" in changes and changes["name"] != current.name:
            for division in self._divisions.find_all(ListQuery().where(class_id=current.id)):
                self._divisions.update(division.id, {"class_name": changes["name"]})
        self._activity.record(user, ActivityAction.UPDATE, "Classes", f"Updated class: {updated.name}", branch_id=updated.branch_id)
        return updated

    def delete_class(self, user: CurrentUser, class_id: int) -> None:
        current = self.get_class(user, class_id)
        if self._divisions.count(ListQuery().where(class_id=current.id)) > 0:
            raise ValidationError("Cannot delete class with existing divisions. Please delete divisions first.")
        if self._students.count(ListQuery().where(class_id=current.id)) > 0:
            raise ValidationError("Cannot delete class with existing students. Please reassign students first.")

        self._classes.delete(current.id)
        self._activity.record(user, ActivityAction.DELETE, "Classes", f"Deleted class: {current.name} ({current.academic_year})", branch_id=current.branch_id)

    def stats(self, user: CurrentUser) -> dict:
        scope = ListQuery().where(branch_id=branch_scope(user))
        classes = self._classes.find_all(scope)
        divisions = self._divisions.find_all(scope)

        division_counts: dict[int, int] = {}
        for division in divisions:
            division_counts[division.class_id] = division_counts.get(division.class_id, 0) + 1

        return {
            "total_classes": len(classes),
            "active_classes": sum(1 for c in classes if c.status == Status.ACTIVE),
            "inactive_classes": sum(1 for c in classes if c.status == Status.INACTIVE),
            "academic_year_stats": group_totals(classes, lambda c: c.academic_year),
            "division_stats": [
                {"class_id": c.id, "class_name": c.name, "division_count": division_counts.get(c.id, 0)}
                for c in sorted(classes, key=lambda c: c.name)
            ],
        }


class DivisionService:
    """Use case: sections within a class."""

    def __init__(
        self,
        divisions: DivisionRepository,
        classes: ClassRepository,
        staff: StaffRepository,
        students: StudentRepository,
        *,
        activity: ActivityLogService,
    ):
        self._divisions = divisions
        self._classes = classes
        self._staff = staff
        self._students = students
        self._activity = activity

    def list_divisions(
        self,
        user: CurrentUser,
        *,
        search: Optional[str] = None,
        class_id: Optional[int] = None,
        status: Optional[Status] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[Division]:
        query = ListQuery(search=search, search_fields=("name", "class_name", "class_teacher_name"), order_by="name", descending=False)
        query = query.where(branch_id=branch_scope(user), class_id=class_id, status=status)
        return self._divisions.find_page(query.paged(page, limit))

    def list_for_class(self, user: CurrentUser, class_id: int) -> list[Division]:
        load_in_scope(self._classes, user, class_id, "Class not found")
        query = ListQuery(order_by="name", descending=False).where(class_id=class_id, status=Status.ACTIVE)
        return self._divisions.find_all(query)

    def get_division(self, user: CurrentUser, division_id: int) -> Division:
        return load_in_scope(self._divisions, user, division_id, "Division not found")

    def _class_teacher_name(self, user: CurrentUser, teacher_id: Optional[int], branch_id: int) -> Optional[str]:
        if not teacher_id:
            return None
        teacher = self._staff.get(teacher_id)
        if not teacher or teacher.branch_id != branch_id:
            raise NotFoundError("Class teacher not found")
        return teacher.name

    def _ensure_unique(self, *, name: str, class_id: int, branch_id: int, exclude_id: Optional[int] = None) -> None:
        existing = self._divisions.find_one(name=name, class_id=class_id, branch_id=branch_id)
        if existing and existing.id != exclude_id:
            raise ValidationError("Division with this name already exists for the class")

    def create_division(self, user: CurrentUser, data: Mapping[str, Any]) -> Division:
        values = parse_division(data)
        school_class = load_in_scope(self._classes, user, values["class_id"], "Class not found")
        branch_id = school_class.branch_id

        self._ensure_unique(name=values["name"], class_id=school_class.id, branch_id=branch_id)
        values["class_teacher_name"] = self._class_teacher_name(user, values.get("class_teacher_id"), branch_id)

        created = self._divisions.add({**values, "class_name": school_class.name, "branch_id": branch_id})
        self._activity.record(user, ActivityAction.CREATE, "Divisions", f"Created division: {school_class.name}-{created.name}", branch_id=branch_id)
        return created

    def update_division(self, user: CurrentUser, division_id: int, data: Mapping[str, Any]) -> Division:
        current = self.get_division(user, division_id)
        changes = parse_division(data, partial=True)

        if "class_id" in changes and changes["class_id"] != current.class_id:
            school_class = load_in_scope(self._classes, user, changes["class_id"], "Class not found")
            changes["class_name"] = school_class.name
        if "name" in changes or "class_id" in changes:
            self._ensure_unique(
                name=changes.get("name", current.name),
                class_id=changes.get("class_id", current.class_id),
                branch_id=current.branch_id,
                exclude_id=current.id,
            )
        if "class_teacher_id" in changes:
            changes["class_teacher_name"] = self._class_teacher_name(user, changes["class_teacher_id"], current.branch_id)

        updated = self._divisions.update(current.id, changes)
        self._activity.record(user, ActivityAction.UPDATE, "Divisions", f"Updated division: {updated.class_name}-{updated.name}", branch_id=updated.branch_id)
        return updated

    def delete_division(self, user: CurrentUser, division_id: int) -> None:
        current = self.get_division(user, division_id)
        if self._students.count(ListQuery().where(class_id=current.class_id, section=current.name)) > 0:
            raise ValidationError("Cannot delete division with existing students. Please reassign students first.")

        self._divisions.delete(current.id)
        self._activity.record(user, ActivityAction.DELETE, "Divisions", f"Deleted division: {current.class_name}-{current.name}", branch_id=current.branch_id)

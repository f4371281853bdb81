from __future__ import annotations

from typing import Any, Mapping, Optional

from ..activity.service import ActivityLogService
from ..branches.service import BranchService
from ..classes.repository import DivisionRepository
from ..common.access import CurrentUser, branch_scope, load_in_scope
from ..common.aggregation import group_totals
from ..common.catalog import CatalogService
from ..common.query import ListQuery, Page
from ..common.validators import Payload
from ..core.constants import STAFF_PHONE_PATTERN
from ..core.enums import ActivityAction, Status
from ..core.exceptions import ValidationError
from .model import Department, Staff
from .repository import DepartmentRepository, DesignationRepository, StaffRepository


def parse_staff(data: Mapping[str, Any], *, partial: bool = False) -> dict:
    p = Payload(data, partial=partial)
    p.string("employeeId", required=True, max_len=30, label="Employee ID")
    p.string("name", required=True, min_len=2, max_len=100, label="Name")
    p.string("designation", required=True, max_len=100, label="Designation")
    p.string("department", required=True, max_len=100, label="Department")
    p.date("dateOfJoining", required=True, label="Date of joining")
    p.string(
        "phone",
        required=True,
        pattern=STAFF_PHONE_PATTERN,
        pattern_message="Phone must be 10 digits or include a country code (e.g., +911234567890)",
        label="Phone",
    )
    p.email("email", label="Email")
    p.string("address", required=True, min_len=10, max_len=500, label="Address")
    p.number("salary", required=True, minimum=0, label="Salary")
    p.choice("status", Status, default=Status.ACTIVE)
    p.identifier("branchId", label="Branch")
    return p.validate()


def parse_department(data: Mapping[str, Any], *, partial: bool = False) -> dict:
    p = Payload(data, partial=partial)
    p.string("name", required=True, max_len=100, label="Department name")
    p.string("code", required=True, max_len=10, upper=True, label="Department code")
    p.string("description", max_len=500, label="Description")
    p.string("headOfDepartment", max_len=100, label="Head of department")
    p.choice("status", Status, default=Status.ACTIVE)
    p.identifier("branchId", label="Branch")
    return p.validate()


class StaffService:
    """Use case: employee records."""

    def __init__(
        self,
        staff: StaffRepository,
        divisions: DivisionRepository,
        *,
        branches: BranchService,
        activity: ActivityLogService,
    ):
        self._staff = staff
        self._divisions = divisions
        self._branches = branches
        self._activity = activity

    def list_staff(
        self,
        user: CurrentUser,
        *,
        search: Optional[str] = None,
        department: Optional[str] = None,
        designation: Optional[str] = None,
        status: Optional[Status] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[Staff]:
        query = ListQuery(search=search, search_fields=("name", "employee_id", "email", "phone"))
        query = query.where(branch_id=branch_scope(user), department=department, designation=designation, status=status)
        return self._staff.find_page(query.paged(page, limit))

    def get_staff(self, user: CurrentUser, staff_id: int) -> Staff:
        return load_in_scope(self._staff, user, staff_id, "Staff member not found")

    def _ensure_unique(self, employee_id: str, branch_id: int, exclude_id: Optional[int] = None) -> None:
        existing = self._staff.find_one(employee_id=employee_id, branch_id=branch_id)
        if existing and existing.id != exclude_id:
            raise ValidationError("Staff member with this employee ID already exists")

    def create_staff(self, user: CurrentUser, data: Mapping[str, Any]) -> Staff:
        values = parse_staff(data)
        values["branch_id"] = self._branches.resolve_branch_id(user, values.get("branch_id"))
        self._ensure_unique(values["employee_id"], values["branch_id"])

        created = self._staff.add(values)
        self._activity.record(user, ActivityAction.CREATE, "Staff", f"Created staff member: {created.name} ({created.employee_id})", branch_id=created.branch_id)
        return created

    def update_staff(self, user: CurrentUser, staff_id: int, data: Mapping[str, Any]) -> Staff:
        current = self.get_staff(user, staff_id)
        changes = parse_staff(data, partial=True)
        changes.pop("branch_id", None)
        if "employee_id" in changes:
            self._ensure_unique(changes["employee_id"], current.branch_id, exclude_id=current.id)

        updated = self._staff.update(current.id, changes)
        if "name" in changes and changes["name"] != current.name:
            for division in self._divisions.find_all(ListQuery().where(class_teacher_id=current.id)):
                self._divisions.update(division.id, {"class_teacher_name": changes["name"]})
        self._activity.record(user, ActivityAction.UPDATE, "Staff", f"Updated staff member: {updated.name}", branch_id=updated.branch_id)
        return updated

    def delete_staff(self, user: CurrentUser, staff_id: int) -> None:
        current = self.get_staff(user, staff_id)
        if self._divisions.count(ListQuery().where(class_teacher_id=current.id)) > 0:
            raise ValidationError("Cannot delete staff member assigned as class teacher. Please reassign the division first.")

        self._staff.delete(current.id)
        self._activity.record(user, ActivityAction.DELETE, "Staff", f"Deleted staff member: {current.name} ({current.employee_id})", branch_id=current.branch_id)

    def stats(self, user: CurrentUser) -> dict:
        staff = self._staff.find_all(ListQuery().where(branch_id=branch_scope(user)))
        salaries = [s.salary for s in staff]
        return {
            "total": len(staff),
            "active": sum(1 for s in staff if s.status == Status.ACTIVE),
            "inactive": sum(1 for s in staff if s.status == Status.INACTIVE),
            "department_stats": group_totals(staff, lambda s: s.department),
            "salary_stats": {
                "total_salary": round(sum(salaries), 2),
                "avg_salary": round(sum(salaries) / len(salaries), 2) if salaries else 0,
                "min_salary": min(salaries) if salaries else 0,
                "max_salary": max(salaries) if salaries else 0,
            },
        }


class DepartmentService:
    """Use case: departments; a department in use by staff cannot be removed."""

    def __init__(
        self,
        departments: DepartmentRepository,
        staff: StaffRepository,
        *,
        branches: BranchService,
        activity: ActivityLogService,
    ):
        self._departments = departments
        self._staff = staff
        self._branches = branches
        self._activity = activity

    def list_departments(
        self,
        user: CurrentUser,
        *,
        search: Optional[str] = None,
        status: Optional[Status] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[Department]:
        query = ListQuery(search=search, search_fields=("name", "code", "head_of_department"), order_by="name", descending=False)
        query = query.where(branch_id=branch_scope(user), status=status)
        return self._departments.find_page(query.paged(page, limit))

    def get_department(self, user: CurrentUser, department_id: int) -> Department:
        return load_in_scope(self._departments, user, department_id, "Department not found")

    def _ensure_unique(self, code: str, branch_id: int, exclude_id: Optional[int] = None) -> None:
        existing = self._departments.find_one(code=code, branch_id=branch_id)
        if existing and existing.id != exclude_id:
            raise ValidationError("Department with this code already exists")

    def create_department(self, user: CurrentUser, data: Mapping[str, Any]) -> Department:
        values = parse_department(data)
        values["branch_id"] = self._branches.resolve_branch_id(user, values.get("branch_id"))
        self._ensure_unique(values["code"], values["branch_id"])

        created = self._departments.add(values)
        self._activity.record(user, ActivityAction.CREATE, "Departments", f"Created department: {created.name} ({created.code})", branch_id=created.branch_id)
        return created

    def update_department(self, user: CurrentUser, department_id: int, data: Mapping[str, Any]) -> Department:
        current = self.get_department(user, department_id)
        changes = parse_department(data, partial=True)
        changes.pop("branch_id", None)
        if "code" in changes:
            self._ensure_unique(changes["code"], current.branch_id, exclude_id=current.id)

        updated = self._departments.update(current.id, changes)
        if "name" in changes and changes["name"] != current.name:
            for member in self._staff.find_all(ListQuery().where(department=current.name, branch_id=current.branch_id)):
                self._staff.update(member.id, {"department": changes["name"]})
        self._activity.record(user, ActivityAction.UPDATE, "Departments", f"Updated department: {updated.name} ({updated.code})", branch_id=updated.branch_id)
        return updated

    def delete_department(self, user: CurrentUser, department_id: int) -> None:
        current = self.get_department(user, department_id)
        if self._staff.count(ListQuery().where(department=current.name, branch_id=current.branch_id)) > 0:
            raise ValidationError("Cannot delete department with existing staff members. Please reassign staff first.")

        self._departments.delete(current.id)
        self._activity.record(user, ActivityAction.DELETE, "Departments", f"Deleted department: {current.name} ({current.code})", branch_id=current.branch_id)

    def stats(self, user: CurrentUser) -> dict:
        scope = ListQuery().where(branch_id=branch_scope(user))
        departments = self._departments.find_all(scope)
        staff = self._staff.find_all(scope)

        def staff_count(department: Department) -> int:
            return sum(1 for s in staff if s.department == department.name and s.branch_id == department.branch_id)

        return {
            "total_departments": len(departments),
            "active_departments": sum(1 for d in departments if d.status == Status.ACTIVE),
            "inactive_departments": sum(1 for d in departments if d.status == Status.INACTIVE),
            "department_staff_stats": [
                {"name": d.name, "code": d.code, "staff_count": staff_count(d)}
                for d in sorted(departments, key=lambda d: d.name)
            ],
        }


def build_designation_service(
    designations: DesignationRepository,
    staff: StaffRepository,
    *,
    branches: BranchService,
    activity: ActivityLogService,
) -> CatalogService:
    def in_use(designation) -> bool:
        return staff.count(ListQuery().where(designation=designation.name, branch_id=designation.branch_id)) > 0

    return CatalogService(
        designations,
        module="Designations",
        entity="Designation",
        activity=activity,
        resolve_branch=branches.resolve_branch_id,
        in_use=in_use,
    )

from __future__ import annotations

from typing import Any, Mapping, Optional

from ..activity.service import ActivityLogService
from ..branches.service import BranchService
from ..classes.repository import ClassRepository
from ..common.access import CurrentUser, branch_scope, load_in_scope
from ..common.aggregation import group_totals
from ..common.query import ListQuery, Page
from ..common.validators import Payload
from ..core.constants import EMAIL_PATTERN, INTERNATIONAL_PHONE_PATTERN
from ..core.enums import ActivityAction, Gender, Status, TransportType
from ..core.exceptions import ValidationError
from ..transport.repository import TransportRouteRepository
from .model import Student
from .repository import StudentRepository

MODULE = "Students"
SORTABLE = {"name": "name", "admissionNo": "admission_no", "class": "class_name", "createdAt": "created_at"}


def parse_student(data: Mapping[str, Any], *, partial: bool = False) -> dict:
    data = dict(data or {})
    # Clients send the class id under "class".
    if "classId" not in data and "class" in data:
        data["classId"] = data["class"]

    p = Payload(data, partial=partial)
    p.string("admissionNo", required=True, max_len=30, label="Admission number")
    p.string("name", required=True, min_len=2, max_len=100, label="Name")
    p.identifier("classId", required=True, label="Class")
    p.string("section", required=True, max_len=20, label="Section")
    p.date("dateOfBirth", required=True, label="Date of birth")
    p.date("dateOfAdmission", required=True, label="Date of admission")
    p.string("guardianName", required=True, min_len=2, max_len=100, label="Guardian name")
    p.string(
        "guardianPhone",
        required=True,
        pattern=INTERNATIONAL_PHONE_PATTERN,
        pattern_message="Guardian phone must include country code and be valid format (e.g., +911234567890)",
        label="Guardian phone",
    )
    p.string(
        "guardianEmail",
        lower=True,
        pattern=EMAIL_PATTERN,
        pattern_message="Please provide a valid guardian email address",
    )
    p.choice("gender", Gender, required=True, label="Gender")
    p.string("address", required=True, min_len=10, max_len=500, label="Address")
    p.choice("transport", TransportType, default=TransportType.NONE, label="Transport")
    p.identifier("transportRouteId", label="Transport route")
    p.choice("status", Status, default=Status.ACTIVE)
    p.boolean("isStaffChild", default=False)
    p.identifier("branchId", label="Branch")
    return p.validate()


class StudentService:
    """Use case: student admissions and records."""

    def __init__(
        self,
        students: StudentRepository,
        classes: ClassRepository,
        routes: TransportRouteRepository,
        *,
        branches: BranchService,
        activity: ActivityLogService,
    ):
        self._students = students
        self._classes = classes
        self._routes = routes
        self._branches = branches
        self._activity = activity

    def list_students(
        self,
        user: CurrentUser,
        *,
        search: Optional[str] = None,
        class_id: Optional[int] = None,
        section: Optional[str] = None,
        status: Optional[Status] = None,
        transport: Optional[TransportType] = None,
        sort_by: str = "createdAt",
        ascending: bool = False,
        page: int = 1,
        limit: int = 10,
    ) -> Page[Student]:
        query = ListQuery(
            search=search,
            search_fields=("name", "admission_no", "guardian_name"),
            order_by=SORTABLE.get(sort_by, "created_at"),
            descending=not ascending,
        )
        query = query.where(
            branch_id=branch_scope(user),
            class_id=class_id,
            section=section,
            status=status,
            transport=transport,
        )
        return self._students.find_page(query.paged(page, limit))

    def get_student(self, user: CurrentUser, student_id: int) -> Student:
        return load_in_scope(self._students, user, student_id, "Student not found")

    def _check_references(self, branch_id: int, values: dict) -> None:
        """Class and route must belong to the student's own branch."""
        if "class_id" in values:
            school_class = self._classes.get(values["class_id"])
            if not school_class or school_class.branch_id != branch_id:
                raise ValidationError("Invalid class selected")
            values["class_name"] = school_class.name
        if values.get("transport_route_id"):
            route = self._routes.get(values["transport_route_id"])
            if not route or route.branch_id != branch_id:
                raise ValidationError("Invalid transport route selected")

    def create_student(self, user: CurrentUser, data: Mapping[str, Any]) -> Student:
        values = parse_student(data)
        if self._students.find_one(admission_no=values["admission_no"]):
            raise ValidationError("Student with this admission number already exists")
        values["branch_id"] = self._branches.resolve_branch_id(user, values.get("branch_id"))
        self._check_references(values["branch_id"], values)

        created = self._students.add(values)
        self._activity.record(user, ActivityAction.CREATE, MODULE, f"Created student: {created.name} ({created.admission_no})", branch_id=created.branch_id)
        return created

    def update_student(self, user: CurrentUser, student_id: int, data: Mapping[str, Any]) -> Student:
        current = self.get_student(user, student_id)
        changes = parse_student(data, partial=True)
        changes.pop("branch_id", None)

        if "admission_no" in changes and changes["admission_no"] != current.admission_no:
            if self._students.find_one(admission_no=changes["admission_no"]):
                raise ValidationError("Student with this admission number already exists")
        self._check_references(current.branch_id, changes)
        if changes.get("transport") and changes["transport"] != TransportType.SCHOOL:
            changes["transport_route_id"] = None

        updated = self._students.update(current.id, changes)
        self._activity.record(user, ActivityAction.UPDATE, MODULE, f"Updated student: {updated.name} ({updated.admission_no})", branch_id=updated.branch_id)
        return updated

    def delete_student(self, user: CurrentUser, student_id: int) -> None:
        current = self.get_student(user, student_id)
        self._students.delete(current.id)
        self._activity.record(user, ActivityAction.DELETE, MODULE, f"Deleted student: {current.name} ({current.admission_no})", branch_id=current.branch_id)

    def stats(self, user: CurrentUser) -> dict:
        students = self._students.find_all(ListQuery().where(branch_id=branch_scope(user)))
        return {
            "total": len(students),
            "active": sum(1 for s in students if s.status == Status.ACTIVE),
            "inactive": sum(1 for s in students if s.status == Status.INACTIVE),
            "transport_stats": group_totals(students, lambda s: s.transport),
            "class_stats": group_totals(students, lambda s: s.class_name, sort_by="name"),
        }

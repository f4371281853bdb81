from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from ..activity.service import ActivityLogService
from ..branches.service import BranchService
from ..classes.repository import ClassRepository
from ..common.access import CurrentUser, branch_scope, can_access_branch, load_in_scope, scoped_branch
from ..common.aggregation import group_totals, total
from ..common.datetime_utils import now_local, reference_number, start_of_day, start_of_month
from ..common.query import ListQuery, Page
from ..common.validators import Payload
from ..core.enums import ActivityAction, DistanceGroup, FeeType, PaymentMethod, PaymentStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..receipts.service import ReceiptConfigService
from ..students.repository import StudentRepository
from .model import FeeItem, FeePayment, FeeStructure
from .repository import FeePaymentRepository, FeeStructureRepository

logger = logging.getLogger(__name__)

FEE_PAYMENT_METHODS = (PaymentMethod.CASH, PaymentMethod.BANK, PaymentMethod.ONLINE)


def parse_fee_structure(data: Mapping[str, Any], *, partial: bool = False) -> dict:
    p = Payload(data, partial=partial)
    p.string("title", required=True, max_len=200, label="Title")
    p.choice("feeType", FeeType, required=True, label="Fee type")
    p.identifier("classId", required=True, label="Class")
    p.number("amount", required=True, minimum=0, label="Amount")
    p.number("staffDiscountPercent", minimum=0, maximum=100, default=0, label="Staff discount percent")
    p.choice("transportDistanceGroup", DistanceGroup, label="Transport distance group")
    p.string("distanceRange", max_len=50, label="Distance range")
    p.string("academicYear", required=True, max_len=20, label="Academic year")
    p.boolean("isActive", default=True)
    p.identifier("branchId", label="Branch")
    values = p.validate()
    if values.get("fee_type") == FeeType.TRANSPORT and not values.get("transport_distance_group") and not partial:
        raise ValidationError("Transport distance group is required for transport fees")
    return values


def _parse_fee_item(p: Payload) -> dict:
    p.identifier("feeStructureId", label="Fee structure")
    p.string("title", required=not p.has("feeStructureId"), label="Fee title")
    p.choice("feeType", FeeType, required=not p.has("feeStructureId"), label="Fee type")
    p.number("amount", required=not p.has("feeStructureId"), minimum=0, label="Amount")
    p.choice("transportDistanceGroup", DistanceGroup, label="Transport distance group")
    return p.values


def parse_fee_payment(data: Mapping[str, Any]) -> dict:
    p = Payload(data)
    p.identifier("studentId", required=True, label="Student")
    p.items("feeItems", _parse_fee_item, required=True, min_items=1, min_message="At least one fee item is required")
    p.choice("paymentMethod", PaymentMethod, allowed=FEE_PAYMENT_METHODS, required=True, label="Payment method")
    p.choice("status", PaymentStatus, default=PaymentStatus.PAID)
    p.date("paymentDate", label="Payment date")
    p.string("remarks", max_len=500)
    return p.validate()


def parse_fee_payment_update(data: Mapping[str, Any]) -> dict:
    p = Payload(data, partial=True)
    p.choice("paymentMethod", PaymentMethod, allowed=FEE_PAYMENT_METHODS, label="Payment method")
    p.choice("status", PaymentStatus)
    p.date("paymentDate", label="Payment date")
    p.string("remarks", max_len=500)
    return p.validate()


class FeeStructureService:
    """Use case: fee heads per class and academic year."""

    def __init__(
        self,
        structures: FeeStructureRepository,
        classes: ClassRepository,
        *,
        branches: BranchService,
        activity: ActivityLogService,
    ):
        self._structures = structures
        self._classes = classes
        self._branches = branches
        self._activity = activity

    def list_structures(
        self,
        user: CurrentUser,
        *,
        search: Optional[str] = None,
        fee_type: Optional[FeeType] = None,
        class_id: Optional[int] = None,
        academic_year: Optional[str] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[FeeStructure]:
        query = ListQuery(search=search, search_fields=("title", "class_name"), order_by="class_name", descending=False)
        query = query.where(
            branch_id=branch_scope(user),
            fee_type=fee_type,
            class_id=class_id,
            academic_year=academic_year,
            is_active=is_active,
        )
        return self._structures.find_page(query.paged(page, limit))

    def get_structure(self, user: CurrentUser, structure_id: int) -> FeeStructure:
        return load_in_scope(self._structures, user, structure_id, "Fee structure not found")

    def create_structure(self, user: CurrentUser, data: Mapping[str, Any]) -> FeeStructure:
        values = parse_fee_structure(data)
        school_class = load_in_scope(self._classes, user, values["class_id"], "Class not found")
        values["class_name"] = school_class.name
        values["branch_id"] = school_class.branch_id

        created = self._structures.add(values)
        self._activity.record(user, ActivityAction.CREATE, "Fee Structures", f"Created fee structure: {created.title} ({created.class_name}) - ₹{created.amount:g}", branch_id=created.branch_id)
        return created

    def update_structure(self, user: CurrentUser, structure_id: int, data: Mapping[str, Any]) -> FeeStructure:
        current = self.get_structure(user, structure_id)
        changes = parse_fee_structure(data, partial=True)
        changes.pop("branch_id", None)

        fee_type = changes.get("fee_type", current.fee_type)
        group = changes["transport_distance_group"] if "transport_distance_group" in changes else current.transport_distance_group
        if fee_type == FeeType.TRANSPORT and not group:
            raise ValidationError("Transport distance group is required for transport fees")
        if "class_id" in changes and changes["class_id"] != current.class_id:
            changes["class_name"] = load_in_scope(self._classes, user, changes["class_id"], "Class not found").name

        updated = self._structures.update(current.id, changes)
        self._activity.record(user, ActivityAction.UPDATE, "Fee Structures", f"Updated fee structure: {updated.title}", branch_id=updated.branch_id)
        return updated

    def delete_structure(self, user: CurrentUser, structure_id: int) -> None:
        current = self.get_structure(user, structure_id)
        self._structures.delete(current.id)
        self._activity.record(user, ActivityAction.DELETE, "Fee Structures", f"Deleted fee structure: {current.title}", branch_id=current.branch_id)


class FeePaymentService:
    """Use case: record fee collections and produce receipt data."""

    def __init__(
        self,
        payments: FeePaymentRepository,
        structures: FeeStructureRepository,
        students: StudentRepository,
        *,
        receipts: ReceiptConfigService,
        activity: ActivityLogService,
    ):
        self._payments = payments
        self._structures = structures
        self._students = students
        self._receipts = receipts
        self._activity = activity

    def list_payments(
        self,
        user: CurrentUser,
        *,
        search: Optional[str] = None,
        fee_type: Optional[FeeType] = None,
        payment_method: Optional[PaymentMethod] = None,
        status: Optional[PaymentStatus] = None,
        student_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        branch_id: Optional[int] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[FeePayment]:
        query = ListQuery(search=search, search_fields=("receipt_no", "student_name", "class_name"), order_by="payment_date")
        query = query.where(
            branch_id=scoped_branch(user, branch_id),
            payment_method=payment_method,
            status=status,
            student_id=student_id,
        ).between("payment_date", start, end)

        if fee_type is None:
            return self._payments.find_page(query.paged(page, limit))
        # Fee type lives inside the JSON item list.
        rows = [p for p in self._payments.find_all(query) if any(i.fee_type == fee_type for i in p.fee_items)]
        return Page.from_items(rows, page=page, limit=limit)

    def get_payment(self, user: CurrentUser, payment_id: int) -> FeePayment:
        return load_in_scope(self._payments, user, payment_id, "Fee payment not found")

    def _build_item(self, raw: dict, *, is_staff_child: bool, branch_id: int) -> FeeItem:
        structure_id = raw.get("fee_structure_id")
        if not structure_id:
            return FeeItem(
                title=raw["title"],
                fee_type=raw["fee_type"],
                amount=float(raw["amount"]),
                transport_distance_group=raw.get("transport_distance_group"),
            )
        structure = self._structures.get(structure_id)
        if not structure or structure.branch_id != branch_id:
            raise NotFoundError("Fee structure not found")
        return FeeItem(
            title=raw.get("title") or structure.title,
            fee_type=raw.get("fee_type") or structure.fee_type,
            amount=float(raw["amount"]) if raw.get("amount") is not None else structure.amount_for(is_staff_child=is_staff_child),
            fee_structure_id=structure.id,
            transport_distance_group=raw.get("transport_distance_group") or structure.transport_distance_group,
        )

    def create_payment(self, user: CurrentUser, data: Mapping[str, Any]) -> FeePayment:
        values = parse_fee_payment(data)
        student = load_in_scope(self._students, user, values["student_id"], "Student not found")
        branch_id = user.branch_id or student.branch_id

        items = tuple(
            self._build_item(raw, is_staff_child=student.is_staff_child, branch_id=student.branch_id)
            for raw in values["fee_items"]
        )
        total_amount = round(sum(i.amount for i in items), 2)
        now = now_local()

        payment = self._payments.add(
            {
                "receipt_no": reference_number("REC", now),
                "transaction_id": reference_number("TXN", now),
                "student_id": student.id,
                "student_name": student.name,
                "class_id": student.class_id,
                "class_name": student.class_name,
                "fee_items": items,
                "total_amount": total_amount,
                "payment_date": values.get("payment_date") or now,
                "payment_method": values["payment_method"],
                "status": values.get("status", PaymentStatus.PAID),
                "remarks": values.get("remarks"),
                "branch_id": branch_id,
                "created_by": user.user_id,
            }
        )

        fee_details = ", ".join(f"{i.title}: ₹{i.amount:g}" for i in items)
        self._activity.record(
            user,
            ActivityAction.CREATE,
            "Fees",
            f"Recorded fee payment: {payment.receipt_no} - {student.name} - Total: ₹{total_amount:g} ({fee_details})",
            branch_id=branch_id,
        )
        return payment

    def update_payment(self, user: CurrentUser, payment_id: int, data: Mapping[str, Any]) -> FeePayment:
        current = self.get_payment(user, payment_id)
        changes = parse_fee_payment_update(data)
        updated = self._payments.update(current.id, changes)
        self._activity.record(user, ActivityAction.UPDATE, "Fees", f"Updated fee payment: {current.receipt_no}", branch_id=current.branch_id)
        return updated

    def delete_payment(self, user: CurrentUser, payment_id: int) -> None:
        current = self.get_payment(user, payment_id)
        self._payments.delete(current.id)
        self._activity.record(
            user,
            ActivityAction.DELETE,
            "Fees",
            f"Deleted fee payment: {current.receipt_no} - {current.student_name} - ₹{current.total_amount:g}",
            branch_id=current.branch_id,
        )

    def stats(self, user: CurrentUser, *, branch_id: Optional[int] = None) -> dict:
        now = now_local()
        payments = self._payments.find_all(ListQuery().where(branch_id=scoped_branch(user, branch_id)))
        month = [p for p in payments if p.payment_date >= start_of_month(now)]
        today = [p for p in payments if p.payment_date >= start_of_day(now)]
        items = [item for p in payments for item in p.fee_items]

        return {
            "total_collection": {"total": total(payments, lambda p: p.total_amount), "count": len(payments)},
            "monthly_collection": {"total": total(month, lambda p: p.total_amount), "count": len(month)},
            "today_collection": {"total": total(today, lambda p: p.total_amount), "count": len(today)},
            "fee_type_stats": group_totals(items, lambda i: i.fee_type, lambda i: i.amount, sort_by="total"),
            "payment_method_stats": group_totals(payments, lambda p: p.payment_method, lambda p: p.total_amount, sort_by="total"),
        }

    def receipt_data(self, user: CurrentUser, payment_id: int) -> dict:
        payment = self._payments.get(payment_id)
        if not payment:
            raise NotFoundError("Fee payment not found")
        if not can_access_branch(user, payment.branch_id):
            raise AuthorizationError("Access denied to this fee payment")

        config = self._receipts.active_for_branch(payment.branch_id)
        if not config:
            raise NotFoundError("Receipt configuration not found for this branch")
        student = self._students.get(payment.student_id)
        return {
            "payment": payment,
            "receipt_config": config,
            "student": {
                "name": student.name,
                "admission_no": student.admission_no,
                "class_name": student.class_name,
                "section": student.section,
                "guardian_name": student.guardian_name,
                "guardian_phone": student.guardian_phone,
            }
            if student
            else None,
        }

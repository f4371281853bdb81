from datetime import datetime

import pytest

from src.campus_manager.campus_manager.core.enums import FeeType, PaymentMethod, PaymentStatus, Role
from src.campus_manager.campus_manager.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from tests.fakes import make_user


def _structure(container, user, school_class, **overrides):
    payload = {
        "title": "Term 1 Tuition",
        "feeType": "tuition",
        "classId": school_class.id,
        "amount": 10000,
        "staffDiscountPercent": 25,
        "academicYear": "2025-2026",
    }
    payload.update(overrides)
    return container.fee_structure_service.create_structure(user, payload)


def test_create_structure_copies_class_and_branch(container, branch_admin, school_class):
    structure = _structure(container, branch_admin, school_class)

    assert structure.class_name == "Class 5"
    assert structure.branch_id == school_class.branch_id
    assert structure.fee_type == FeeType.TUITION
    assert structure.is_active is True


def test_transport_structure_needs_distance_group(container, branch_admin, school_class):
    with pytest.raises(ValidationError, match="distance group is required"):
        _structure(container, branch_admin, school_class, feeType="transport")

    structure = _structure(container, branch_admin, school_class, feeType="transport", transportDistanceGroup="group2")
    with pytest.raises(ValidationError, match="distance group is required"):
        container.fee_structure_service.update_structure(branch_admin, structure.id, {"transportDistanceGroup": None, "feeType": "transport"})


def test_staff_child_gets_structure_discount(container, branch_admin, school_class, add_student):
    structure = _structure(container, branch_admin, school_class)
    student = add_student(is_staff_child=True)

    payment = container.fee_payment_service.create_payment(
        branch_admin,
        {"studentId": student.id, "feeItems": [{"feeStructureId": structure.id}], "paymentMethod": "cash"},
    )

    assert payment.total_amount == 7500.0
    assert payment.fee_items[0].title == "Term 1 Tuition"
    assert payment.fee_items[0].fee_structure_id == structure.id


def test_payment_totals_free_form_items(container, branch_admin, add_student):
    student = add_student()

    payment = container.fee_payment_service.create_payment(
        branch_admin,
        {
            "studentId": student.id,
            "feeItems": [
                {"title": "Exam fee", "feeType": "exam", "amount": 500},
                {"title": "Library", "feeType": "other", "amount": 250.5},
            ],
            "paymentMethod": "online",
            "paymentDate": "2025-06-02",
        },
    )

    assert payment.total_amount == 750.5
    assert payment.payment_method == PaymentMethod.ONLINE
    assert payment.status == PaymentStatus.PAID
    assert payment.receipt_no.startswith("REC")
    assert payment.transaction_id.startswith("TXN")
    assert payment.student_name == student.name
    assert payment.payment_date == datetime(2025, 6, 2)


def test_payment_rejects_cheque_and_empty_items(container, branch_admin, add_student):
    student = add_student()

    with pytest.raises(ValidationError) as excinfo:
        container.fee_payment_service.create_payment(branch_admin, {"studentId": student.id, "feeItems": [], "paymentMethod": "cheque"})

    fields = {e.field for e in excinfo.value.errors}
    assert fields == {"feeItems", "paymentMethod"}


def test_structure_from_other_branch_is_not_found(container, repos, branch_admin, add_student):
    student = add_student()
    foreign = repos.fee_structures.add(
        {
            "title": "Foreign",
            "fee_type": FeeType.TUITION,
            "class_id": 1,
            "class_name": "X",
            "amount": 10,
            "academic_year": "2025-2026",
            "branch_id": 999,
        }
    )

    with pytest.raises(NotFoundError, match="Fee structure not found"):
        container.fee_payment_service.create_payment(
            branch_admin, {"studentId": student.id, "feeItems": [{"feeStructureId": foreign.id}], "paymentMethod": "cash"}
        )


def test_list_payments_filters_by_fee_type_inside_items(container, branch_admin, add_student):
    student = add_student()
    for fee_type in ("exam", "tuition", "exam"):
        container.fee_payment_service.create_payment(
            branch_admin,
            {"studentId": student.id, "feeItems": [{"title": fee_type, "feeType": fee_type, "amount": 100}], "paymentMethod": "cash"},
        )

    page = container.fee_payment_service.list_payments(branch_admin, fee_type=FeeType.EXAM, limit=1)

    assert page.total == 2
    assert len(page.items) == 1
    assert page.pages == 2


def test_fee_stats_groups_by_type_and_method(container, branch_admin, add_student):
    student = add_student()
    container.fee_payment_service.create_payment(
        branch_admin,
        {"studentId": student.id, "feeItems": [{"title": "T", "feeType": "tuition", "amount": 1000}], "paymentMethod": "cash"},
    )
    container.fee_payment_service.create_payment(
        branch_admin,
        {"studentId": student.id, "feeItems": [{"title": "E", "feeType": "exam", "amount": 200}], "paymentMethod": "bank"},
    )

    stats = container.fee_payment_service.stats(branch_admin)

    assert stats["total_collection"] == {"total": 1200.0, "count": 2}
    assert stats["today_collection"]["count"] == 2
    assert stats["fee_type_stats"][0] == {"name": "tuition", "count": 1, "total": 1000.0}
    assert [row["name"] for row in stats["payment_method_stats"]] == ["cash", "bank"]


def test_receipt_data_needs_branch_config(container, branch, branch_admin, add_student):
    student = add_student()
    payment = container.fee_payment_service.create_payment(
        branch_admin,
        {"studentId": student.id, "feeItems": [{"title": "T", "feeType": "tuition", "amount": 1000}], "paymentMethod": "cash"},
    )

    with pytest.raises(NotFoundError, match="Receipt configuration not found"):
        container.fee_payment_service.receipt_data(branch_admin, payment.id)

    container.receipt_service.create_config(
        branch_admin, {"schoolName": "Sunrise School", "address": "1 School Road", "phone": "0801234567", "email": "office@school.test"}
    )
    data = container.fee_payment_service.receipt_data(branch_admin, payment.id)

    assert data["receipt_config"].school_name == "Sunrise School"
    assert data["student"]["admission_no"] == student.admission_no

    outsider = make_user(Role.BRANCH_ADMIN, branch_id=branch.id + 50)
    with pytest.raises(AuthorizationError):
        container.fee_payment_service.receipt_data(outsider, payment.id)

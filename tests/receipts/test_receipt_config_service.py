import pytest

from src.campus_manager.campus_manager.core.exceptions import AuthorizationError, NotFoundError, ValidationError


def _payload(**overrides):
    payload = {"schoolName": "Sunrise School", "address": "1 School Road", "phone": "0801234567", "email": "office@school.test"}
    payload.update(overrides)
    return payload


def test_one_config_per_branch(container, branch, branch_admin):
    created = container.receipt_service.create_config(branch_admin, _payload())

    assert created.branch_id == branch.id
    assert created.branch_name == "Main Campus"
    with pytest.raises(ValidationError, match="already exists"):
        container.receipt_service.create_config(branch_admin, _payload())


def test_super_admin_must_name_branch(container, super_admin, branch):
    with pytest.raises(ValidationError, match="Branch ID is required"):
        container.receipt_service.create_config(super_admin, _payload())

    created = container.receipt_service.create_config(super_admin, _payload(branchId=branch.id))
    assert container.receipt_service.current(super_admin).id == created.id


def test_current_uses_callers_branch_and_ignores_inactive(container, branch_admin):
    created = container.receipt_service.create_config(branch_admin, _payload())
    assert container.receipt_service.current(branch_admin).id == created.id

    container.receipt_service.update_config(branch_admin, created.id, {"isActive": False})
    with pytest.raises(NotFoundError):
        container.receipt_service.current(branch_admin)


def test_teacher_cannot_manage_configs(container, teacher):
    with pytest.raises(AuthorizationError):
        container.receipt_service.create_config(teacher, _payload())


def test_for_branch_denies_other_branches(container, branch_admin, other_branch):
    with pytest.raises(AuthorizationError):
        container.receipt_service.for_branch(branch_admin, other_branch.id)


def test_get_config_is_branch_scoped(container, super_admin, branch_admin, other_branch):
    foreign = container.receipt_service.create_config(super_admin, _payload(branchId=other_branch.id))

    assert container.receipt_service.get_config(super_admin, foreign.id).branch_id == other_branch.id
    with pytest.raises(AuthorizationError):
        container.receipt_service.get_config(branch_admin, foreign.id)
    with pytest.raises(NotFoundError):
        container.receipt_service.get_config(branch_admin, 999)

import pytest

from src.campus_manager.campus_manager.core.enums import Role, Status
from src.campus_manager.campus_manager.core.exceptions import AuthorizationError, ValidationError
from tests.fakes import make_user


def _payload(**overrides):
    payload = {
        "name": "East Campus",
        "code": "east",
        "address": "4 River Lane",
        "phone": "9876500000",
        "email": "east@school.test",
        "establishedDate": "2010-06-01",
    }
    payload.update(overrides)
    return payload


def test_create_branch_uppercases_code_and_logs(container, repos, super_admin):
    branch = container.branch_service.create_branch(super_admin, _payload())

    assert branch.code == "EAST"
    assert branch.status == Status.ACTIVE
    assert branch.created_by == super_admin.user_id
    assert repos.activity.count() == 1


def test_branch_code_is_unique(container, super_admin):
    container.branch_service.create_branch(super_admin, _payload())

    with pytest.raises(ValidationError, match="already exists"):
        container.branch_service.create_branch(super_admin, _payload(name="Other", code="EAST"))


def test_only_super_admin_manages_branches(container, branch_admin):
    with pytest.raises(AuthorizationError):
        container.branch_service.create_branch(branch_admin, _payload())
    with pytest.raises(AuthorizationError):
        container.branch_service.list_branches(branch_admin)


def test_delete_branch_blocked_by_dependent_records(container, repos, super_admin, branch, school_class):
    with pytest.raises(ValidationError, match="Deactivate it instead"):
        container.branch_service.delete_branch(super_admin, branch.id)

    repos.classes.delete(school_class.id)
    container.branch_service.delete_branch(super_admin, branch.id)
    assert repos.branches.get(branch.id) is None


def test_resolve_branch_prefers_explicit_then_own_then_first_active(container, branch, other_branch, super_admin):
    assert container.branch_service.resolve_branch_id(super_admin, other_branch.id) == other_branch.id
    assert container.branch_service.resolve_branch_id(super_admin) == branch.id

    admin = make_user(Role.BRANCH_ADMIN, branch_id=branch.id)
    assert container.branch_service.resolve_branch_id(admin, other_branch.id) == branch.id


def test_resolve_branch_without_any_branch_fails(container, super_admin):
    with pytest.raises(ValidationError, match="Branch information is required"):
        container.branch_service.resolve_branch_id(super_admin)


def test_list_branches_searches_name_and_code(container, branch, other_branch, super_admin):
    page = container.branch_service.list_branches(super_admin, search="nor")

    assert [b.code for b in page.items] == ["NORTH"]

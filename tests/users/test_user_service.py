import pytest
from werkzeug.security import check_password_hash, generate_password_hash

from src.campus_manager.campus_manager.core.enums import ActivityAction, PermissionAction, Role, Status
from src.campus_manager.campus_manager.core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from tests.fakes import make_user


def _stored_user(repos, *, mobile="9000000001", pin="1234", role=Role.TEACHER, branch_id=1, status=Status.ACTIVE):
    return repos.users.add(
        {
            "name": "Asha Rao",
            "email": f"{mobile}@school.test",
            "mobile": mobile,
            "pin_hash": generate_password_hash(pin),
            "role": role,
            "branch_id": branch_id,
            "status": status,
        }
    )


def _new_user_payload(**overrides):
    payload = {
        "name": "Ravi Kumar",
        "email": "Ravi@School.test",
        "mobile": "9123456780",
        "pin": "4321",
        "role": "teacher",
        "branchId": 1,
        "permissions": [{"module": "students", "actions": ["read", "update"]}],
    }
    payload.update(overrides)
    return payload


def test_authenticate_records_login_and_sets_last_login(container, repos):
    stored = _stored_user(repos)

    user = container.auth_service.authenticate("9000000001", "1234", ip_address="10.0.0.5")

    assert user.id == stored.id
    assert user.last_login is not None
    logs = repos.activity.find_all()
    assert [log.action for log in logs] == [ActivityAction.LOGIN]
    assert logs[0].ip_address == "10.0.0.5"


def test_authenticate_rejects_wrong_pin_and_unknown_mobile(container, repos):
    _stored_user(repos)

    with pytest.raises(AuthenticationError, match="Invalid credentials"):
        container.auth_service.authenticate("9000000001", "9999")
    with pytest.raises(AuthenticationError, match="Invalid credentials"):
        container.auth_service.authenticate("9999999999", "1234")


def test_authenticate_rejects_inactive_account(container, repos):
    _stored_user(repos, status=Status.INACTIVE)

    with pytest.raises(AuthenticationError, match="inactive"):
        container.auth_service.authenticate("9000000001", "1234")


def test_authenticate_treats_placeholder_hash_as_wrong_pin(container, repos):
    repos.users.add(
        {
            "name": "Seeded",
            "email": "seed@school.test",
            "mobile": "9000000002",
            "pin_hash": "CHANGE_ME",
            "role": Role.STAFF,
            "branch_id": 1,
        }
    )

    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("9000000002", "1234")


def test_change_pin_requires_current_pin(container, repos):
    stored = _stored_user(repos)
    caller = make_user(Role.TEACHER, branch_id=1, user_id=stored.id)

    with pytest.raises(ValidationError, match="Current PIN is incorrect"):
        container.auth_service.change_pin(caller, current_pin="0000", new_pin="5678")

    container.auth_service.change_pin(caller, current_pin="1234", new_pin="5678")
    assert check_password_hash(repos.users.get(stored.id).pin_hash, "5678")


def test_create_user_hashes_pin_and_keeps_permissions(container, repos, super_admin):
    created = container.user_service.create_user(super_admin, _new_user_payload())

    assert created.email == "ravi@school.test"
    assert created.branch_id == 1
    assert check_password_hash(created.pin_hash, "4321")
    assert created.permissions[0].module == "students"
    assert created.permissions[0].actions == (PermissionAction.READ, PermissionAction.UPDATE)
    assert "pin_hash" not in created.public()


def test_create_user_rejects_duplicate_email_or_mobile(container, super_admin):
    container.user_service.create_user(super_admin, _new_user_payload())

    with pytest.raises(ValidationError, match="already exists"):
        container.user_service.create_user(super_admin, _new_user_payload(email="other@school.test"))


def test_create_user_reports_every_invalid_field(container, super_admin):
    with pytest.raises(ValidationError) as excinfo:
        container.user_service.create_user(super_admin, {"email": "nope", "mobile": "12", "pin": "1", "role": "boss"})

    fields = {error.field for error in excinfo.value.errors}
    assert {"email", "mobile", "pin", "name", "role"} <= fields


def test_non_super_admin_user_needs_branch(container, super_admin):
    with pytest.raises(ValidationError, match="Branch ID is required"):
        container.user_service.create_user(super_admin, _new_user_payload(branchId=None))


def test_branch_admin_cannot_create_admins_and_assigns_own_branch(container):
    admin = make_user(Role.BRANCH_ADMIN, branch_id=7, user_id=2)

    with pytest.raises(AuthorizationError):
        container.user_service.create_user(admin, _new_user_payload(role="branch_admin"))

    created = container.user_service.create_user(admin, _new_user_payload(branchId=99))
    assert created.branch_id == 7


def test_branch_admin_only_sees_own_branch(container, repos):
    _stored_user(repos, mobile="9000000011", branch_id=1)
    _stored_user(repos, mobile="9000000012", branch_id=2)
    admin = make_user(Role.BRANCH_ADMIN, branch_id=1, user_id=50)

    page = container.user_service.list_users(admin)

    assert page.total == 1
    assert page.items[0].branch_id == 1
    with pytest.raises(AuthorizationError):
        container.user_service.get_user(admin, 2)


def test_delete_user_refuses_own_account(container, repos):
    stored = _stored_user(repos)
    me = make_user(Role.SUPER_ADMIN, user_id=stored.id)

    with pytest.raises(ValidationError, match="your own account"):
        container.user_service.delete_user(me, stored.id)

    container.user_service.delete_user(make_user(Role.SUPER_ADMIN, user_id=99), stored.id)
    assert repos.users.get(stored.id) is None


def test_update_user_promoted_to_super_admin_drops_branch(container, repos, super_admin):
    stored = _stored_user(repos)

    updated = container.user_service.update_user(super_admin, stored.id, {"role": "super_admin"})

    assert updated.role == Role.SUPER_ADMIN
    assert updated.branch_id is None


def test_update_user_demoted_from_super_admin_needs_branch(container, repos, super_admin):
    stored = _stored_user(repos, role=Role.SUPER_ADMIN, branch_id=None)

    with pytest.raises(ValidationError, match="Branch ID is required"):
        container.user_service.update_user(super_admin, stored.id, {"role": "teacher"})
    assert repos.users.get(stored.id).role == Role.SUPER_ADMIN

    updated = container.user_service.update_user(super_admin, stored.id, {"role": "teacher", "branchId": 1})
    assert (updated.role, updated.branch_id) == (Role.TEACHER, 1)


def test_user_without_branch_cannot_list_users(container, repos):
    _stored_user(repos, branch_id=1)
    stray = make_user(Role.BRANCH_ADMIN, branch_id=None, user_id=40)

    with pytest.raises(AuthorizationError, match="No branch is assigned"):
        container.user_service.list_users(stray)

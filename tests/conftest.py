from datetime import datetime

import pytest
from werkzeug.security import generate_password_hash

from src.campus_manager.campus_manager.container import wire
from src.campus_manager.campus_manager.core.enums import Gender, Role, Status, TransportType
from src.campus_manager.campus_manager.main import create_app
from tests.fakes import in_memory_repositories, make_user


@pytest.fixture
def repos():
    return in_memory_repositories()


@pytest.fixture
def container(repos):
    return wire(repos)


@pytest.fixture
def branch(repos):
    return repos.branches.add(
        {
            "name": "Main Campus",
            "code": "MAIN",
            "address": "1 School Road",
            "phone": "9876543210",
            "email": "main@school.test",
            "status": Status.ACTIVE,
        }
    )


@pytest.fixture
def other_branch(repos):
    return repos.branches.add(
        {
            "name": "North Campus",
            "code": "NORTH",
            "address": "9 Hill Street",
            "phone": "9876543211",
            "email": "north@school.test",
            "status": Status.ACTIVE,
        }
    )


@pytest.fixture
def super_admin():
    return make_user(Role.SUPER_ADMIN, user_id=1, name="Root Admin")


@pytest.fixture
def branch_admin(branch):
    return make_user(Role.BRANCH_ADMIN, branch_id=branch.id, user_id=2, name="Branch Admin")


@pytest.fixture
def teacher(branch):
    return make_user(
        Role.TEACHER,
        branch_id=branch.id,
        user_id=3,
        name="Class Teacher",
        permissions={"students": ("read",)},
    )


@pytest.fixture
def school_class(repos, branch):
    return repos.classes.add(
        {
            "name": "Class 5",
            "description": "Fifth standard",
            "academic_year": "2025-2026",
            "branch_id": branch.id,
            "status": Status.ACTIVE,
        }
    )


@pytest.fixture
def app(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    flask_app = create_app(container=container)
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def stored_admin(repos, branch):
    """A branch admin account that can log in with mobile 9000000001 / PIN 1234."""
    return repos.users.add(
        {
            "name": "Branch Admin",
            "email": "admin@school.test",
            "mobile": "9000000001",
            "pin_hash": generate_password_hash("1234"),
            "role": Role.BRANCH_ADMIN,
            "branch_id": branch.id,
            "status": Status.ACTIVE,
        }
    )


@pytest.fixture
def logged_in(client, stored_admin):
    response = client.post("/api/auth/login", json={"mobile": "9000000001", "pin": "1234"})
    assert response.status_code == 200
    return client


@pytest.fixture
def add_student(repos, school_class):
    """Insert a student straight into the repository; keyword overrides win."""

    def _add(**overrides):
        count = repos.students.count() + 1
        values = {
            "admission_no": f"ADM{count:03d}",
            "name": f"Student {count}",
            "class_id": school_class.id,
            "class_name": school_class.name,
            "section": "A",
            "date_of_birth": datetime(2015, 4, 10),
            "date_of_admission": datetime(2021, 6, 1),
            "guardian_name": "Parent Name",
            "guardian_phone": "+919876543210",
            "gender": Gender.FEMALE,
            "address": "12 Long Street, Town",
            "branch_id": school_class.branch_id,
            "transport": TransportType.NONE,
            "status": Status.ACTIVE,
        }
        values.update(overrides)
        return repos.students.add(values)

    return _add


@pytest.fixture
def add_staff(repos, branch):
    def _add(**overrides):
        count = repos.staff.count() + 1
        values = {
            "employee_id": f"EMP{count:03d}",
            "name": f"Staff {count}",
            "designation": "Teacher",
            "department": "Academics",
            "date_of_joining": datetime(2018, 7, 1),
            "phone": "9876543210",
            "address": "3 Staff Quarters",
            "salary": 30000.0,
            "branch_id": branch.id,
            "status": Status.ACTIVE,
        }
        values.update(overrides)
        return repos.staff.add(values)

    return _add

from datetime import datetime

import pytest
from werkzeug.security import generate_password_hash

from src.campus_manager.campus_manager.core.enums import Role, Status


@pytest.fixture
def teacher_client(client, repos, branch):
    repos.users.add(
        {
            "name": "Class Teacher",
            "email": "teacher@school.test",
            "mobile": "9000000002",
            "pin_hash": generate_password_hash("4321"),
            "role": Role.TEACHER,
            "branch_id": branch.id,
            "permissions": [{"module": "students", "actions": ["read"]}],
            "status": Status.ACTIVE,
        }
    )
    response = client.post("/api/auth/login", json={"mobile": "9000000002", "pin": "4321"})
    assert response.status_code == 200
    return client


@pytest.mark.parametrize("path", ["/health", "/api/health"])
def test_health(client, path):
    response = client.get(path)

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "OK"
    assert body["environment"] == "testing"


def test_unknown_route_uses_json_envelope(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.get_json() == {"success": False, "message": "Route not found"}


def test_login_returns_public_user(client, stored_admin):
    response = client.post("/api/auth/login", json={"mobile": "9000000001", "pin": "1234"})

    body = response.get_json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["data"]["user"]["role"] == "branch_admin"
    assert "pinHash" not in body["data"]["user"]


def test_login_with_wrong_pin(client, stored_admin):
    response = client.post("/api/auth/login", json={"mobile": "9000000001", "pin": "9999"})

    assert response.status_code == 401
    assert response.get_json()["message"] == "Invalid credentials"


def test_login_requires_fields(client):
    response = client.post("/api/auth/login", json={})

    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_protected_route_needs_session(client):
    response = client.get("/api/students")

    assert response.status_code == 401
    assert response.get_json()["message"] == "Authentication required. Please log in."


def test_logout_clears_session(logged_in):
    assert logged_in.post("/api/auth/logout").status_code == 200
    assert logged_in.get("/api/auth/profile").status_code == 401


def test_teacher_cannot_manage_branches(teacher_client):
    response = teacher_client.get("/api/branches")

    assert response.status_code == 403
    assert response.get_json()["message"] == "Access denied. Insufficient permissions."


def test_teacher_reads_students_with_pagination(teacher_client, add_student):
    for _ in range(3):
        add_student()

    response = teacher_client.get("/api/students?limit=2")

    body = response.get_json()
    assert response.status_code == 200
    assert len(body["data"]) == 2
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}


def test_teacher_without_write_permission_cannot_create_student(teacher_client):
    response = teacher_client.post("/api/students", json={"name": "New Student"})

    assert response.status_code == 403


def test_validation_errors_are_listed(logged_in):
    response = logged_in.post("/api/students", json={})

    body = response.get_json()
    assert response.status_code == 400
    assert body["error"] == "Multiple validation errors occurred"
    assert {"field", "message"} <= set(body["errors"][0])


def test_invalid_query_enum_is_rejected(logged_in):
    response = logged_in.get("/api/students?status=sleeping")

    assert response.status_code == 400
    assert "status must be one of" in response.get_json()["error"]


def test_financial_report_requires_dates(logged_in):
    response = logged_in.get("/api/reports/financial")

    assert response.status_code == 400
    assert response.get_json()["message"] == "Start date and end date are required"


def test_staff_report_exports_xlsx(logged_in, add_staff):
    add_staff(date_of_joining=datetime(2020, 1, 1))

    response = logged_in.get("/api/reports/staff?format=xlsx")

    assert response.status_code == 200
    assert response.mimetype == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    assert response.data[:2] == b"PK"


def test_account_without_branch_sees_no_students(client, repos, add_student):
    add_student()
    repos.users.add(
        {
            "name": "Unassigned Teacher",
            "email": "stray@school.test",
            "mobile": "9000000003",
            "pin_hash": generate_password_hash("5555"),
            "role": Role.TEACHER,
            "branch_id": None,
            "permissions": [{"module": "students", "actions": ["read"]}],
            "status": Status.ACTIVE,
        }
    )
    assert client.post("/api/auth/login", json={"mobile": "9000000003", "pin": "5555"}).status_code == 200

    response = client.get("/api/students")

    assert response.status_code == 403
    assert response.get_json()["success"] is False

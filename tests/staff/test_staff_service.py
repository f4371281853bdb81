import pytest

from src.campus_manager.campus_manager.core.exceptions import ValidationError


def _payload(**overrides):
    payload = {
        "employeeId": "EMP900",
        "name": "Nikhil Verma",
        "designation": "Teacher",
        "department": "Science",
        "dateOfJoining": "2019-06-10",
        "phone": "9876543210",
        "email": "nikhil@school.test",
        "address": "18 Lake View Road",
        "salary": "42000",
    }
    payload.update(overrides)
    return payload


def test_create_staff_parses_salary_and_branch(container, branch, branch_admin):
    member = container.staff_service.create_staff(branch_admin, _payload())

    assert member.salary == 42000.0
    assert member.branch_id == branch.id


def test_staff_phone_accepts_ten_digits_or_country_code(container, branch_admin):
    container.staff_service.create_staff(branch_admin, _payload(phone="+919876543210"))

    with pytest.raises(ValidationError) as excinfo:
        container.staff_service.create_staff(branch_admin, _payload(employeeId="EMP901", phone="12345"))
    assert excinfo.value.errors[0].field == "phone"


def test_employee_id_unique_within_branch(container, branch_admin):
    container.staff_service.create_staff(branch_admin, _payload())

    with pytest.raises(ValidationError, match="employee ID already exists"):
        container.staff_service.create_staff(branch_admin, _payload(name="Another Person"))


def test_renaming_staff_updates_class_teacher_name(container, repos, branch_admin, school_class, add_staff):
    teacher = add_staff(name="Old Name")
    division = container.division_service.create_division(
        branch_admin, {"classId": school_class.id, "name": "A", "capacity": 40, "classTeacherId": teacher.id}
    )

    container.staff_service.update_staff(branch_admin, teacher.id, {"name": "New Name"})

    assert repos.divisions.get(division.id).class_teacher_name == "New Name"
    with pytest.raises(ValidationError, match="class teacher"):
        container.staff_service.delete_staff(branch_admin, teacher.id)


def test_staff_stats_salary_summary(container, branch_admin, add_staff):
    add_staff(salary=20000)
    add_staff(salary=40000, department="Sports")

    stats = container.staff_service.stats(branch_admin)

    assert stats["total"] == 2
    assert stats["salary_stats"] == {"total_salary": 60000.0, "avg_salary": 30000.0, "min_salary": 20000, "max_salary": 40000}


def test_department_rename_cascades_and_blocks_delete(container, repos, branch_admin, add_staff):
    department = container.department_service.create_department(branch_admin, {"name": "Academics", "code": "acd"})
    member = add_staff(department="Academics")

    assert department.code == "ACD"
    container.department_service.update_department(branch_admin, department.id, {"name": "Academic Affairs"})
    assert repos.staff.get(member.id).department == "Academic Affairs"

    with pytest.raises(ValidationError, match="existing staff"):
        container.department_service.delete_department(branch_admin, department.id)


def test_department_stats_counts_staff(container, branch_admin, add_staff):
    container.department_service.create_department(branch_admin, {"name": "Academics", "code": "ACD"})
    add_staff(department="Academics")
    add_staff(department="Academics")

    stats = container.department_service.stats(branch_admin)

    assert stats["department_staff_stats"] == [{"name": "Academics", "code": "ACD", "staff_count": 2}]


def test_designation_catalog_unique_and_in_use(container, branch_admin, add_staff):
    designation = container.designation_service.create_entry(branch_admin, {"name": "Librarian"})
    with pytest.raises(ValidationError, match="already exists"):
        container.designation_service.create_entry(branch_admin, {"name": "Librarian"})

    add_staff(designation="Librarian")
    with pytest.raises(ValidationError, match="in use"):
        container.designation_service.delete_entry(branch_admin, designation.id)


def test_designation_active_entries_hide_inactive(container, branch_admin):
    container.designation_service.create_entry(branch_admin, {"name": "Clerk"})
    container.designation_service.create_entry(branch_admin, {"name": "Driver", "status": "inactive"})

    assert [d.name for d in container.designation_service.active_entries(branch_admin)] == ["Clerk"]

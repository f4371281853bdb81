from datetime import timedelta

import pytest

from src.campus_manager.campus_manager.common.datetime_utils import now_local
from src.campus_manager.campus_manager.core.enums import ActivityAction, Role
from src.campus_manager.campus_manager.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from tests.fakes import make_user


def _log(repos, *, branch_id, age_days=0, module="Students", action=ActivityAction.CREATE):
    return repos.activity.add(
        {
            "user_id": 5,
            "user_name": "Meera",
            "user_role": "teacher",
            "action": action,
            "module": module,
            "details": "did something",
            "timestamp": now_local() - timedelta(days=age_days),
            "branch_id": branch_id,
        }
    )


def test_record_defaults_to_caller_branch(container, repos):
    caller = make_user(Role.TEACHER, branch_id=4)

    entry = container.activity_service.record(caller, ActivityAction.UPDATE, "Classes", "Renamed class")

    assert entry.branch_id == 4
    assert entry.user_role == "teacher"
    assert repos.activity.count() == 1


def test_logs_are_branch_scoped(container, repos, branch_admin):
    _log(repos, branch_id=branch_admin.branch_id)
    other = _log(repos, branch_id=999)

    page = container.activity_service.list_logs(branch_admin)

    assert page.total == 1
    with pytest.raises(NotFoundError):
        container.activity_service.get_log(branch_admin, other.id)


def test_list_logs_filters_module_substring(container, repos, super_admin):
    _log(repos, branch_id=1, module="Fee Payments")
    _log(repos, branch_id=1, module="Students")

    page = container.activity_service.list_logs(super_admin, module="fee")

    assert [e.module for e in page.items] == ["Fee Payments"]


def test_stats_counts_time_windows(container, repos, super_admin):
    _log(repos, branch_id=1)
    _log(repos, branch_id=1, age_days=3)
    _log(repos, branch_id=1, age_days=40)

    stats = container.activity_service.stats(super_admin)

    assert stats["total_logs"] == 3
    assert stats["today_logs"] == 1
    assert stats["week_logs"] == 2


def test_cleanup_deletes_old_entries_and_logs_itself(container, repos, super_admin):
    _log(repos, branch_id=1, age_days=100)
    _log(repos, branch_id=1, age_days=5)

    deleted = container.activity_service.cleanup(super_admin, days=90)

    assert deleted == 1
    remaining = repos.activity.find_all()
    assert len(remaining) == 2
    assert remaining[0].action == ActivityAction.CLEANUP


def test_cleanup_is_super_admin_only_and_needs_positive_days(container, branch_admin, super_admin):
    with pytest.raises(AuthorizationError):
        container.activity_service.cleanup(branch_admin)
    with pytest.raises(ValidationError):
        container.activity_service.cleanup(super_admin, days=0)

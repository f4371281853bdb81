from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from ..common.access import CurrentUser, branch_scope, require_role
from ..common.aggregation import group_totals
from ..common.datetime_utils import now_local, start_of_day, start_of_month
from ..common.query import ListQuery, Page
from ..core.constants import DEFAULT_LOG_RETENTION_DAYS, RECENT_ITEMS
from ..core.enums import ActivityAction, Role
from ..core.exceptions import NotFoundError, ValidationError
from .model import ActivityLog
from .repository import ActivityLogRepository

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("user_name", "module", "action", "details")


class ActivityLogService:
    """Use case: write and query the audit trail."""

    def __init__(self, logs: ActivityLogRepository):
        self._logs = logs

    def record(
        self,
        user: CurrentUser,
        action: ActivityAction,
        module: str,
        details: str,
        *,
        branch_id: Optional[int] = None,
    ) -> ActivityLog:
        entry = self._logs.add(
            {
                "user_id": user.user_id,
                "user_name": user.name,
                "user_role": user.role.value,
                "action": action,
                "module": module,
                "details": details,
                "timestamp": now_local(),
                "ip_address": user.ip_address,
                "branch_id": branch_id if branch_id is not None else user.branch_id,
            }
        )
        logger.info("%s %s by user=%s: %s", action.value, module, user.user_id, details)
        return entry

    def _base_query(self, user: CurrentUser) -> ListQuery:
        return ListQuery(order_by="timestamp").where(branch_id=branch_scope(user))

    def list_logs(
        self,
        user: CurrentUser,
        *,
        search: Optional[str] = None,
        user_id: Optional[int] = None,
        user_role: Optional[str] = None,
        module: Optional[str] = None,
        action: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        ascending: bool = False,
        page: int = 1,
        limit: int = 20,
    ) -> Page[ActivityLog]:
        contains = {}
        if module:
            contains["module"] = module
        if action:
            contains["action"] = action
        query = ListQuery(
            search=search,
            search_fields=SEARCH_FIELDS,
            contains=contains,
            order_by="timestamp",
            descending=not ascending,
        ).where(branch_id=branch_scope(user), user_id=user_id, user_role=user_role)
        query = query.between("timestamp", start, end)
        return self._logs.find_page(query.paged(page, limit))

    def get_log(self, user: CurrentUser, log_id: int) -> ActivityLog:
        entry = self._logs.get(log_id)
        scope = branch_scope(user)
        if not entry or (scope is not None and entry.branch_id != scope):
            raise NotFoundError("Activity log not found")
        return entry

    def list_for_user(self, user: CurrentUser, target_user_id: int, *, page: int = 1, limit: int = 20) -> Page[ActivityLog]:
        query = self._base_query(user).where(user_id=target_user_id)
        return self._logs.find_page(query.paged(page, limit))

    def stats(self, user: CurrentUser) -> dict:
        now = now_local()
        logs = self._logs.find_all(self._base_query(user))

        def since(moment: datetime) -> int:
            return sum(1 for entry in logs if entry.timestamp >= moment)

        return {
            "total_logs": len(logs),
            "today_logs": since(start_of_day(now)),
            "week_logs": since(now - timedelta(days=7)),
            "month_logs": since(start_of_month(now)),
            "module_stats": group_totals(logs, lambda e: e.module, limit=10),
            "action_stats": group_totals(logs, lambda e: e.action, limit=10),
            "user_role_stats": group_totals(logs, lambda e: e.user_role),
            "recent_activity": logs[:RECENT_ITEMS],
        }

    def recent(self, user: CurrentUser, limit: int = RECENT_ITEMS) -> list[ActivityLog]:
        return self._logs.find_all(self._base_query(user).paged(1, limit))

    def cleanup(self, user: CurrentUser, *, days: int = DEFAULT_LOG_RETENTION_DAYS) -> int:
        """Delete entries older than `days`; super admin only."""
        require_role(user, Role.SUPER_ADMIN)
        if days < 1:
            raise ValidationError("Days must be a positive number")

        cutoff = now_local() - timedelta(days=days)
        deleted = self._logs.delete_where(ListQuery(lt={"timestamp": cutoff}))
        self.record(
            user,
            ActivityAction.CLEANUP,
            "Activity Logs",
            f"Cleaned up {deleted} activity logs older than {days} days",
        )
        return deleted

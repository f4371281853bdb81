from __future__ import annotations

from ..core.enums import ActivityAction
from ..database.mysql_repository import MySQLRepository
from .model import ActivityLog
from .repository import ActivityLogRepository


class MySQLActivityLogRepository(MySQLRepository[ActivityLog], ActivityLogRepository):
    table = "activity_logs"
    model = ActivityLog
    decoders = {"action": ActivityAction}
    default_order = "timestamp"

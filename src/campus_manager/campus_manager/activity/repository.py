from __future__ import annotations

from typing import Protocol

from ..common.repository import Repository
from .model import ActivityLog


class ActivityLogRepository(Repository[ActivityLog], Protocol):
    """Append-mostly store for audit entries."""

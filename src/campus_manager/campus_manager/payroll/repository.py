from __future__ import annotations

from typing import Protocol

from ..common.repository import Repository
from .model import PayrollEntry


class PayrollRepository(Repository[PayrollEntry], Protocol):
    pass

from __future__ import annotations

from typing import Protocol

from ..common.repository import Repository
from .model import Branch


class BranchRepository(Repository[Branch], Protocol):
    pass

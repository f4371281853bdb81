from __future__ import annotations

from typing import Protocol

from ..common.repository import Repository
from .model import Division, SchoolClass


class ClassRepository(Repository[SchoolClass], Protocol):
    pass


class DivisionRepository(Repository[Division], Protocol):
    pass

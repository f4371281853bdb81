from __future__ import annotations

from typing import Protocol

from ..common.repository import Repository
from .model import Department, Designation, Staff


class StaffRepository(Repository[Staff], Protocol):
    pass


class DepartmentRepository(Repository[Department], Protocol):
    pass


class DesignationRepository(Repository[Designation], Protocol):
    pass

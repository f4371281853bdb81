from __future__ import annotations

from typing import Protocol

from ..common.repository import Repository
from .model import FeePayment, FeeStructure


class FeeStructureRepository(Repository[FeeStructure], Protocol):
    pass


class FeePaymentRepository(Repository[FeePayment], Protocol):
    pass

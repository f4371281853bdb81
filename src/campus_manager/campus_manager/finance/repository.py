from __future__ import annotations

from typing import Protocol

from ..common.repository import Repository
from .model import Expense, ExpenseCategory, Income, IncomeCategory


class ExpenseRepository(Repository[Expense], Protocol):
    pass


class IncomeRepository(Repository[Income], Protocol):
    pass


class ExpenseCategoryRepository(Repository[ExpenseCategory], Protocol):
    pass


class IncomeCategoryRepository(Repository[IncomeCategory], Protocol):
    pass

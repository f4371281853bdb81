from __future__ import annotations

from ..core.enums import PaymentMethod, Status
from ..database.mysql_repository import MySQLRepository
from .model import Expense, ExpenseCategory, Income, IncomeCategory
from .repository import ExpenseCategoryRepository, ExpenseRepository, IncomeCategoryRepository, IncomeRepository


class MySQLExpenseRepository(MySQLRepository[Expense], ExpenseRepository):
    table = "expenses"
    model = Expense
    decoders = {"payment_method": PaymentMethod}
    default_order = "date"


class MySQLIncomeRepository(MySQLRepository[Income], IncomeRepository):
    table = "income"
    model = Income
    decoders = {"payment_method": PaymentMethod}
    default_order = "date"


class MySQLExpenseCategoryRepository(MySQLRepository[ExpenseCategory], ExpenseCategoryRepository):
    table = "expense_categories"
    model = ExpenseCategory
    decoders = {"status": Status}
    default_order = "name"


class MySQLIncomeCategoryRepository(MySQLRepository[IncomeCategory], IncomeCategoryRepository):
    table = "income_categories"
    model = IncomeCategory
    decoders = {"status": Status}
    default_order = "name"

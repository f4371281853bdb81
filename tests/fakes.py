"""In-memory repositories for service and controller tests.

Each fake borrows model, JSON columns and decoders from the matching MySQL
repository, so rows round-trip the same way they do against the database.
"""

from __future__ import annotations

import dataclasses
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Mapping, Optional

from src.campus_manager.campus_manager.accounts.mysql_account_repository import (
    MySQLAccountRepository,
    MySQLAccountTransactionRepository,
)
from src.campus_manager.campus_manager.activity.mysql_activity_repository import MySQLActivityLogRepository
from src.campus_manager.campus_manager.branches.mysql_branch_repository import MySQLBranchRepository
from src.campus_manager.campus_manager.classes.mysql_class_repository import MySQLClassRepository
from src.campus_manager.campus_manager.classes.mysql_division_repository import MySQLDivisionRepository
from src.campus_manager.campus_manager.common.access import CurrentUser, Permission
from src.campus_manager.campus_manager.common.query import ListQuery, Page
from src.campus_manager.campus_manager.container import Repositories
from src.campus_manager.campus_manager.core.enums import PermissionAction, Role
from src.campus_manager.campus_manager.database.mysql_base import decode_json, encode_json
from src.campus_manager.campus_manager.fees.mysql_fee_repository import (
    MySQLFeePaymentRepository,
    MySQLFeeStructureRepository,
)
from src.campus_manager.campus_manager.finance.mysql_finance_repository import (
    MySQLExpenseCategoryRepository,
    MySQLExpenseRepository,
    MySQLIncomeCategoryRepository,
    MySQLIncomeRepository,
)
from src.campus_manager.campus_manager.payroll.mysql_payroll_repository import MySQLPayrollRepository
from src.campus_manager.campus_manager.receipts.mysql_receipt_config_repository import MySQLReceiptConfigRepository
from src.campus_manager.campus_manager.staff.mysql_department_repository import (
    MySQLDepartmentRepository,
    MySQLDesignationRepository,
)
from src.campus_manager.campus_manager.staff.mysql_staff_repository import MySQLStaffRepository
from src.campus_manager.campus_manager.students.mysql_student_repository import MySQLStudentRepository
from src.campus_manager.campus_manager.textbooks.mysql_textbook_repository import (
    MySQLTextBookRepository,
    MySQLTextbookIndentRepository,
)
from src.campus_manager.campus_manager.transport.mysql_transport_repository import MySQLTransportRouteRepository
from src.campus_manager.campus_manager.users.mysql_user_repository import MySQLUserRepository

FIXED_NOW = datetime(2025, 6, 15, 10, 30, 0)


def _norm(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    return value


class InMemoryRepository:
    def __init__(self, mysql_cls: type, *, clock=lambda: FIXED_NOW):
        self.model = mysql_cls.model
        self.json_columns = mysql_cls.json_columns
        self.decoders = mysql_cls.decoders
        self.default_order = mysql_cls.default_order
        self._clock = clock
        self._rows: dict[int, Any] = {}
        self._next_id = 1

    @property
    def _fields(self) -> list[str]:
        return [f.name for f in dataclasses.fields(self.model)]

    def _decode(self, column: str, value: Any) -> Any:
        if column in self.json_columns and value is not None:
            value = decode_json(encode_json(value))
        decoder = self.decoders.get(column)
        if decoder is not None and value is not None:
            value = decoder(value)
        return value

    def _matches(self, item: Any, query: ListQuery) -> bool:
        for column, expected in query.filters.items():
            actual = _norm(getattr(item, column))
            if isinstance(expected, (list, tuple, set, frozenset)):
                if actual not in {_norm(v) for v in expected}:
                    return False
            elif actual != _norm(expected):
                return False

        for column, text in query.contains.items():
            if str(text).lower() not in str(_norm(getattr(item, column)) or "").lower():
                return False

        if query.search and query.search_fields:
            needle = query.search.lower()
            if not any(needle in str(_norm(getattr(item, c)) or "").lower() for c in query.search_fields):
                return False

        checks = (
            (query.gte, lambda a, b: a >= b),
            (query.gt, lambda a, b: a > b),
            (query.lte, lambda a, b: a <= b),
            (query.lt, lambda a, b: a < b),
        )
        for bounds, passes in checks:
            for column, bound in bounds.items():
                actual = _norm(getattr(item, column))
                if actual is None or not passes(actual, _norm(bound)):
                    return False
        return True

    @staticmethod
    def _sort_key(item: Any, column: str) -> tuple:
        value = _norm(getattr(item, column))
        return (value is not None, value)

    # Repository contract

    def get(self, entity_id: int) -> Optional[Any]:
        return self._rows.get(int(entity_id))

    def find_one(self, **filters: Any) -> Optional[Any]:
        rows = self.find_all(ListQuery(filters=filters, limit=1))
        return rows[0] if rows else None

    def find_all(self, query: Optional[ListQuery] = None) -> list[Any]:
        query = query or ListQuery(order_by=self.default_order)
        rows = [r for r in self._rows.values() if self._matches(r, query)]
        rows.sort(key=lambda r: r.id, reverse=query.descending)
        # NULL sorts lowest, as in MySQL
        rows.sort(key=lambda r: self._sort_key(r, query.order_by), reverse=query.descending)
        if query.limit:
            rows = rows[query.offset : query.offset + query.limit]
        return rows

    def find_page(self, query: ListQuery) -> Page:
        limit = int(query.limit or 10)
        query = query.paged(query.page, limit)
        return Page(items=self.find_all(query), total=self.count(query), page=query.page, limit=limit)

    def count(self, query: Optional[ListQuery] = None) -> int:
        query = query or ListQuery()
        return sum(1 for r in self._rows.values() if self._matches(r, query))

    def add(self, values: Mapping[str, Any]) -> Any:
        fields = set(self._fields)
        row = {k: self._decode(k, v) for k, v in values.items() if k in fields and k not in {"id", "created_at", "updated_at"}}
        # columns the schema would default
        for f in dataclasses.fields(self.model):
            if f.name not in row and f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                row[f.name] = None
        row["id"] = self._next_id
        if "created_at" in fields:
            row["created_at"] = self._clock()
        if "updated_at" in fields:
            row["updated_at"] = self._clock()
        self._next_id += 1
        entity = self.model(**row)
        self._rows[entity.id] = entity
        return entity

    def update(self, entity_id: int, changes: Mapping[str, Any]) -> Optional[Any]:
        current = self._rows.get(int(entity_id))
        if current is None:
            return None
        fields = set(self._fields) - {"id", "created_at", "updated_at"}
        updates = {k: self._decode(k, v) for k, v in changes.items() if k in fields}
        if "updated_at" in self._fields:
            updates["updated_at"] = self._clock()
        updated = dataclasses.replace(current, **updates)
        self._rows[updated.id] = updated
        return updated

    def delete(self, entity_id: int) -> bool:
        return self._rows.pop(int(entity_id), None) is not None

    def delete_where(self, query: ListQuery) -> int:
        doomed = [r.id for r in self._rows.values() if self._matches(r, query)]
        for entity_id in doomed:
            del self._rows[entity_id]
        return len(doomed)


class InMemoryUsers(InMemoryRepository):
    def __init__(self, **kwargs):
        super().__init__(MySQLUserRepository, **kwargs)

    def get_by_mobile(self, mobile: str):
        return self.find_one(mobile=mobile)

    def get_by_email(self, email: str):
        return self.find_one(email=email.lower())


class InMemoryTextBooks(InMemoryRepository):
    def __init__(self, **kwargs):
        super().__init__(MySQLTextBookRepository, **kwargs)

    def adjust_available(self, deltas: Mapping[int, int]) -> None:
        for book_id, delta in deltas.items():
            book = self.get(book_id)
            if book is not None:
                self.update(book_id, {"available": max(book.available + int(delta), 0)})


def in_memory_repositories() -> Repositories:
    return Repositories(
        users=InMemoryUsers(),
        branches=InMemoryRepository(MySQLBranchRepository),
        activity=InMemoryRepository(MySQLActivityLogRepository),
        classes=InMemoryRepository(MySQLClassRepository),
        divisions=InMemoryRepository(MySQLDivisionRepository),
        students=InMemoryRepository(MySQLStudentRepository),
        staff=InMemoryRepository(MySQLStaffRepository),
        departments=InMemoryRepository(MySQLDepartmentRepository),
        designations=InMemoryRepository(MySQLDesignationRepository),
        routes=InMemoryRepository(MySQLTransportRouteRepository),
        fee_structures=InMemoryRepository(MySQLFeeStructureRepository),
        fee_payments=InMemoryRepository(MySQLFeePaymentRepository),
        receipt_configs=InMemoryRepository(MySQLReceiptConfigRepository),
        payroll=InMemoryRepository(MySQLPayrollRepository),
        accounts=InMemoryRepository(MySQLAccountRepository),
        account_transactions=InMemoryRepository(MySQLAccountTransactionRepository),
        expenses=InMemoryRepository(MySQLExpenseRepository),
        income=InMemoryRepository(MySQLIncomeRepository),
        expense_categories=InMemoryRepository(MySQLExpenseCategoryRepository),
        income_categories=InMemoryRepository(MySQLIncomeCategoryRepository),
        textbooks=InMemoryTextBooks(),
        indents=InMemoryRepository(MySQLTextbookIndentRepository),
    )


def make_user(
    role: Role = Role.SUPER_ADMIN,
    *,
    branch_id: Optional[int] = None,
    user_id: int = 1,
    name: str = "Test User",
    permissions: Mapping[str, tuple] = None,
) -> CurrentUser:
    grants = tuple(
        Permission(module=module, actions=tuple(PermissionAction(a) for a in actions))
        for module, actions in (permissions or {}).items()
    )
    return CurrentUser(user_id=user_id, name=name, role=role, branch_id=branch_id, permissions=grants, ip_address="127.0.0.1")

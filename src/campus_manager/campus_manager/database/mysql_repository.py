from __future__ import annotations

import dataclasses
from decimal import Decimal
from typing import Any, Callable, ClassVar, Generic, Mapping, Optional, Type, TypeVar

from ..common.query import ListQuery, Page
from .connection import DatabaseConnection
from .mysql_base import db_cursor, decode_json, encode_json, encode_value, fetchall, fetchone

T = TypeVar("T")


class MySQLRepository(Generic[T]):
    """Table-backed implementation of the shared Repository contract.

    Subclasses declare the table, the model dataclass, which columns hold
    JSON, and per-column decoders (enums, nested items). Column names equal
    model field names.
    """

    table: ClassVar[str]
    model: ClassVar[Type]
    json_columns: ClassVar[frozenset[str]] = frozenset()
    decoders: ClassVar[Mapping[str, Callable[[Any], Any]]] = {}
    default_order: ClassVar[str] = "created_at"

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @property
    def _columns(self) -> list[str]:
        return [f.name for f in dataclasses.fields(self.model)]

    @property
    def _writable(self) -> set[str]:
        return set(self._columns) - {"id", "created_at", "updated_at"}

    def _to_model(self, row: Mapping[str, Any]) -> T:
        values: dict[str, Any] = {}
        for name in self._columns:
            if name not in row:
                continue
            value = row[name]
            if name in self.json_columns:
                value = decode_json(value)
            if isinstance(value, Decimal):
                value = float(value)
            decoder = self.decoders.get(name)
            if decoder is not None and value is not None:
                value = decoder(value)
            values[name] = value
        return self.model(**values)

    def _encode(self, column: str, value: Any) -> Any:
        if column in self.json_columns:
            return encode_json(value)
        return encode_value(value)

    def _check_column(self, column: str) -> str:
        if column not in self._columns:
            raise ValueError(f"Unknown column {column!r} for table {self.table}")
        return f"`{column}`"

    def _where(self, query: Optional[ListQuery]) -> tuple[str, list[Any]]:
        if query is None:
            return "", []
        clauses: list[str] = []
        params: list[Any] = []

        for column, value in query.filters.items():
            col = self._check_column(column)
            if isinstance(value, (list, tuple, set, frozenset)):
                values = list(value)
                if not values:
                    clauses.append("1=0")
                    continue
                clauses.append(f"{col} IN ({', '.join(['%s'] * len(values))})")
                params.extend(encode_value(v) for v in values)
            elif value is None:
                clauses.append(f"{col} IS NULL")
            else:
                clauses.append(f"{col}=%s")
                params.append(encode_value(value))

        for column, text in query.contains.items():
            clauses.append(f"{self._check_column(column)} LIKE %s")
            params.append(f"%{text}%")

        if query.search and query.search_fields:
            ors = [f"{self._check_column(c)} LIKE %s" for c in query.search_fields]
            clauses.append(f"({' OR '.join(ors)})")
            params.extend(f"%{query.search}%" for _ in query.search_fields)

        for op, bounds in ((">=", query.gte), (">", query.gt), ("<=", query.lte), ("<", query.lt)):
            for column, value in bounds.items():
                clauses.append(f"{self._check_column(column)} {op} %s")
                params.append(encode_value(value))

        if not clauses:
            return "", params
        return " WHERE " + " AND ".join(clauses), params

    def _order(self, query: Optional[ListQuery]) -> str:
        column = query.order_by if query else self.default_order
        direction = "DESC" if (query is None or query.descending) else "ASC"
        return f" ORDER BY {self._check_column(column)} {direction}, `id` {direction}"

    def get(self, entity_id: int) -> Optional[T]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT * FROM `{self.table}` WHERE id=%s", (entity_id,))
            row = fetchone(cur)
            return self._to_model(row) if row else None

    def find_one(self, **filters: Any) -> Optional[T]:
        rows = self.find_all(ListQuery(filters=filters, limit=1))
        return rows[0] if rows else None

    def find_all(self, query: Optional[ListQuery] = None) -> list[T]:
        where, params = self._where(query)
        sql = f"SELECT * FROM `{self.table}`{where}{self._order(query)}"
        if query is not None and query.limit:
            sql += " LIMIT %s OFFSET %s"
            params = [*params, int(query.limit), int(query.offset)]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [self._to_model(r) for r in fetchall(cur)]

    def find_page(self, query: ListQuery) -> Page[T]:
        limit = int(query.limit or 10)
        query = query.paged(query.page, limit)
        return Page(items=self.find_all(query), total=self.count(query), page=query.page, limit=limit)

    def count(self, query: Optional[ListQuery] = None) -> int:
        where, params = self._where(query)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM `{self.table}`{where}", tuple(params))
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def add(self, values: Mapping[str, Any]) -> T:
        columns = [c for c in values if c in self._writable]
        placeholders = ", ".join(["%s"] * len(columns))
        names = ", ".join(f"`{c}`" for c in columns)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO `{self.table}` ({names}) VALUES ({placeholders})",
                tuple(self._encode(c, values[c]) for c in columns),
            )
            new_id = int(cur.lastrowid)
        created = self.get(new_id)
        if created is None:
            raise RuntimeError(f"Inserted row {new_id} not found in {self.table}")
        return created

    def update(self, entity_id: int, changes: Mapping[str, Any]) -> Optional[T]:
        columns = [c for c in changes if c in self._writable]
        if columns:
            assignments = ", ".join(f"`{c}`=%s" for c in columns)
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"UPDATE `{self.table}` SET {assignments} WHERE id=%s",
                    (*[self._encode(c, changes[c]) for c in columns], entity_id),
                )
        return self.get(entity_id)

    def delete(self, entity_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM `{self.table}` WHERE id=%s", (entity_id,))
            return cur.rowcount > 0

    def delete_where(self, query: ListQuery) -> int:
        where, params = self._where(query)
        if not where:
            raise ValueError("Refusing to delete without a filter")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM `{self.table}`{where}", tuple(params))
            return int(cur.rowcount)

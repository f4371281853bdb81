from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Generic, Mapping, Optional, Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ListQuery:
    """Storage-neutral filter passed from services to repositories.

    - filters: equality; list/tuple/set values mean IN (...)
    - contains: case-insensitive substring match per column
    - search + search_fields: substring match OR-ed across columns
    - gte/gt/lte/lt: range bounds per column
    - limit=None means "no limit"
    """

    filters: Mapping[str, Any] = field(default_factory=dict)
    contains: Mapping[str, str] = field(default_factory=dict)
    search: Optional[str] = None
    search_fields: tuple[str, ...] = ()
    gte: Mapping[str, Any] = field(default_factory=dict)
    gt: Mapping[str, Any] = field(default_factory=dict)
    lte: Mapping[str, Any] = field(default_factory=dict)
    lt: Mapping[str, Any] = field(default_factory=dict)
    order_by: str = "created_at"
    descending: bool = True
    page: int = 1
    limit: Optional[int] = None

    @property
    def offset(self) -> int:
        if not self.limit:
            return 0
        return (max(self.page, 1) - 1) * self.limit

    def where(self, **filters: Any) -> "ListQuery":
        merged = dict(self.filters)
        merged.update({k: v for k, v in filters.items() if v is not None})
        return replace(self, filters=merged)

    def between(self, column: str, start: Any = None, end: Any = None) -> "ListQuery":
        gte = dict(self.gte)
        lte = dict(self.lte)
        if start is not None:
            gte[column] = start
        if end is not None:
            lte[column] = end
        return replace(self, gte=gte, lte=lte)

    def before(self, column: str, value: Any) -> "ListQuery":
        lt = dict(self.lt)
        lt[column] = value
        return replace(self, lt=lt)

    def paged(self, page: int, limit: Optional[int]) -> "ListQuery":
        return replace(self, page=max(int(page), 1), limit=limit)

    def unpaged(self) -> "ListQuery":
        return replace(self, page=1, limit=None)


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 0
        return math.ceil(self.total / self.limit)

    def meta(self) -> dict:
        return {"page": self.page, "limit": self.limit, "total": self.total, "pages": self.pages}

    @classmethod
    def from_items(cls, items: Sequence[T], *, page: int, limit: int) -> "Page[T]":
        """Paginate an already materialized list (for filters the database can't express)."""
        start = (max(page, 1) - 1) * limit
        return cls(items=list(items[start : start + limit]), total=len(items), page=page, limit=limit)


def clamp_limit(value: Any, *, default: int, maximum: int) -> int:
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return default
    if limit < 1:
        return default
    return min(limit, maximum)


def parse_page(value: Any) -> int:
    try:
        return max(int(value), 1)
    except (TypeError, ValueError):
        return 1

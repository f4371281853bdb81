from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, TypeVar

from .query import ListQuery, Page

T = TypeVar("T")


class Repository(Protocol[T]):
    """CRUD contract shared by every feature repository.

    Note (DIP): services depend on this interface, never on a concrete DB.
    `values`/`changes` are keyed by model field names.
    """

    def get(self, entity_id: int) -> Optional[T]:
        raise NotImplementedError

    def find_one(self, **filters: Any) -> Optional[T]:
        raise NotImplementedError

    def find_all(self, query: Optional[ListQuery] = None) -> list[T]:
        raise NotImplementedError

    def find_page(self, query: ListQuery) -> Page[T]:
        raise NotImplementedError

    def count(self, query: Optional[ListQuery] = None) -> int:
        raise NotImplementedError

    def add(self, values: Mapping[str, Any]) -> T:
        raise NotImplementedError

    def update(self, entity_id: int, changes: Mapping[str, Any]) -> Optional[T]:
        raise NotImplementedError

    def delete(self, entity_id: int) -> bool:
        raise NotImplementedError

    def delete_where(self, query: ListQuery) -> int:
        raise NotImplementedError

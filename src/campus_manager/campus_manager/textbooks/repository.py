from __future__ import annotations

from typing import Mapping, Protocol

from ..common.repository import Repository
from .model import TextBook, TextbookIndent


class TextBookRepository(Repository[TextBook], Protocol):
    def adjust_available(self, deltas: Mapping[int, int]) -> None:
        """Add each delta to the matching book's `available` count, all or nothing."""
        ...


class TextbookIndentRepository(Repository[TextbookIndent], Protocol):
    pass

from __future__ import annotations

from typing import Protocol

from ..common.repository import Repository
from .model import Student


class StudentRepository(Repository[Student], Protocol):
    pass

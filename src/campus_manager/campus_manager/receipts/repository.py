from __future__ import annotations

from typing import Protocol

from ..common.repository import Repository
from .model import ReceiptConfig


class ReceiptConfigRepository(Repository[ReceiptConfig], Protocol):
    pass

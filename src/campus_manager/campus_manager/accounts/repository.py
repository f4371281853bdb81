from __future__ import annotations

from typing import Protocol

from ..common.repository import Repository
from .model import Account, AccountTransaction


class AccountRepository(Repository[Account], Protocol):
    pass


class AccountTransactionRepository(Repository[AccountTransaction], Protocol):
    pass

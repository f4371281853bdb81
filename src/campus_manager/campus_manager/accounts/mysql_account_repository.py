from __future__ import annotations

from ..core.enums import AccountType, ReferenceType, TransactionType
from ..database.mysql_repository import MySQLRepository
from .model import Account, AccountTransaction
from .repository import AccountRepository, AccountTransactionRepository


class MySQLAccountRepository(MySQLRepository[Account], AccountRepository):
    table = "accounts"
    model = Account
    decoders = {"account_type": AccountType, "is_active": bool}
    default_order = "account_name"


class MySQLAccountTransactionRepository(MySQLRepository[AccountTransaction], AccountTransactionRepository):
    table = "account_transactions"
    model = AccountTransaction
    decoders = {
        "transaction_type": TransactionType,
        "reference_type": ReferenceType,
        "is_reconciled": bool,
    }
    default_order = "transaction_date"

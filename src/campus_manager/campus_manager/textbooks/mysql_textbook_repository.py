from __future__ import annotations

import logging
from typing import Mapping

from ..core.enums import IndentStatus, PaymentMethod, PaymentStatus
from ..database.mysql_base import db_cursor
from ..database.mysql_repository import MySQLRepository
from .model import IndentItem, TextBook, TextbookIndent
from .repository import TextBookRepository, TextbookIndentRepository

logger = logging.getLogger(__name__)


class MySQLTextBookRepository(MySQLRepository[TextBook], TextBookRepository):
    table = "textbooks"
    model = TextBook
    default_order = "title"

    def adjust_available(self, deltas: Mapping[int, int]) -> None:
        if not deltas:
            return
        with db_cursor(self._conn_factory) as (_, cur):
            for book_id, delta in deltas.items():
                cur.execute(
                    "UPDATE `textbooks` SET available = GREATEST(available + %s, 0) WHERE id=%s",
                    (int(delta), int(book_id)),
                )
        logger.debug("Adjusted stock for %d textbook(s)", len(deltas))


class MySQLTextbookIndentRepository(MySQLRepository[TextbookIndent], TextbookIndentRepository):
    table = "textbook_indents"
    model = TextbookIndent
    json_columns = frozenset({"items"})
    decoders = {
        "items": lambda items: tuple(IndentItem.from_dict(i) for i in items),
        "payment_method": PaymentMethod,
        "payment_status": PaymentStatus,
        "status": IndentStatus,
        "receipt_generated": bool,
    }

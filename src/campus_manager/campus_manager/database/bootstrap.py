"""Schema/seed helpers used by create_app (AUTO_INIT_DB / AUTO_SEED_DB) and scripts/."""

from __future__ import annotations

import json
import logging
import os
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

import mysql.connector
from werkzeug.security import generate_password_hash

from .connection import DBConfig

logger = logging.getLogger(__name__)

_CREATE_OR_USE_DB = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b.*?;\s*$")


@contextmanager
def _connect(db_config: dict, *, with_database: bool = True):
    options = DBConfig.from_dict(db_config).connect_kwargs(with_database=with_database)
    conn = mysql.connector.connect(use_pure=True, **options)
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def split_statements(sql: str) -> Iterator[str]:
    """Split a script on ';' outside of quoted strings."""
    buf: list[str] = []
    quote = ""
    escaped = False
    for ch in sql:
        buf.append(ch)
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif quote:
            if ch == quote:
                quote = ""
        elif ch in "'\"":
            quote = ch
        elif ch == ";":
            stmt = "".join(buf[:-1]).strip()
            buf.clear()
            if stmt:
                yield stmt
    tail = "".join(buf).strip()
    if tail:
        yield tail


def _strip_comments(sql: str) -> str:
    return "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))


def _run_script(db_config: dict, path: Union[str, Path]) -> int:
    # The configured database wins over whatever name the script hardcodes
    sql = _CREATE_OR_USE_DB.sub("", _strip_comments(Path(path).read_text(encoding="utf-8")))
    count = 0
    with _connect(db_config) as conn:
        cur = conn.cursor()
        for stmt in split_statements(sql):
            cur.execute(stmt)
            count += 1
    return count


def ensure_database_exists(db_config: dict) -> None:
    name = DBConfig.from_dict(db_config).database
    with _connect(db_config, with_database=False) as conn:
        conn.cursor().execute(
            f"CREATE DATABASE IF NOT EXISTS `{name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )


def apply_schema(db_config: dict, *, schema_path: Union[str, Path]) -> None:
    ensure_database_exists(db_config)
    count = _run_script(db_config, schema_path)
    logger.info("Applied %s (%d statements)", schema_path, count)


def apply_seed_sql(db_config: dict, *, seed_path: Union[str, Path]) -> None:
    count = _run_script(db_config, seed_path)
    logger.info("Applied %s (%d statements)", seed_path, count)


def ensure_demo_users(db_config: dict) -> None:
    """Upsert the demo super admin; credentials come from DEMO_ADMIN_* env vars."""
    mobile = os.getenv("DEMO_ADMIN_MOBILE", "+919999999999")
    pin = os.getenv("DEMO_ADMIN_PIN", "1234")
    email = os.getenv("DEMO_ADMIN_EMAIL", "admin@campus.example").lower()

    with _connect(db_config) as conn:
        cur = conn.cursor(dictionary=True)
        cur.execute("SELECT id FROM users WHERE mobile=%s", (mobile,))
        existing = cur.fetchone()
        if existing:
            cur.execute(
                "UPDATE users SET pin_hash=%s, role='super_admin', status='active' WHERE id=%s",
                (generate_password_hash(pin), existing["id"]),
            )
        else:
            cur.execute(
                """
                INSERT INTO users (name, email, mobile, pin_hash, role, branch_id, permissions, status)
                VALUES (%s, %s, %s, %s, 'super_admin', NULL, %s, 'active')
                """,
                ("Super Admin", email, mobile, generate_password_hash(pin), json.dumps([])),
            )
    logger.info("Demo super admin ready (mobile=%s)", mobile)


def list_tables(db_config: dict) -> list[str]:
    with _connect(db_config) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator

from werkzeug.security import generate_password_hash

from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

DEMO_ACCOUNTS = (
    # full_name, email, password, role, staff_id
    ("Demo Manager", "manager@latex.local", "manager123", "manager", "MGR001"),
    ("Demo Accountant", "accountant@latex.local", "accountant123", "accountant", "ACC001"),
    ("Demo Staff", "staff@latex.local", "staff123", "staff", "STF001"),
    ("Demo Customer", "customer@latex.local", "customer123", "customer", None),
)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql usable whatever DB_NAME is configured.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def split_sql_statements(sql: str) -> Iterator[str]:
    """Split a script on top-level ';', skipping `--` comments and quoted text."""

    buf: list[str] = []
    quote: str | None = None
    i = 0
    n = len(sql)

    while i < n:
        ch = sql[i]

        if quote:
            buf.append(ch)
            if ch == "\\" and i + 1 < n:
                buf.append(sql[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = None
            i += 1
            continue

        if ch == "-" and sql.startswith("--", i):
            end = sql.find("\n", i)
            i = n if end == -1 else end + 1
            continue

        if ch in ("'", '"', "`"):
            quote = ch
        elif ch == ";":
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            i += 1
            continue

        buf.append(ch)
        i += 1

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(conn_factory: DatabaseConnection) -> None:
    conn = conn_factory.connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{conn_factory.config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    conn_factory = DatabaseConnection(DBConfig.from_dict(db_config))
    ensure_database_exists(conn_factory)

    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))
    conn = conn_factory.connect()
    try:
        cur = conn.cursor()
        for stmt in split_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("Schema applied to %s", conn_factory.config.database)


def ensure_demo_users(db_config: dict) -> list[str]:
    """Create or refresh one demo account per role. Returns the emails touched."""

    conn_factory = DatabaseConnection(DBConfig.from_dict(db_config))
    conn = conn_factory.connect()
    touched: list[str] = []
    try:
        cur = conn.cursor(dictionary=True)
        for full_name, email, password, role, staff_id in DEMO_ACCOUNTS:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT user_id FROM users WHERE email=%s", (email,))
            if cur.fetchone():
                cur.execute(
                    """
                    UPDATE users
                    SET full_name=%s, password_hash=%s, role=%s, staff_id=%s, is_active=1
                    WHERE email=%s
                    """,
                    (full_name, password_hash, role, staff_id, email),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO users (full_name, email, password_hash, role, staff_id)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (full_name, email, password_hash, role, staff_id),
                )
            touched.append(email)
        conn.commit()
    finally:
        conn.close()
    return touched


def list_tables(db_config: dict) -> list[str]:
    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()

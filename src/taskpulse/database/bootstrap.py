"""Schema bootstrap and first-admin provisioning (used by create_app and scripts/)."""
from __future__ import annotations

import logging
import re
from contextlib import closing
from pathlib import Path
from typing import Iterator

import mysql.connector
from werkzeug.security import generate_password_hash

from .connection import DBConfig

logger = logging.getLogger(__name__)

# A statement ends at a ';' outside quoted strings; quoted runs may contain escapes.
_STATEMENT_RE = re.compile(r"""(?:'(?:\\.|[^'\\])*'|"(?:\\.|[^"\\])*"|[^;'"])+""", re.S)
_LINE_COMMENT_RE = re.compile(r"(?m)^\s*--.*$")
_DB_SWITCH_RE = re.compile(r"(?im)^\s*(?:CREATE\s+DATABASE|USE)\b[^;]*;")


def iter_sql_statements(sql: str) -> Iterator[str]:
    """Split a schema script into statements.

    Full-line ``--`` comments are dropped, and so are ``CREATE DATABASE`` / ``USE``
    lines: the target database always comes from configuration.
    """
    sql = _DB_SWITCH_RE.sub("", _LINE_COMMENT_RE.sub("", sql))
    for match in _STATEMENT_RE.finditer(sql):
        stmt = match.group(0).strip()
        if stmt:
            yield stmt


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = {
        "host": target.host,
        "port": target.port,
        "user": target.user,
        "password": target.password,
        "time_zone": "+00:00",
    }
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def ensure_database_exists(target: DBConfig) -> None:
    with closing(_connect(target, with_database=False)) as conn:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> int:
    """Run every statement of ``schema_path``; safe to repeat (CREATE ... IF NOT EXISTS)."""

    target = DBConfig.from_dict(db_config)
    ensure_database_exists(target)

    statements = list(iter_sql_statements(Path(schema_path).read_text(encoding="utf-8")))
    with closing(_connect(target)) as conn:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()

    logger.info("schema applied to %s@%s/%s (%d statements)", target.user, target.host, target.database, len(statements))
    return len(statements)


def ensure_admin_user(db_config: dict, *, email: str, password: str, full_name: str = "Admin") -> None:
    """Create an admin account, or promote and re-password the existing one."""

    password_hash = generate_password_hash(password)
    with closing(_connect(DBConfig.from_dict(db_config))) as conn:
        cur = conn.cursor()
        cur.execute(
            """
            INSERT INTO users (full_name, email, password_hash, role)
            VALUES (%s, %s, %s, 'admin')
            ON DUPLICATE KEY UPDATE password_hash=VALUES(password_hash), role='admin', is_active=1
            """,
            (full_name, email, password_hash),
        )
        conn.commit()
    logger.info("admin account ready: %s", email)


def list_tables(db_config: dict) -> list[str]:
    with closing(_connect(DBConfig.from_dict(db_config))) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]

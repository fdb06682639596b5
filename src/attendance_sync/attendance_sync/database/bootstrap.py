from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)

_CREATE_DB_OR_USE = re.compile(r"(?im)^\s*(?:CREATE\s+DATABASE\b|USE\b).*?;\s*$")
_LINE_COMMENT = re.compile(r"(?m)^\s*--.*$")
# Quoted literals (with backslash escapes), statement terminators, everything else.
_SQL_TOKEN = re.compile(r"""'(?:[^'\\]|\\.)*'?|"(?:[^"\\]|\\.)*"?|;|[^'";]+""", re.S)


def prepare_schema_sql(sql: str) -> str:
    """Drop comment lines and any CREATE DATABASE / USE so the configured DB name wins."""
    return _LINE_COMMENT.sub("", _CREATE_DB_OR_USE.sub("", sql))


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split on ``;`` outside quoted literals."""
    current: list[str] = []
    for token in _SQL_TOKEN.findall(sql):
        if token == ";":
            stmt = "".join(current).strip()
            current = []
            if stmt:
                yield stmt
        else:
            current.append(token)
    tail = "".join(current).strip()
    if tail:
        yield tail


@contextmanager
def _server(target: DBConfig, *, with_database: bool) -> Iterator:
    params = {
        "host": target.host,
        "port": target.port,
        "user": target.user,
        "password": target.password,
        "connection_timeout": target.connect_timeout,
        "use_pure": True,
    }
    if with_database:
        params["database"] = target.database
    conn = mysql.connector.connect(**params)
    try:
        yield conn
    finally:
        conn.close()


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    with _server(target, with_database=False) as conn:
        conn.cursor().execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> int:
    """Apply schema.sql (every statement is CREATE ... IF NOT EXISTS); returns statements run."""
    target = DBConfig.from_dict(db_config)
    ensure_database_exists(db_config)
    statements = list(iter_sql_statements(prepare_schema_sql(Path(schema_path).read_text(encoding="utf-8"))))

    with _server(target, with_database=True) as conn:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()

    logger.info("Applied %d schema statements to %s", len(statements), target.database)
    return len(statements)


def list_tables(db_config: dict) -> list[str]:
    with _server(DBConfig.from_dict(db_config), with_database=True) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]

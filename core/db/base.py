"""
Low-level database helpers.

Production runs on Postgres (DATABASE_URL=postgresql://...). Local runs and the
test-suite can point DATABASE_URL at a sqlite file (sqlite:///path/to.db).
All SQL in the stores is written with `?` placeholders and converted here.
"""
from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from typing import Iterable, Iterator

try:
    import psycopg
    from psycopg.rows import dict_row
except Exception as exc:  # pragma: no cover - required dependency
    raise RuntimeError("psycopg is required for Postgres") from exc

SQLITE_PREFIX = "sqlite:///"


def resolve_database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL must be set (postgresql://... or sqlite:///...)")
    if url.startswith("postgres://") or url.startswith("postgresql://"):
        return url
    if url.startswith(SQLITE_PREFIX):
        return url
    raise RuntimeError("DATABASE_URL must start with postgres://, postgresql:// or sqlite:///")


def _convert_qmarks(sql: str) -> str:
    if "?" not in sql:
        return sql
    return sql.replace("?", "%s")


class _CursorWrapper:
    def __init__(self, cursor, dialect: str):
        self._cursor = cursor
        self._dialect = dialect

    def execute(self, sql: str, params: Iterable | None = None):
        if self._dialect == "postgres":
            sql = _convert_qmarks(sql)
        if params is None:
            return self._cursor.execute(sql)
        return self._cursor.execute(sql, params)

    def executemany(self, sql: str, seq_of_params: Iterable):
        if self._dialect == "postgres":
            sql = _convert_qmarks(sql)
        return self._cursor.executemany(sql, seq_of_params)

    def fetchone(self):
        return self._cursor.fetchone()

    def fetchall(self):
        return self._cursor.fetchall()

    def __iter__(self):
        return iter(self._cursor)

    @property
    def dialect(self) -> str:
        return self._dialect

    @property
    def description(self):
        return self._cursor.description

    @property
    def rowcount(self):
        return getattr(self._cursor, "rowcount", 0)

    @property
    def lastrowid(self):
        return getattr(self._cursor, "lastrowid", None)


class _ConnWrapper:
    def __init__(self, conn, dialect: str):
        self._conn = conn
        self.dialect = dialect

    def cursor(self):
        return _CursorWrapper(self._conn.cursor(), self.dialect)

    def commit(self):
        return self._conn.commit()

    def rollback(self):
        return self._conn.rollback()

    def close(self):
        return self._conn.close()


def get_conn():
    """
    Return a DB connection for DATABASE_URL (Postgres or sqlite).
    """
    url = resolve_database_url()
    if url.startswith(SQLITE_PREFIX):
        conn = sqlite3.connect(url[len(SQLITE_PREFIX):])
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return _ConnWrapper(conn, "sqlite")
    conn = psycopg.connect(url, row_factory=dict_row)
    return _ConnWrapper(conn, "postgres")


@contextmanager
def transaction() -> Iterator[_CursorWrapper]:
    """
    Yield a cursor whose writes are committed together, or not at all.
    """
    conn = get_conn()
    try:
        cur = conn.cursor()
        yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

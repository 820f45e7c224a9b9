"""
Quick helper to run a query against the configured database (DATABASE_URL required).

Usage:
  DATABASE_URL=... python scripts/db_shell.py                                       # list tables
  DATABASE_URL=... python scripts/db_shell.py "SELECT * FROM camera_deployments"    # run a custom query
"""
from __future__ import annotations

import sys

from core.db import get_conn

_LIST_TABLES = {
    "postgres": "SELECT tablename AS name FROM pg_tables WHERE schemaname='public' ORDER BY tablename",
    "sqlite": "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name",
}


def main() -> None:
    try:
        conn = get_conn()
    except RuntimeError as exc:
        raise SystemExit(str(exc)) from exc

    query = " ".join(sys.argv[1:]).strip() or _LIST_TABLES[conn.dialect]
    print(f"Using DB: {conn.dialect} (DATABASE_URL)", file=sys.stderr)

    try:
        cur = conn.cursor()
        cur.execute(query)
        if cur.description is not None:
            for row in cur.fetchall():
                print(dict(row))
        else:
            conn.commit()
            print(f"OK ({cur.rowcount} row(s) affected)")
    except Exception as exc:
        raise SystemExit(f"Error running query: {exc}") from exc
    finally:
        conn.close()


if __name__ == "__main__":
    main()

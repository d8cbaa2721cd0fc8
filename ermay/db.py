from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any, Iterable

import streamlit as st

from ermay.schema import SCHEMA_SQL

logger = logging.getLogger(__name__)


def _connect(db_path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


@st.cache_resource
def get_conn(db_path: Path) -> sqlite3.Connection:
    logger.info("Opening database %s", db_path)
    return _connect(db_path)


def ensure_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(SCHEMA_SQL)
    conn.commit()


def q(conn: sqlite3.Connection, sql: str, params: Iterable[Any] = ()) -> list[sqlite3.Row]:
    cur = conn.execute(sql, tuple(params or ()))
    rows = cur.fetchall()
    cur.close()
    return rows


def x(conn: sqlite3.Connection, sql: str, params: Iterable[Any] = ()) -> int:
    cur = conn.execute(sql, tuple(params or ()))
    conn.commit()
    last = cur.lastrowid
    cur.close()
    return int(last or 0)


def rowcount(conn: sqlite3.Connection, sql: str, params: Iterable[Any] = ()) -> int:
    """Like x() but returns the number of affected rows (UPDATE/DELETE)."""
    cur = conn.execute(sql, tuple(params or ()))
    conn.commit()
    n = cur.rowcount
    cur.close()
    return int(n)

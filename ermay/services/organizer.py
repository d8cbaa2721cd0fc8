"""Todos, the file archive, the prospect portfolio and bookmarked links."""

from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

from ermay.constants import PORTFOLIO_SECTORS
from ermay.db import q, x
from ermay.formatting import turkish_sort_key
from ermay.utils import clean_str, iso_now

logger = logging.getLogger(__name__)

PORTFOLIO_FIELDS = (
    "company_name", "sector", "gsm", "phone", "email", "website", "address",
    "city", "district", "tax_id", "tax_office", "notes",
)

# portfolio column -> customer column, for the name-match sync
_CUSTOMER_SYNC = (
    ("email", "email"),
    ("address", "address"),
    ("tax_id", "tax_number"),
    ("tax_office", "tax_office"),
    ("notes", "notes"),
    ("city", "city"),
    ("district", "district"),
)

_UNSAFE_FILENAME = re.compile(r"[^\w.\-]+", re.UNICODE)


# -------------------------
# Todos
# -------------------------

def list_todos(conn, user_id: str):
    return q(
        conn,
        "SELECT * FROM todos WHERE user_id=? ORDER BY completed ASC, created_at DESC, id DESC",
        (user_id,),
    )


def _require_todo(conn, user_id: str, todo_id: int):
    rows = q(conn, "SELECT * FROM todos WHERE user_id=? AND id=?", (user_id, int(todo_id)))
    if not rows:
        logger.warning("Todo %s not found for user %s", todo_id, user_id)
        raise ValueError("Görev bulunamadı.")
    return rows[0]


def add_todo(conn, user_id: str, title: str) -> int:
    title_s = clean_str(title)
    if not title_s:
        raise ValueError("Görev başlığı zorunludur.")
    now = iso_now()
    todo_id = x(
        conn,
        "INSERT INTO todos (user_id, title, completed, created_at, updated_at) VALUES (?, ?, 0, ?, ?)",
        (user_id, title_s, now, now),
    )
    logger.info("Created todo %s for user %s", todo_id, user_id)
    return todo_id


def toggle_todo(conn, user_id: str, todo_id: int) -> bool:
    """Flip the completed flag; returns the new state."""
    todo = _require_todo(conn, user_id, todo_id)
    new_state = not bool(todo["completed"])
    x(
        conn,
        "UPDATE todos SET completed=?, updated_at=? WHERE user_id=? AND id=?",
        (int(new_state), iso_now(), user_id, int(todo_id)),
    )
    return new_state


def update_todo(conn, user_id: str, todo_id: int, *, title: str, completed: bool = False) -> None:
    _require_todo(conn, user_id, todo_id)
    title_s = clean_str(title)
    if not title_s:
        raise ValueError("Görev başlığı zorunludur.")
    x(
        conn,
        "UPDATE todos SET title=?, completed=?, updated_at=? WHERE user_id=? AND id=?",
        (title_s, int(bool(completed)), iso_now(), user_id, int(todo_id)),
    )


def delete_todo(conn, user_id: str, todo_id: int) -> None:
    _require_todo(conn, user_id, todo_id)
    x(conn, "DELETE FROM todos WHERE user_id=? AND id=?", (user_id, int(todo_id)))
    logger.info("Deleted todo %s for user %s", todo_id, user_id)


# -------------------------
# Archive
# -------------------------

def list_archived_files(conn, user_id: str):
    return q(conn, "SELECT * FROM archived_files WHERE user_id=? ORDER BY upload_date DESC, id DESC", (user_id,))


def _require_archived_file(conn, user_id: str, file_id: int):
    rows = q(conn, "SELECT * FROM archived_files WHERE user_id=? AND id=?", (user_id, int(file_id)))
    if not rows:
        logger.warning("Archived file %s not found for user %s", file_id, user_id)
        raise ValueError("Dosya bulunamadı.")
    return rows[0]


def add_archived_file(
    conn,
    user_id: str,
    archive_dir: Path,
    *,
    name: str,
    data: bytes,
    mime_type: Optional[str] = None,
) -> int:
    """Write the bytes under archive_dir and record the metadata."""
    name_s = clean_str(name)
    if not name_s:
        raise ValueError("Dosya adı zorunludur.")
    if not data:
        raise ValueError("Boş dosya arşivlenemez.")

    archive_dir = Path(archive_dir)
    archive_dir.mkdir(parents=True, exist_ok=True)
    stored_name = f"{uuid.uuid4().hex}_{_UNSAFE_FILENAME.sub('_', name_s)}"
    (archive_dir / stored_name).write_bytes(data)

    file_id = x(
        conn,
        """
        INSERT INTO archived_files (user_id, name, mime_type, size_bytes, stored_name, upload_date)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (user_id, name_s, clean_str(mime_type) or "application/octet-stream", len(data), stored_name, iso_now()),
    )
    logger.info("Archived file %s (%s, %s bytes) for user %s", file_id, name_s, len(data), user_id)
    return file_id


def read_archived_file(conn, user_id: str, archive_dir: Path, file_id: int) -> bytes:
    rec = _require_archived_file(conn, user_id, file_id)
    path = Path(archive_dir) / str(rec["stored_name"])
    if not path.exists():
        raise ValueError(f"Dosya içeriği bulunamadı: {rec['name']}")
    return path.read_bytes()


def delete_archived_file(conn, user_id: str, archive_dir: Path, file_id: int) -> None:
    rec = _require_archived_file(conn, user_id, file_id)
    (Path(archive_dir) / str(rec["stored_name"])).unlink(missing_ok=True)
    x(conn, "DELETE FROM archived_files WHERE user_id=? AND id=?", (user_id, int(file_id)))
    logger.info("Deleted archived file %s for user %s", file_id, user_id)


# -------------------------
# Portfolio
# -------------------------

def _normalize_portfolio(data: dict[str, Any]) -> dict[str, Any]:
    out = {f: clean_str(data.get(f)) for f in PORTFOLIO_FIELDS}
    if not out["company_name"]:
        raise ValueError("Firma adı zorunludur.")
    if not out["sector"]:
        raise ValueError("Sektör zorunludur.")
    if out["sector"] not in PORTFOLIO_SECTORS:
        logger.info("Portfolio sector %r is not in the predefined list", out["sector"])
    if out["email"]:
        out["email"] = out["email"].lower()
    out["contacted"] = int(bool(data.get("contacted")))
    return out


def sync_customers_from_portfolio(conn, user_id: str, rec: dict[str, Any]) -> int:
    """
    Customers named exactly like the company take the item's non-empty
    contact fields. Returns the number of customers touched.
    """
    matches = q(conn, "SELECT * FROM customers WHERE user_id=? AND name=?", (user_id, rec["company_name"]))
    for c in matches:
        phone = rec.get("gsm") or rec.get("phone") or c["phone"]
        values = [phone] + [rec.get(src) or c[dst] for src, dst in _CUSTOMER_SYNC]
        assignments = ", ".join(["phone=?"] + [f"{dst}=?" for _, dst in _CUSTOMER_SYNC])
        x(
            conn,
            f"UPDATE customers SET {assignments}, updated_at=? WHERE user_id=? AND id=?",
            (*values, iso_now(), user_id, int(c["id"])),
        )
    if matches:
        logger.info("Synced %s customer(s) from portfolio item %r", len(matches), rec["company_name"])
    return len(matches)


def list_portfolio(conn, user_id: str, *, sector: Optional[str] = None):
    if sector:
        rows = q(conn, "SELECT * FROM portfolio_items WHERE user_id=? AND sector=?", (user_id, sector))
    else:
        rows = q(conn, "SELECT * FROM portfolio_items WHERE user_id=?", (user_id,))
    return sorted(rows, key=lambda r: turkish_sort_key(r["company_name"]))


def get_portfolio_item(conn, user_id: str, item_id: int):
    rows = q(conn, "SELECT * FROM portfolio_items WHERE user_id=? AND id=?", (user_id, int(item_id)))
    return rows[0] if rows else None


def add_portfolio_item(conn, user_id: str, **data) -> int:
    rec = _normalize_portfolio(data)
    cols = list(rec.keys())
    col_list = ", ".join(cols)
    marks = ", ".join("?" for _ in cols)
    now = iso_now()
    item_id = x(
        conn,
        f"INSERT INTO portfolio_items (user_id, {col_list}, created_at, updated_at) VALUES (?, {marks}, ?, ?)",
        (user_id, *[rec[c] for c in cols], now, now),
    )
    sync_customers_from_portfolio(conn, user_id, rec)
    logger.info("Created portfolio item %s for user %s", item_id, user_id)
    return item_id


def update_portfolio_item(conn, user_id: str, item_id: int, **data) -> None:
    if get_portfolio_item(conn, user_id, item_id) is None:
        raise ValueError("Portföy kaydı bulunamadı.")
    rec = _normalize_portfolio(data)
    cols = list(rec.keys())
    assignments = ", ".join(f"{c}=?" for c in cols)
    x(
        conn,
        f"UPDATE portfolio_items SET {assignments}, updated_at=? WHERE user_id=? AND id=?",
        (*[rec[c] for c in cols], iso_now(), user_id, int(item_id)),
    )
    sync_customers_from_portfolio(conn, user_id, rec)
    logger.info("Updated portfolio item %s for user %s", item_id, user_id)


def delete_portfolio_item(conn, user_id: str, item_id: int) -> None:
    if get_portfolio_item(conn, user_id, item_id) is None:
        raise ValueError("Portföy kaydı bulunamadı.")
    x(conn, "DELETE FROM portfolio_items WHERE user_id=? AND id=?", (user_id, int(item_id)))
    logger.info("Deleted portfolio item %s for user %s", item_id, user_id)


# -------------------------
# Useful links
# -------------------------

def list_links(conn, user_id: str):
    return q(conn, "SELECT * FROM useful_links WHERE user_id=? ORDER BY created_at DESC, id DESC", (user_id,))


def add_link(conn, user_id: str, name: str, url: str) -> int:
    name_s = clean_str(name)
    url_s = clean_str(url)
    if not name_s or not url_s:
        raise ValueError("Link adı ve URL boş olamaz.")
    parsed = urlparse(url_s)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Geçerli bir URL girin (örn: https://google.com).")
    link_id = x(
        conn,
        "INSERT INTO useful_links (user_id, name, url, created_at) VALUES (?, ?, ?, ?)",
        (user_id, name_s, url_s, iso_now()),
    )
    logger.info("Created link %s for user %s", link_id, user_id)
    return link_id


def delete_link(conn, user_id: str, link_id: int) -> None:
    rows = q(conn, "SELECT id FROM useful_links WHERE user_id=? AND id=?", (user_id, int(link_id)))
    if not rows:
        raise ValueError("Link bulunamadı.")
    x(conn, "DELETE FROM useful_links WHERE user_id=? AND id=?", (user_id, int(link_id)))

from __future__ import annotations

import logging
from typing import Any, Optional

from ermay.constants import (
    CONTACT_TYPES,
    TASK_STATUSES,
    CURRENCIES,
    DEFAULT_CURRENCY,
    PARTY_CUSTOMER,
    PARTY_SUPPLIER,
    check_code,
)
from ermay.db import q, x
from ermay.formatting import turkish_lower, turkish_sort_key
from ermay.utils import clean_str, iso_now, to_iso_date, to_optional_iso_date

logger = logging.getLogger(__name__)

CUSTOMER_FIELDS = (
    "name", "email", "phone", "address", "tax_number", "tax_office",
    "city", "district", "notes", "default_currency",
)
SUPPLIER_FIELDS = CUSTOMER_FIELDS + ("website", "sector")

_TABLES = {PARTY_CUSTOMER: "customers", PARTY_SUPPLIER: "suppliers"}
_FIELDS = {PARTY_CUSTOMER: CUSTOMER_FIELDS, PARTY_SUPPLIER: SUPPLIER_FIELDS}
_NOT_FOUND = {PARTY_CUSTOMER: "Müşteri bulunamadı.", PARTY_SUPPLIER: "Tedarikçi bulunamadı."}


def _table(party_type: str) -> str:
    return _TABLES[check_code(party_type, _TABLES, field="cari türü")]


def _normalize_party(party_type: str, data: dict[str, Any]) -> dict[str, Any]:
    name = clean_str(data.get("name"))
    if not name:
        raise ValueError("İsim zorunludur.")

    out: dict[str, Any] = {}
    for f in _FIELDS[party_type]:
        out[f] = clean_str(data.get(f))
    out["name"] = name
    out["default_currency"] = check_code(
        data.get("default_currency") or DEFAULT_CURRENCY, CURRENCIES, field="para birimi"
    )
    if out.get("email"):
        out["email"] = out["email"].lower()
    return out


# -------------------------
# Generic party CRUD
# -------------------------

def list_parties(conn, user_id: str, party_type: str):
    return q(
        conn,
        f"SELECT * FROM {_table(party_type)} WHERE user_id=? ORDER BY created_at DESC, id DESC",
        (user_id,),
    )


def get_party(conn, user_id: str, party_type: str, party_id: int):
    rows = q(conn, f"SELECT * FROM {_table(party_type)} WHERE user_id=? AND id=?", (user_id, int(party_id)))
    return rows[0] if rows else None


def require_party(conn, user_id: str, party_type: str, party_id: int):
    row = get_party(conn, user_id, party_type, party_id)
    if row is None:
        logger.warning("%s %s not found for user %s", party_type, party_id, user_id)
        raise ValueError(_NOT_FOUND[party_type])
    return row


def add_party(conn, user_id: str, party_type: str, data: dict[str, Any]) -> int:
    table = _table(party_type)
    rec = _normalize_party(party_type, data)
    now = iso_now()
    cols = list(rec.keys())
    col_list = ", ".join(cols)
    marks = ", ".join("?" for _ in cols)
    party_id = x(
        conn,
        f"""
        INSERT INTO {table} (user_id, {col_list}, created_at, updated_at)
        VALUES (?, {marks}, ?, ?)
        """,
        (user_id, *[rec[c] for c in cols], now, now),
    )
    logger.info("Created %s %s for user %s", party_type.lower(), party_id, user_id)
    return party_id


def update_party(conn, user_id: str, party_type: str, party_id: int, data: dict[str, Any]) -> None:
    """Full replace of the editable fields."""
    table = _table(party_type)
    require_party(conn, user_id, party_type, party_id)
    rec = _normalize_party(party_type, data)
    cols = list(rec.keys())
    assignments = ", ".join(f"{c}=?" for c in cols)
    x(
        conn,
        f"UPDATE {table} SET {assignments}, updated_at=? WHERE user_id=? AND id=?",
        (*[rec[c] for c in cols], iso_now(), user_id, int(party_id)),
    )
    logger.info("Updated %s %s for user %s", party_type.lower(), party_id, user_id)


def delete_party(conn, user_id: str, party_type: str, party_id: int) -> None:
    """
    Deletes the party together with its ledger rows.
    Stock effects of linked sales/purchases are reverted first so that
    current_stock stays consistent with the remaining documents.
    """
    # Imported here: ledger depends on parties for lookups.
    from ermay.services import ledger

    party_type = check_code(party_type, _TABLES, field="cari türü")
    require_party(conn, user_id, party_type, party_id)

    if party_type == PARTY_CUSTOMER:
        for s in ledger.list_sales(conn, user_id, customer_id=party_id):
            ledger.delete_sale(conn, user_id, int(s["id"]))
        for p in ledger.list_payments(conn, user_id, customer_id=party_id):
            ledger.delete_payment(conn, user_id, int(p["id"]))
    else:
        for p in ledger.list_purchases(conn, user_id, supplier_id=party_id):
            ledger.delete_purchase(conn, user_id, int(p["id"]))
        for p in ledger.list_supplier_payments(conn, user_id, supplier_id=party_id):
            ledger.delete_supplier_payment(conn, user_id, int(p["id"]))

    x(conn, f"DELETE FROM {_table(party_type)} WHERE user_id=? AND id=?", (user_id, int(party_id)))
    logger.info("Deleted %s %s (with ledger) for user %s", party_type.lower(), party_id, user_id)


# -------------------------
# Named wrappers used by pages
# -------------------------

def list_customers(conn, user_id: str):
    return list_parties(conn, user_id, PARTY_CUSTOMER)


def get_customer(conn, user_id: str, customer_id: int):
    return get_party(conn, user_id, PARTY_CUSTOMER, customer_id)


def add_customer(conn, user_id: str, **data) -> int:
    return add_party(conn, user_id, PARTY_CUSTOMER, data)


def update_customer(conn, user_id: str, customer_id: int, **data) -> None:
    update_party(conn, user_id, PARTY_CUSTOMER, customer_id, data)


def delete_customer(conn, user_id: str, customer_id: int) -> None:
    delete_party(conn, user_id, PARTY_CUSTOMER, customer_id)


def list_suppliers(conn, user_id: str):
    return list_parties(conn, user_id, PARTY_SUPPLIER)


def get_supplier(conn, user_id: str, supplier_id: int):
    return get_party(conn, user_id, PARTY_SUPPLIER, supplier_id)


def add_supplier(conn, user_id: str, **data) -> int:
    return add_party(conn, user_id, PARTY_SUPPLIER, data)


def update_supplier(conn, user_id: str, supplier_id: int, **data) -> None:
    update_party(conn, user_id, PARTY_SUPPLIER, supplier_id, data)


def delete_supplier(conn, user_id: str, supplier_id: int) -> None:
    delete_party(conn, user_id, PARTY_SUPPLIER, supplier_id)


def search_parties(conn, user_id: str, text: str) -> list[dict[str, Any]]:
    """Case-insensitive match on name, phone, email or tax number across both party types."""
    needle = turkish_lower(clean_str(text) or "")
    if not needle:
        return []

    out: list[dict[str, Any]] = []
    for party_type, table in _TABLES.items():
        rows = q(conn, f"SELECT * FROM {table} WHERE user_id=?", (user_id,))
        for r in sorted(rows, key=lambda r: turkish_sort_key(r["name"])):
            hay = turkish_lower(" ".join(str(r[c] or "") for c in ("name", "phone", "email", "tax_number")))
            if needle in hay:
                out.append({"party_type": party_type, **dict(r)})
    return out


# -------------------------
# Contact history
# -------------------------

def _contact_owner(party_type: str, party_id: int) -> tuple[Optional[int], Optional[int]]:
    party_type = check_code(party_type, _TABLES, field="cari türü")
    if party_type == PARTY_CUSTOMER:
        return int(party_id), None
    return None, int(party_id)


def list_contact_history(conn, user_id: str, party_type: str, party_id: int):
    col = "customer_id" if check_code(party_type, _TABLES, field="cari türü") == PARTY_CUSTOMER else "supplier_id"
    return q(
        conn,
        f"""
        SELECT * FROM contact_history
        WHERE user_id=? AND {col}=?
        ORDER BY contact_date DESC, id DESC
        """,
        (user_id, int(party_id)),
    )


def add_contact(
    conn,
    user_id: str,
    party_type: str,
    party_id: int,
    *,
    contact_date,
    contact_type: str,
    summary: str,
    notes: Optional[str] = None,
) -> int:
    require_party(conn, user_id, party_type, party_id)
    summary_s = clean_str(summary)
    if not summary_s:
        raise ValueError("Görüşme özeti zorunludur.")
    customer_id, supplier_id = _contact_owner(party_type, party_id)
    now = iso_now()
    contact_id = x(
        conn,
        """
        INSERT INTO contact_history (
            user_id, customer_id, supplier_id, contact_date, contact_type,
            summary, notes, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            user_id,
            customer_id,
            supplier_id,
            to_iso_date(contact_date, field="Görüşme tarihi"),
            check_code(contact_type, CONTACT_TYPES, field="görüşme türü"),
            summary_s,
            clean_str(notes),
            now,
            now,
        ),
    )
    logger.info("Added contact %s to %s %s", contact_id, party_type.lower(), party_id)
    return contact_id


def update_contact(
    conn,
    user_id: str,
    contact_id: int,
    *,
    contact_date,
    contact_type: str,
    summary: str,
    notes: Optional[str] = None,
) -> None:
    summary_s = clean_str(summary)
    if not summary_s:
        raise ValueError("Görüşme özeti zorunludur.")
    rows = q(conn, "SELECT id FROM contact_history WHERE user_id=? AND id=?", (user_id, int(contact_id)))
    if not rows:
        raise ValueError("Görüşme kaydı bulunamadı.")
    x(
        conn,
        """
        UPDATE contact_history
        SET contact_date=?, contact_type=?, summary=?, notes=?, updated_at=?
        WHERE user_id=? AND id=?
        """,
        (
            to_iso_date(contact_date, field="Görüşme tarihi"),
            check_code(contact_type, CONTACT_TYPES, field="görüşme türü"),
            summary_s,
            clean_str(notes),
            iso_now(),
            user_id,
            int(contact_id),
        ),
    )


def delete_contact(conn, user_id: str, contact_id: int) -> None:
    x(conn, "DELETE FROM contact_history WHERE user_id=? AND id=?", (user_id, int(contact_id)))
    logger.info("Deleted contact %s for user %s", contact_id, user_id)


# -------------------------
# Follow-up tasks
# -------------------------

def _party_col(party_type: str) -> str:
    return "customer_id" if check_code(party_type, _TABLES, field="cari türü") == PARTY_CUSTOMER else "supplier_id"


def _require_task(conn, user_id: str, task_id: int):
    rows = q(conn, "SELECT * FROM party_tasks WHERE user_id=? AND id=?", (user_id, int(task_id)))
    if not rows:
        raise ValueError("Görev bulunamadı.")
    return rows[0]


def _task_fields(description: str, due_date, status: str) -> tuple[str, Optional[str], str]:
    desc = clean_str(description)
    if not desc:
        raise ValueError("Görev açıklaması zorunludur.")
    return (
        desc,
        to_optional_iso_date(due_date, field="Termin tarihi"),
        check_code(status or "PENDING", TASK_STATUSES, field="görev durumu"),
    )


def list_party_tasks(conn, user_id: str, party_type: str, party_id: int):
    col = _party_col(party_type)
    return q(
        conn,
        f"SELECT * FROM party_tasks WHERE user_id=? AND {col}=? ORDER BY created_at DESC, id DESC",
        (user_id, int(party_id)),
    )


def add_party_task(
    conn,
    user_id: str,
    party_type: str,
    party_id: int,
    *,
    description: str,
    due_date=None,
    status: str = "PENDING",
) -> int:
    require_party(conn, user_id, party_type, party_id)
    desc, due, status_code = _task_fields(description, due_date, status)
    customer_id, supplier_id = _contact_owner(party_type, party_id)
    now = iso_now()
    task_id = x(
        conn,
        """
        INSERT INTO party_tasks (
            user_id, customer_id, supplier_id, description, due_date, status, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (user_id, customer_id, supplier_id, desc, due, status_code, now, now),
    )
    logger.info("Added task %s to %s %s", task_id, party_type.lower(), party_id)
    return task_id


def update_party_task(conn, user_id: str, task_id: int, *, description: str, due_date=None,
                      status: str = "PENDING") -> None:
    _require_task(conn, user_id, task_id)
    desc, due, status_code = _task_fields(description, due_date, status)
    x(
        conn,
        "UPDATE party_tasks SET description=?, due_date=?, status=?, updated_at=? WHERE user_id=? AND id=?",
        (desc, due, status_code, iso_now(), user_id, int(task_id)),
    )


def set_party_task_status(conn, user_id: str, task_id: int, status: str) -> None:
    _require_task(conn, user_id, task_id)
    x(
        conn,
        "UPDATE party_tasks SET status=?, updated_at=? WHERE user_id=? AND id=?",
        (check_code(status, TASK_STATUSES, field="görev durumu"), iso_now(), user_id, int(task_id)),
    )


def delete_party_task(conn, user_id: str, task_id: int) -> None:
    _require_task(conn, user_id, task_id)
    x(conn, "DELETE FROM party_tasks WHERE user_id=? AND id=?", (user_id, int(task_id)))
    logger.info("Deleted task %s for user %s", task_id, user_id)


def open_party_tasks(conn, user_id: str):
    """Unfinished tasks of all parties; dated ones first, earliest due date first."""
    return q(
        conn,
        """
        SELECT t.*, COALESCE(c.name, s.name) AS party_name,
               CASE WHEN t.customer_id IS NOT NULL THEN 'CUSTOMER' ELSE 'SUPPLIER' END AS party_type
        FROM party_tasks t
        LEFT JOIN customers c ON c.id = t.customer_id
        LEFT JOIN suppliers s ON s.id = t.supplier_id
        WHERE t.user_id=? AND t.status <> 'COMPLETED'
        ORDER BY t.due_date IS NULL, t.due_date, t.id
        """,
        (user_id,),
    )

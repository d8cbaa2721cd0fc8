"""Party balances and statements (cari ekstre).

Nothing here is persisted: balances are recomputed from the ledger rows on
every call. Sales and purchases raise a party's balance, payments lower it.
For a customer a positive balance means they owe us; for a supplier it means
we owe them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from ermay.constants import (
    CREDIT_KINDS,
    CURRENCIES,
    DEBIT_KINDS,
    PARTY_CUSTOMER,
    PARTY_SUPPLIER,
    PARTY_TYPES,
    PAYMENT,
    PURCHASE,
    SALE,
    SUPPLIER_PAYMENT,
    check_code,
)
from ermay.db import q
from ermay.formatting import turkish_sort_key
from ermay.services.parties import require_party
from ermay.utils import is_number, to_optional_iso_date

logger = logging.getLogger(__name__)


@dataclass
class LedgerEntry:
    kind: str
    entry_id: int
    date: str
    amount: Any
    currency: str
    description: Optional[str] = None
    created_at: str = ""


@dataclass
class StatementLine:
    kind: str
    entry_id: int
    date: str
    description: Optional[str]
    currency: str
    debit: float
    credit: float
    balance: float


@dataclass
class Statement:
    lines: list[StatementLine] = field(default_factory=list)
    opening: dict[str, float] = field(default_factory=dict)
    totals: dict[str, dict[str, float]] = field(default_factory=dict)

    @property
    def closing(self) -> dict[str, float]:
        return {cur: t["balance"] for cur, t in self.totals.items()}


def _zero_by_currency() -> dict[str, float]:
    return {cur: 0.0 for cur in CURRENCIES}


def signed_amount(kind: str, amount: float) -> float:
    if kind in DEBIT_KINDS:
        return float(amount)
    if kind in CREDIT_KINDS:
        return -float(amount)
    raise ValueError(f"Unknown ledger entry kind: {kind!r}")


def balances_by_currency(entries: Iterable[LedgerEntry]) -> dict[str, float]:
    """Signed sum per currency. TRY, USD and EUR are always present."""
    out = _zero_by_currency()
    for e in entries:
        if not is_number(e.amount):
            continue
        out[e.currency] = out.get(e.currency, 0.0) + signed_amount(e.kind, e.amount)
    return {cur: round(v, 2) for cur, v in out.items()}


def build_statement(entries: Iterable[LedgerEntry], opening: Optional[dict[str, float]] = None) -> Statement:
    """
    Sort entries by (date, created_at, id) and attach a running balance.
    The running balance is kept per currency: a USD line never moves the TRY
    balance. Entries whose amount is not a finite number are skipped.
    """
    start = _zero_by_currency()
    for cur, v in (opening or {}).items():
        start[cur] = round(float(v), 2)

    running = dict(start)
    totals: dict[str, dict[str, float]] = {
        cur: {"debit": 0.0, "credit": 0.0, "balance": running[cur]} for cur in running
    }
    lines: list[StatementLine] = []

    valid = [e for e in entries if is_number(e.amount)]
    for e in sorted(valid, key=lambda e: (e.date, e.created_at or "", e.entry_id)):
        signed = signed_amount(e.kind, e.amount)
        amount = abs(round(float(e.amount), 2))
        debit = amount if signed >= 0 else 0.0
        credit = amount if signed < 0 else 0.0

        running[e.currency] = round(running.get(e.currency, 0.0) + signed, 2)
        t = totals.setdefault(e.currency, {"debit": 0.0, "credit": 0.0, "balance": 0.0})
        t["debit"] = round(t["debit"] + debit, 2)
        t["credit"] = round(t["credit"] + credit, 2)
        t["balance"] = running[e.currency]

        lines.append(
            StatementLine(
                kind=e.kind,
                entry_id=e.entry_id,
                date=e.date,
                description=e.description,
                currency=e.currency,
                debit=debit,
                credit=credit,
                balance=running[e.currency],
            )
        )

    return Statement(lines=lines, opening=start, totals=totals)


# -------------------------
# DB-backed entries
# -------------------------

_SOURCES = {
    PARTY_CUSTOMER: (
        (SALE, "sales", "sale_date", "customer_id"),
        (PAYMENT, "payments", "payment_date", "customer_id"),
    ),
    PARTY_SUPPLIER: (
        (PURCHASE, "purchases", "purchase_date", "supplier_id"),
        (SUPPLIER_PAYMENT, "supplier_payments", "payment_date", "supplier_id"),
    ),
}


def party_entries(conn, user_id: str, party_type: str, party_id: int) -> list[LedgerEntry]:
    party_type = check_code(party_type, PARTY_TYPES, field="cari türü")
    out: list[LedgerEntry] = []
    for kind, table, date_col, party_col in _SOURCES[party_type]:
        rows = q(
            conn,
            f"""
            SELECT id, {date_col} AS d, amount, currency, description, created_at
            FROM {table}
            WHERE user_id=? AND {party_col}=?
            """,
            (user_id, int(party_id)),
        )
        for r in rows:
            out.append(
                LedgerEntry(
                    kind=kind,
                    entry_id=int(r["id"]),
                    date=str(r["d"]),
                    amount=r["amount"],
                    currency=str(r["currency"]),
                    description=r["description"],
                    created_at=str(r["created_at"] or ""),
                )
            )
    return out


def party_statement(conn, user_id: str, party_type: str, party_id: int, date_from=None, date_to=None) -> Statement:
    """With date_from, everything before it collapses into the opening balance."""
    require_party(conn, user_id, party_type, party_id)
    d_from = to_optional_iso_date(date_from, field="Başlangıç tarihi")
    d_to = to_optional_iso_date(date_to, field="Bitiş tarihi")
    if d_from and d_to and d_from > d_to:
        raise ValueError("Başlangıç tarihi bitiş tarihinden sonra olamaz.")

    entries = party_entries(conn, user_id, party_type, party_id)
    opening = None
    if d_from:
        opening = balances_by_currency(e for e in entries if e.date < d_from)
        entries = [e for e in entries if e.date >= d_from]
    if d_to:
        entries = [e for e in entries if e.date <= d_to]
    return build_statement(entries, opening)


def customer_statement(conn, user_id: str, customer_id: int, date_from=None, date_to=None) -> Statement:
    return party_statement(conn, user_id, PARTY_CUSTOMER, customer_id, date_from, date_to)


def supplier_statement(conn, user_id: str, supplier_id: int, date_from=None, date_to=None) -> Statement:
    return party_statement(conn, user_id, PARTY_SUPPLIER, supplier_id, date_from, date_to)


def customer_balance(conn, user_id: str, customer_id: int) -> dict[str, float]:
    return balances_by_currency(party_entries(conn, user_id, PARTY_CUSTOMER, customer_id))


def supplier_balance(conn, user_id: str, supplier_id: int) -> dict[str, float]:
    return balances_by_currency(party_entries(conn, user_id, PARTY_SUPPLIER, supplier_id))


def party_balances(conn, user_id: str, party_type: str) -> list[dict[str, Any]]:
    """
    One row per party of the given type: id, name, phone and the balance in
    each currency. Parties without transactions are included with zeros.
    """
    party_type = check_code(party_type, PARTY_TYPES, field="cari türü")
    party_table = "customers" if party_type == PARTY_CUSTOMER else "suppliers"

    rows: dict[int, dict[str, Any]] = {}
    for p in q(conn, f"SELECT id, name, phone FROM {party_table} WHERE user_id=?", (user_id,)):
        rows[int(p["id"])] = {"id": int(p["id"]), "name": p["name"], "phone": p["phone"], **_zero_by_currency()}

    for kind, table, _date_col, party_col in _SOURCES[party_type]:
        sums = q(
            conn,
            f"""
            SELECT {party_col} AS party_id, currency, COALESCE(SUM(amount), 0) AS total
            FROM {table}
            WHERE user_id=?
            GROUP BY {party_col}, currency
            """,
            (user_id,),
        )
        for s in sums:
            row = rows.get(int(s["party_id"]))
            if row is None:
                continue
            row[s["currency"]] = round(row.get(s["currency"], 0.0) + signed_amount(kind, s["total"]), 2)

    return sorted(rows.values(), key=lambda r: turkish_sort_key(r["name"]))

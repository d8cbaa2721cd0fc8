from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ermay.constants import (
    ENTRY_LABELS,
    PARTY_CUSTOMER,
    PARTY_SUPPLIER,
    PAYMENT,
    PURCHASE,
    SALE,
    SEARCH_SCOPES,
    SUPPLIER_PAYMENT,
    check_code,
)
from ermay.formatting import format_date, format_number, turkish_lower, turkish_sort_key
from ermay.services import ledger, parties, stock
from ermay.utils import clean_str, is_number

logger = logging.getLogger(__name__)

PARTY_FIELDS = ("name", "phone", "email", "tax_number")


@dataclass
class SearchHit:
    kind: str                 # CUSTOMER / SUPPLIER / PRODUCT / SALE / PAYMENT / PURCHASE / SUPPLIER_PAYMENT
    id: int
    title: str
    detail: Optional[str] = None
    amount: Optional[float] = None
    currency: Optional[str] = None
    date: Optional[str] = None


def _amount_text(v: Any) -> str:
    if not is_number(v):
        return ""
    plain = f"{float(v):.2f}".rstrip("0").rstrip(".")
    return f"{plain} {format_number(v)}"


def _matches(needle: str, *values: Any) -> bool:
    return any(needle in turkish_lower(v) for v in values if v is not None)


def _party_hits(conn, user_id: str, needle: str, party_type: str) -> list[SearchHit]:
    out = []
    for r in parties.list_parties(conn, user_id, party_type):
        if _matches(needle, *(r[f] for f in PARTY_FIELDS)):
            detail = " / ".join(str(r[f]) for f in ("phone", "email") if r[f])
            out.append(SearchHit(kind=party_type, id=int(r["id"]), title=str(r["name"]), detail=detail or None))
    return sorted(out, key=lambda h: turkish_sort_key(h.title))


def _product_hits(conn, user_id: str, needle: str) -> list[SearchHit]:
    out = []
    for r in stock.list_stock_items(conn, user_id):
        if _matches(needle, r["name"], r["description"]):
            out.append(
                SearchHit(
                    kind="PRODUCT",
                    id=int(r["id"]),
                    title=str(r["name"]),
                    detail=f"{format_number(r['current_stock'])} {r['unit']}",
                    amount=r["sale_price"],
                    currency=r["sale_price_currency"],
                )
            )
    return out


def _transaction_hits(conn, user_id: str, needle: str) -> list[SearchHit]:
    sources = (
        (SALE, ledger.list_sales, "sale_date"),
        (PAYMENT, ledger.list_payments, "payment_date"),
        (PURCHASE, ledger.list_purchases, "purchase_date"),
        (SUPPLIER_PAYMENT, ledger.list_supplier_payments, "payment_date"),
    )
    out = []
    for kind, lister, date_col in sources:
        for r in lister(conn, user_id):
            d = str(r[date_col])
            if _matches(needle, r["description"], r["party_name"], _amount_text(r["amount"]), d, format_date(d)):
                out.append(
                    SearchHit(
                        kind=kind,
                        id=int(r["id"]),
                        title=r["description"] or ENTRY_LABELS[kind],
                        detail=str(r["party_name"]),
                        amount=float(r["amount"]),
                        currency=str(r["currency"]),
                        date=d,
                    )
                )
    # Newest first across all four ledgers.
    return sorted(out, key=lambda h: (h.date or "", h.id), reverse=True)


def advanced_search(conn, user_id: str, text: str, scope: str = "ALL") -> list[SearchHit]:
    """
    Case-insensitive search over parties, stock items and ledger entries.

    Parties match on name, phone, email or tax number; stock items on name or
    description; ledger entries on description, party name, amount
    (``1500`` or ``1.500,00``) or date (``2024-03-01`` or ``01.03.2024``).
    ``scope`` narrows the search to one group (see ``SEARCH_SCOPES``).
    """
    scope = check_code(scope or "ALL", SEARCH_SCOPES, field="arama kapsamı")
    needle = turkish_lower(clean_str(text) or "")
    if not needle:
        return []

    hits: list[SearchHit] = []
    if scope in ("ALL", "CUSTOMERS"):
        hits += _party_hits(conn, user_id, needle, PARTY_CUSTOMER)
    if scope in ("ALL", "SUPPLIERS"):
        hits += _party_hits(conn, user_id, needle, PARTY_SUPPLIER)
    if scope in ("ALL", "PRODUCTS"):
        hits += _product_hits(conn, user_id, needle)
    if scope in ("ALL", "TRANSACTIONS"):
        hits += _transaction_hits(conn, user_id, needle)
    logger.debug("Search %r (%s) for user %s: %d hits", needle, scope, user_id, len(hits))
    return hits

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from ermay.constants import CURRENCIES, DEFAULT_UNIT, QUOTATION_STATUSES, check_code
from ermay.db import q, rowcount, x
from ermay.utils import clean_str, iso_now, iso_today, optional_number, to_iso_date, to_optional_iso_date

logger = logging.getLogger(__name__)

DEFAULT_TAX_RATE = 20.0
_TRAILING_DIGITS = re.compile(r"(\d+)$")


@dataclass
class QuotationItemInput:
    product_name: str
    quantity: float
    unit_price: float
    tax_rate: float = DEFAULT_TAX_RATE
    unit: str = DEFAULT_UNIT
    description: Optional[str] = None
    stock_item_id: Optional[int] = None


@dataclass
class QuotationTotals:
    sub_total: float
    tax_amount: float
    grand_total: float
    tax_by_rate: dict[float, float]


def item_total(item: QuotationItemInput) -> float:
    return round(float(item.quantity) * float(item.unit_price), 2)


def compute_quotation_totals(items: Iterable[QuotationItemInput]) -> QuotationTotals:
    """
    Sub total is the sum of quantity x unit price. KDV is accumulated per
    rate (each item at its own rate) and the grand total is their sum.
    """
    sub_total = 0.0
    tax_by_rate: dict[float, float] = {}
    for it in items:
        line = float(it.quantity) * float(it.unit_price)
        rate = float(it.tax_rate or 0)
        sub_total += line
        tax_by_rate[rate] = tax_by_rate.get(rate, 0.0) + line * rate / 100.0

    tax_amount = sum(tax_by_rate.values())
    return QuotationTotals(
        sub_total=round(sub_total, 2),
        tax_amount=round(tax_amount, 2),
        grand_total=round(sub_total + tax_amount, 2),
        tax_by_rate={r: round(v, 2) for r, v in tax_by_rate.items()},
    )


def next_quotation_number(conn, user_id: str) -> str:
    """QT0001, QT0002, ... continuing from the most recently created quotation."""
    rows = q(
        conn,
        "SELECT quotation_number FROM quotations WHERE user_id=? ORDER BY created_at DESC, id DESC LIMIT 1",
        (user_id,),
    )
    last = 0
    if rows:
        m = _TRAILING_DIGITS.search(str(rows[0]["quotation_number"]))
        if m:
            last = int(m.group(1))
    return f"QT{last + 1:04d}"


def _clean_items(items: Iterable[QuotationItemInput]) -> list[QuotationItemInput]:
    out = []
    for it in items:
        name = clean_str(it.product_name)
        if not name:
            raise ValueError("Ürün adı zorunludur.")
        qty = optional_number(it.quantity, field="Miktar")
        if qty is None or qty <= 0:
            raise ValueError(f"{name}: miktar sıfırdan büyük olmalıdır.")
        price = optional_number(it.unit_price, field="Birim fiyat")
        if price is None:
            raise ValueError(f"{name}: birim fiyat zorunludur.")
        if price < 0:
            raise ValueError(f"{name}: birim fiyat negatif olamaz.")
        rate = optional_number(it.tax_rate, field="KDV oranı")
        if rate is None:
            rate = 0.0
        if rate < 0:
            raise ValueError(f"{name}: KDV oranı negatif olamaz.")
        out.append(
            QuotationItemInput(
                product_name=name,
                quantity=qty,
                unit_price=price,
                tax_rate=rate,
                unit=clean_str(it.unit) or DEFAULT_UNIT,
                description=clean_str(it.description),
                stock_item_id=it.stock_item_id,
            )
        )
    if not out:
        raise ValueError("Teklif en az bir kalem içermelidir.")
    return out


def _write_items(conn, quotation_id: int, items: list[QuotationItemInput]) -> None:
    for it in items:
        x(
            conn,
            """
            INSERT INTO quotation_items (
                quotation_id, stock_item_id, product_name, description, quantity, unit,
                unit_price, tax_rate, total
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                quotation_id,
                it.stock_item_id,
                it.product_name,
                it.description,
                it.quantity,
                it.unit,
                it.unit_price,
                it.tax_rate,
                item_total(it),
            ),
        )


def list_quotations(conn, user_id: str, *, status: Optional[str] = None):
    if status:
        return q(
            conn,
            "SELECT * FROM quotations WHERE user_id=? AND status=? ORDER BY quotation_date DESC, id DESC",
            (user_id, check_code(status, QUOTATION_STATUSES, field="teklif durumu")),
        )
    return q(conn, "SELECT * FROM quotations WHERE user_id=? ORDER BY quotation_date DESC, id DESC", (user_id,))


def get_quotation(conn, user_id: str, quotation_id: int):
    rows = q(conn, "SELECT * FROM quotations WHERE user_id=? AND id=?", (user_id, int(quotation_id)))
    return rows[0] if rows else None


def require_quotation(conn, user_id: str, quotation_id: int):
    row = get_quotation(conn, user_id, quotation_id)
    if row is None:
        logger.warning("Quotation %s not found for user %s", quotation_id, user_id)
        raise ValueError("Teklif bulunamadı.")
    return row


def list_quotation_items(conn, quotation_id: int):
    return q(conn, "SELECT * FROM quotation_items WHERE quotation_id=? ORDER BY id", (int(quotation_id),))


def _header(
    *,
    quotation_date,
    customer_name: str,
    valid_until,
    currency: str,
    status: str,
) -> dict:
    name = clean_str(customer_name)
    if not name:
        raise ValueError("Müşteri adı zorunludur.")
    date_iso = to_iso_date(quotation_date, field="Teklif tarihi")
    valid_iso = to_optional_iso_date(valid_until, field="Geçerlilik tarihi")
    if valid_iso and valid_iso < date_iso:
        raise ValueError("Geçerlilik tarihi teklif tarihinden önce olamaz.")
    return {
        "customer_name": name,
        "quotation_date": date_iso,
        "valid_until": valid_iso,
        "currency": check_code(currency, CURRENCIES, field="para birimi"),
        "status": check_code(status, QUOTATION_STATUSES, field="teklif durumu"),
    }


def add_quotation(
    conn,
    user_id: str,
    *,
    quotation_date,
    customer_name: str,
    items: Iterable[QuotationItemInput],
    customer_address: Optional[str] = None,
    customer_phone: Optional[str] = None,
    customer_tax_office: Optional[str] = None,
    valid_until=None,
    currency: str = "TRY",
    status: str = "DRAFT",
    notes: Optional[str] = None,
) -> int:
    head = _header(
        quotation_date=quotation_date,
        customer_name=customer_name,
        valid_until=valid_until,
        currency=currency,
        status=status,
    )
    clean_items = _clean_items(items)
    totals = compute_quotation_totals(clean_items)
    number = next_quotation_number(conn, user_id)
    now = iso_now()
    quotation_id = x(
        conn,
        """
        INSERT INTO quotations (
            user_id, quotation_number, quotation_date, customer_name, customer_address,
            customer_phone, customer_tax_office, valid_until, sub_total, tax_amount,
            grand_total, currency, status, notes, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            user_id,
            number,
            head["quotation_date"],
            head["customer_name"],
            clean_str(customer_address),
            clean_str(customer_phone),
            clean_str(customer_tax_office),
            head["valid_until"],
            totals.sub_total,
            totals.tax_amount,
            totals.grand_total,
            head["currency"],
            head["status"],
            clean_str(notes),
            now,
            now,
        ),
    )
    _write_items(conn, quotation_id, clean_items)
    logger.info("Created quotation %s (%s) for user %s", quotation_id, number, user_id)
    return quotation_id


def update_quotation(
    conn,
    user_id: str,
    quotation_id: int,
    *,
    quotation_date,
    customer_name: str,
    items: Iterable[QuotationItemInput],
    customer_address: Optional[str] = None,
    customer_phone: Optional[str] = None,
    customer_tax_office: Optional[str] = None,
    valid_until=None,
    currency: str = "TRY",
    status: str = "DRAFT",
    notes: Optional[str] = None,
) -> None:
    require_quotation(conn, user_id, quotation_id)
    head = _header(
        quotation_date=quotation_date,
        customer_name=customer_name,
        valid_until=valid_until,
        currency=currency,
        status=status,
    )
    clean_items = _clean_items(items)
    totals = compute_quotation_totals(clean_items)
    x(
        conn,
        """
        UPDATE quotations
        SET quotation_date=?, customer_name=?, customer_address=?, customer_phone=?,
            customer_tax_office=?, valid_until=?, sub_total=?, tax_amount=?, grand_total=?,
            currency=?, status=?, notes=?, updated_at=?
        WHERE user_id=? AND id=?
        """,
        (
            head["quotation_date"],
            head["customer_name"],
            clean_str(customer_address),
            clean_str(customer_phone),
            clean_str(customer_tax_office),
            head["valid_until"],
            totals.sub_total,
            totals.tax_amount,
            totals.grand_total,
            head["currency"],
            head["status"],
            clean_str(notes),
            iso_now(),
            user_id,
            int(quotation_id),
        ),
    )
    x(conn, "DELETE FROM quotation_items WHERE quotation_id=?", (int(quotation_id),))
    _write_items(conn, int(quotation_id), clean_items)
    logger.info("Updated quotation %s for user %s", quotation_id, user_id)


def delete_quotation(conn, user_id: str, quotation_id: int) -> None:
    require_quotation(conn, user_id, quotation_id)
    x(conn, "DELETE FROM quotations WHERE user_id=? AND id=?", (user_id, int(quotation_id)))
    logger.info("Deleted quotation %s for user %s", quotation_id, user_id)


def set_quotation_status(conn, user_id: str, quotation_id: int, status: str) -> None:
    code = check_code(status, QUOTATION_STATUSES, field="teklif durumu")
    require_quotation(conn, user_id, quotation_id)
    x(
        conn,
        "UPDATE quotations SET status=?, updated_at=? WHERE user_id=? AND id=?",
        (code, iso_now(), user_id, int(quotation_id)),
    )


def expire_quotations(conn, user_id: str, today=None) -> int:
    """DRAFT/SENT quotations whose valid_until has passed become EXPIRED. Returns how many changed."""
    today_iso = to_iso_date(today) if today is not None else iso_today()
    n = rowcount(
        conn,
        """
        UPDATE quotations
        SET status='EXPIRED', updated_at=?
        WHERE user_id=? AND status IN ('DRAFT', 'SENT')
          AND valid_until IS NOT NULL AND valid_until < ?
        """,
        (iso_now(), user_id, today_iso),
    )
    if n:
        logger.info("Expired %s quotation(s) for user %s", n, user_id)
    return n

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from ermay.constants import (
    CURRENCIES,
    DEFAULT_UNIT,
    ORDER_CLOSED_STATUSES,
    ORDER_PRIORITIES,
    ORDER_STATUSES,
    PARTY_CUSTOMER,
    check_code,
)
from ermay.db import q, x
from ermay.services.parties import require_party
from ermay.utils import clean_str, iso_now, iso_today, optional_number, to_iso_date, to_optional_iso_date

logger = logging.getLogger(__name__)


@dataclass
class OrderItemInput:
    product_name: str
    quantity: float
    unit: str = DEFAULT_UNIT
    specifications: Optional[str] = None


def _generate_order_number(conn, user_id: str, order_date: str) -> str:
    """
    SIP-{YYYYMMDD}-{NNN}, sequence per user and order date.

    Example:
      SIP-20250301-002
    """
    prefix = f"SIP-{order_date.replace('-', '')}-"
    r = q(
        conn,
        "SELECT COUNT(1) AS n FROM orders WHERE user_id=? AND order_number LIKE ?",
        (user_id, prefix + "%"),
    )
    seq = (int(r[0]["n"]) if r else 0) + 1
    # Deleted orders leave gaps; skip forward past numbers still taken.
    while q(conn, "SELECT 1 FROM orders WHERE user_id=? AND order_number=?", (user_id, f"{prefix}{seq:03d}")):
        seq += 1
    return f"{prefix}{seq:03d}"


def _clean_items(items: Iterable[OrderItemInput]) -> list[OrderItemInput]:
    out = []
    for it in items:
        name = clean_str(it.product_name)
        if not name:
            raise ValueError("Ürün adı zorunludur.")
        qty = optional_number(it.quantity, field="Miktar")
        if qty is None or qty <= 0:
            raise ValueError(f"{name}: miktar sıfırdan büyük olmalıdır.")
        out.append(
            OrderItemInput(
                product_name=name,
                quantity=qty,
                unit=clean_str(it.unit) or DEFAULT_UNIT,
                specifications=clean_str(it.specifications),
            )
        )
    if not out:
        raise ValueError("Sipariş en az bir kalem içermelidir.")
    return out


def _resolve_customer(conn, user_id: str, customer_id: Optional[int], customer_name: Optional[str]):
    """A linked customer wins; otherwise a free-text customer name is required."""
    if customer_id is not None:
        customer = require_party(conn, user_id, PARTY_CUSTOMER, customer_id)
        return int(customer["id"]), str(customer["name"])
    name = clean_str(customer_name)
    if not name:
        raise ValueError("Müşteri seçilmeli veya müşteri adı girilmelidir.")
    return None, name


def _write_items(conn, order_id: int, items: list[OrderItemInput]) -> None:
    for it in items:
        x(
            conn,
            """
            INSERT INTO order_items (order_id, product_name, quantity, unit, specifications)
            VALUES (?, ?, ?, ?, ?)
            """,
            (order_id, it.product_name, it.quantity, it.unit, it.specifications),
        )


def list_orders(conn, user_id: str, *, status: Optional[str] = None):
    if status:
        return q(
            conn,
            "SELECT * FROM orders WHERE user_id=? AND status=? ORDER BY order_date DESC, id DESC",
            (user_id, check_code(status, ORDER_STATUSES, field="sipariş durumu")),
        )
    return q(conn, "SELECT * FROM orders WHERE user_id=? ORDER BY order_date DESC, id DESC", (user_id,))


def get_order(conn, user_id: str, order_id: int):
    rows = q(conn, "SELECT * FROM orders WHERE user_id=? AND id=?", (user_id, int(order_id)))
    return rows[0] if rows else None


def require_order(conn, user_id: str, order_id: int):
    row = get_order(conn, user_id, order_id)
    if row is None:
        logger.warning("Order %s not found for user %s", order_id, user_id)
        raise ValueError("Sipariş bulunamadı.")
    return row


def list_order_items(conn, order_id: int):
    return q(conn, "SELECT * FROM order_items WHERE order_id=? ORDER BY id", (int(order_id),))


def add_order(
    conn,
    user_id: str,
    *,
    order_date,
    items: Iterable[OrderItemInput],
    customer_id: Optional[int] = None,
    customer_name: Optional[str] = None,
    delivery_date=None,
    status: str = "PENDING",
    priority: str = "MEDIUM",
    total_amount=0.0,
    currency: str = "TRY",
    notes: Optional[str] = None,
) -> int:
    cust_id, cust_name = _resolve_customer(conn, user_id, customer_id, customer_name)
    order_iso = to_iso_date(order_date, field="Sipariş tarihi")
    delivery_iso = to_optional_iso_date(delivery_date, field="Teslim tarihi")
    if delivery_iso and delivery_iso < order_iso:
        raise ValueError("Teslim tarihi sipariş tarihinden önce olamaz.")
    total = optional_number(total_amount, field="Toplam tutar") or 0.0
    if total < 0:
        raise ValueError("Toplam tutar negatif olamaz.")
    clean_items = _clean_items(items)

    now = iso_now()
    order_number = _generate_order_number(conn, user_id, order_iso)
    order_id = x(
        conn,
        """
        INSERT INTO orders (
            user_id, order_number, customer_id, customer_name, order_date, delivery_date,
            status, priority, total_amount, currency, notes, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            user_id,
            order_number,
            cust_id,
            cust_name,
            order_iso,
            delivery_iso,
            check_code(status, ORDER_STATUSES, field="sipariş durumu"),
            check_code(priority, ORDER_PRIORITIES, field="öncelik"),
            round(total, 2),
            check_code(currency, CURRENCIES, field="para birimi"),
            clean_str(notes),
            now,
            now,
        ),
    )
    _write_items(conn, order_id, clean_items)
    logger.info("Created order %s (%s) for user %s", order_id, order_number, user_id)
    return order_id


def update_order(
    conn,
    user_id: str,
    order_id: int,
    *,
    order_date,
    items: Iterable[OrderItemInput],
    customer_id: Optional[int] = None,
    customer_name: Optional[str] = None,
    delivery_date=None,
    status: str = "PENDING",
    priority: str = "MEDIUM",
    total_amount=0.0,
    currency: str = "TRY",
    notes: Optional[str] = None,
) -> None:
    """Full replace; the order number is kept and the item list is rewritten."""
    require_order(conn, user_id, order_id)
    cust_id, cust_name = _resolve_customer(conn, user_id, customer_id, customer_name)
    order_iso = to_iso_date(order_date, field="Sipariş tarihi")
    delivery_iso = to_optional_iso_date(delivery_date, field="Teslim tarihi")
    if delivery_iso and delivery_iso < order_iso:
        raise ValueError("Teslim tarihi sipariş tarihinden önce olamaz.")
    total = optional_number(total_amount, field="Toplam tutar") or 0.0
    if total < 0:
        raise ValueError("Toplam tutar negatif olamaz.")
    clean_items = _clean_items(items)

    x(
        conn,
        """
        UPDATE orders
        SET customer_id=?, customer_name=?, order_date=?, delivery_date=?, status=?, priority=?,
            total_amount=?, currency=?, notes=?, updated_at=?
        WHERE user_id=? AND id=?
        """,
        (
            cust_id,
            cust_name,
            order_iso,
            delivery_iso,
            check_code(status, ORDER_STATUSES, field="sipariş durumu"),
            check_code(priority, ORDER_PRIORITIES, field="öncelik"),
            round(total, 2),
            check_code(currency, CURRENCIES, field="para birimi"),
            clean_str(notes),
            iso_now(),
            user_id,
            int(order_id),
        ),
    )
    x(conn, "DELETE FROM order_items WHERE order_id=?", (int(order_id),))
    _write_items(conn, int(order_id), clean_items)
    logger.info("Updated order %s for user %s", order_id, user_id)


def delete_order(conn, user_id: str, order_id: int) -> None:
    require_order(conn, user_id, order_id)
    x(conn, "DELETE FROM orders WHERE user_id=? AND id=?", (user_id, int(order_id)))
    logger.info("Deleted order %s for user %s", order_id, user_id)


def set_order_status(conn, user_id: str, order_id: int, status: str) -> None:
    code = check_code(status, ORDER_STATUSES, field="sipariş durumu")
    require_order(conn, user_id, order_id)
    x(
        conn,
        "UPDATE orders SET status=?, updated_at=? WHERE user_id=? AND id=?",
        (code, iso_now(), user_id, int(order_id)),
    )
    logger.info("Order %s -> %s for user %s", order_id, code, user_id)


def overdue_orders(conn, user_id: str, today=None):
    today_iso = to_iso_date(today) if today is not None else iso_today()
    closed = sorted(ORDER_CLOSED_STATUSES)
    marks = ", ".join("?" for _ in closed)
    return q(
        conn,
        f"""
        SELECT * FROM orders
        WHERE user_id=? AND delivery_date IS NOT NULL AND delivery_date < ?
          AND status NOT IN ({marks})
        ORDER BY delivery_date ASC, id ASC
        """,
        (user_id, today_iso, *closed),
    )

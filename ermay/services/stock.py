from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Optional

from ermay.constants import CURRENCIES, DEFAULT_UNIT, STOCK_MOVEMENT_KINDS, check_code
from ermay.db import q, x
from ermay.formatting import turkish_sort_key
from ermay.utils import clean_str, iso_now, optional_number, safe_div, to_optional_iso_date

logger = logging.getLogger(__name__)


@dataclass
class ProductProfit:
    stock_item_id: int
    name: str
    purchased_qty: float = 0.0
    purchased_amount: float = 0.0
    sold_qty: float = 0.0
    sales_amount: float = 0.0
    cogs: float = 0.0

    @property
    def profit(self) -> float:
        return round(self.sales_amount - self.cogs, 2)

    @property
    def margin_pct(self) -> float:
        return safe_div(self.profit, self.sales_amount) * 100.0


# -------------------------
# Stock items
# -------------------------

def list_stock_items(conn, user_id: str):
    rows = q(conn, "SELECT * FROM stock_items WHERE user_id=? ORDER BY created_at DESC, id DESC", (user_id,))
    # Turkish alphabetical order by name, newest first on ties.
    return sorted(rows, key=lambda r: turkish_sort_key(r["name"]))


def get_stock_item(conn, user_id: str, stock_item_id: int):
    rows = q(conn, "SELECT * FROM stock_items WHERE user_id=? AND id=?", (user_id, int(stock_item_id)))
    return rows[0] if rows else None


def require_stock_item(conn, user_id: str, stock_item_id: int):
    row = get_stock_item(conn, user_id, stock_item_id)
    if row is None:
        logger.warning("Stock item %s not found for user %s", stock_item_id, user_id)
        raise ValueError("Stok kartı bulunamadı.")
    return row


def _normalize_item(
    *,
    name: str,
    description: Optional[str],
    unit: Optional[str],
    sale_price: Optional[float],
    sale_price_currency: str,
) -> dict[str, Any]:
    name_s = clean_str(name)
    if not name_s:
        raise ValueError("Ürün adı zorunludur.")
    price = optional_number(sale_price, field="Satış fiyatı")
    if price is not None and price < 0:
        raise ValueError("Satış fiyatı negatif olamaz.")
    return {
        "name": name_s,
        "description": clean_str(description),
        "unit": clean_str(unit) or DEFAULT_UNIT,
        "sale_price": price,
        "sale_price_currency": check_code(sale_price_currency or "TRY", CURRENCIES, field="para birimi"),
    }


def add_stock_item(
    conn,
    user_id: str,
    *,
    name: str,
    description: Optional[str] = None,
    unit: Optional[str] = None,
    current_stock: float = 0.0,
    sale_price: Optional[float] = None,
    sale_price_currency: str = "TRY",
) -> int:
    rec = _normalize_item(
        name=name,
        description=description,
        unit=unit,
        sale_price=sale_price,
        sale_price_currency=sale_price_currency,
    )
    opening = optional_number(current_stock, field="Mevcut stok") or 0.0
    now = iso_now()
    item_id = x(
        conn,
        """
        INSERT INTO stock_items (
            user_id, name, description, unit, current_stock,
            sale_price, sale_price_currency, created_at, updated_at
        ) VALUES (?, ?, ?, ?, 0, ?, ?, ?, ?)
        """,
        (
            user_id,
            rec["name"],
            rec["description"],
            rec["unit"],
            rec["sale_price"],
            rec["sale_price_currency"],
            now,
            now,
        ),
    )
    if opening:
        apply_movement(
            conn, user_id, stock_item_id=item_id, kind="ADJUSTMENT", quantity_delta=opening, reason="Açılış stoku"
        )
    logger.info("Created stock item %s for user %s", item_id, user_id)
    return item_id


def update_stock_item(
    conn,
    user_id: str,
    stock_item_id: int,
    *,
    name: str,
    description: Optional[str] = None,
    unit: Optional[str] = None,
    current_stock: Optional[float] = None,
    sale_price: Optional[float] = None,
    sale_price_currency: str = "TRY",
) -> None:
    """
    Full replace of the card fields. A changed current_stock is not written
    directly; it becomes an ADJUSTMENT movement so the movement log still
    adds up to the stock level.
    """
    item = require_stock_item(conn, user_id, stock_item_id)
    rec = _normalize_item(
        name=name,
        description=description,
        unit=unit,
        sale_price=sale_price,
        sale_price_currency=sale_price_currency,
    )
    x(
        conn,
        """
        UPDATE stock_items
        SET name=?, description=?, unit=?, sale_price=?, sale_price_currency=?, updated_at=?
        WHERE user_id=? AND id=?
        """,
        (
            rec["name"],
            rec["description"],
            rec["unit"],
            rec["sale_price"],
            rec["sale_price_currency"],
            iso_now(),
            user_id,
            int(stock_item_id),
        ),
    )

    target = optional_number(current_stock, field="Mevcut stok")
    if target is not None:
        delta = float(target) - float(item["current_stock"])
        if abs(delta) > 1e-9:
            apply_movement(
                conn, user_id, stock_item_id=stock_item_id, kind="ADJUSTMENT", quantity_delta=delta,
                reason="Stok kartı düzenlendi",
            )
    logger.info("Updated stock item %s for user %s", stock_item_id, user_id)


def delete_stock_item(conn, user_id: str, stock_item_id: int) -> None:
    # Sales/purchases keep their amounts; their stock link becomes NULL (FK ON DELETE SET NULL).
    require_stock_item(conn, user_id, stock_item_id)
    x(conn, "DELETE FROM stock_items WHERE user_id=? AND id=?", (user_id, int(stock_item_id)))
    logger.info("Deleted stock item %s for user %s", stock_item_id, user_id)


def stock_summary(conn, user_id: str):
    rows = q(
        conn,
        """
        SELECT
          si.id,
          si.name,
          si.unit,
          ROUND(si.current_stock, 3) AS current_stock,
          si.sale_price,
          si.sale_price_currency,
          ROUND(si.current_stock * COALESCE(si.sale_price, 0), 2) AS stock_value,
          (SELECT MAX(m.movement_ts) FROM stock_movements m WHERE m.stock_item_id = si.id) AS last_movement
        FROM stock_items si
        WHERE si.user_id=?
        """,
        (user_id,),
    )
    return sorted(rows, key=lambda r: turkish_sort_key(r["name"]))


def low_stock_items(conn, user_id: str, threshold: float = 5.0):
    rows = q(
        conn,
        "SELECT id, name, unit, current_stock FROM stock_items WHERE user_id=? AND current_stock <= ?",
        (user_id, float(threshold)),
    )
    return sorted(rows, key=lambda r: (r["current_stock"], turkish_sort_key(r["name"])))


# -------------------------
# Movements
# -------------------------

def apply_movement(
    conn,
    user_id: str,
    *,
    stock_item_id: int,
    kind: str,
    quantity_delta: float,
    action: str = "APPLY",
    sale_id: Optional[int] = None,
    purchase_id: Optional[int] = None,
    party_name: Optional[str] = None,
    reason: Optional[str] = None,
) -> int:
    """Changes current_stock by quantity_delta and logs the movement with the resulting balance."""
    kind = check_code(kind, STOCK_MOVEMENT_KINDS, field="hareket türü")
    item = require_stock_item(conn, user_id, stock_item_id)
    balance_after = round(float(item["current_stock"]) + float(quantity_delta), 6)

    x(
        conn,
        "UPDATE stock_items SET current_stock=?, updated_at=? WHERE user_id=? AND id=?",
        (balance_after, iso_now(), user_id, int(stock_item_id)),
    )
    movement_id = x(
        conn,
        """
        INSERT INTO stock_movements (
            user_id, stock_item_id, movement_ts, kind, action, quantity_delta,
            balance_after, sale_id, purchase_id, party_name, reason
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            user_id,
            int(stock_item_id),
            iso_now(),
            kind,
            action,
            float(quantity_delta),
            balance_after,
            sale_id,
            purchase_id,
            clean_str(party_name),
            clean_str(reason),
        ),
    )
    if balance_after < 0:
        logger.warning("Stock item %s went negative (%s) for user %s", stock_item_id, balance_after, user_id)
    return movement_id


def revert_movement(
    conn,
    user_id: str,
    *,
    sale_id: Optional[int] = None,
    purchase_id: Optional[int] = None,
) -> list[int]:
    """
    Undo the stock effect of a sale or purchase. Whatever net quantity is
    still applied per stock item gets a REVERT movement of the opposite sign.
    """
    if (sale_id is None) == (purchase_id is None):
        raise ValueError("Exactly one of sale_id / purchase_id is required.")

    col, doc_id, kind = ("sale_id", sale_id, "SALE") if sale_id is not None else ("purchase_id", purchase_id, "PURCHASE")
    nets = q(
        conn,
        f"""
        SELECT stock_item_id, COALESCE(SUM(quantity_delta), 0) AS net, MAX(party_name) AS party_name
        FROM stock_movements
        WHERE user_id=? AND {col}=?
        GROUP BY stock_item_id
        """,
        (user_id, int(doc_id)),
    )

    created: list[int] = []
    for r in nets:
        net = float(r["net"])
        if abs(net) <= 1e-9:
            continue
        if get_stock_item(conn, user_id, int(r["stock_item_id"])) is None:
            continue
        created.append(
            apply_movement(
                conn,
                user_id,
                stock_item_id=int(r["stock_item_id"]),
                kind=kind,
                quantity_delta=-net,
                action="REVERT",
                sale_id=sale_id,
                purchase_id=purchase_id,
                party_name=r["party_name"],
                reason="Belge güncellendi / silindi",
            )
        )
    return created


def adjust_stock(conn, user_id: str, stock_item_id: int, *, quantity_delta: float, reason: str) -> int:
    delta = optional_number(quantity_delta, field="Miktar")
    if not delta:
        raise ValueError("Düzeltme miktarı sıfır olamaz.")
    reason_s = clean_str(reason)
    if not reason_s:
        raise ValueError("Düzeltme nedeni zorunludur.")
    movement_id = apply_movement(
        conn, user_id, stock_item_id=stock_item_id, kind="ADJUSTMENT", quantity_delta=delta, reason=reason_s
    )
    logger.info("Stock adjustment %s on item %s (%+.3f) for user %s", movement_id, stock_item_id, delta, user_id)
    return movement_id


def list_movements(
    conn,
    user_id: str,
    *,
    stock_item_id: Optional[int] = None,
    kind: Optional[str] = None,
    date_from=None,
    date_to=None,
    limit: int = 50,
    before_id: Optional[int] = None,
):
    """Newest first. Page with before_id = smallest id of the previous page."""
    where = ["m.user_id=?"]
    params: list[Any] = [user_id]
    if stock_item_id is not None:
        where.append("m.stock_item_id=?")
        params.append(int(stock_item_id))
    if kind:
        where.append("m.kind=?")
        params.append(check_code(kind, STOCK_MOVEMENT_KINDS, field="hareket türü"))
    d_from = to_optional_iso_date(date_from)
    d_to = to_optional_iso_date(date_to)
    if d_from:
        where.append("substr(m.movement_ts, 1, 10) >= ?")
        params.append(d_from)
    if d_to:
        where.append("substr(m.movement_ts, 1, 10) <= ?")
        params.append(d_to)
    if before_id is not None:
        where.append("m.id < ?")
        params.append(int(before_id))

    params.append(int(limit))
    where_sql = " AND ".join(where)
    return q(
        conn,
        f"""
        SELECT m.id, m.movement_ts, si.name AS stock_item, si.unit, m.kind, m.action,
               m.quantity_delta, m.balance_after, m.party_name, m.reason, m.sale_id, m.purchase_id
        FROM stock_movements m
        JOIN stock_items si ON si.id = m.stock_item_id
        WHERE {where_sql}
        ORDER BY m.id DESC
        LIMIT ?
        """,
        params,
    )


# -------------------------
# FIFO profit
# -------------------------

def fifo_product_profit(conn, user_id: str) -> list[ProductProfit]:
    """
    Per stock item: purchases form cost layers (oldest first), each sale
    consumes layers and accrues cost of goods sold. Quantities sold beyond
    the purchased layers carry no cost. Amounts are taken as recorded,
    without currency conversion.
    """
    names = {int(r["id"]): str(r["name"]) for r in q(conn, "SELECT id, name FROM stock_items WHERE user_id=?", (user_id,))}
    rows = q(
        conn,
        """
        SELECT 'PURCHASE' AS kind, purchase_date AS d, id, stock_item_id, quantity, unit_price, amount
        FROM purchases
        WHERE user_id=? AND stock_item_id IS NOT NULL AND quantity > 0
        UNION ALL
        SELECT 'SALE' AS kind, sale_date AS d, id, stock_item_id, quantity, unit_price, amount
        FROM sales
        WHERE user_id=? AND stock_item_id IS NOT NULL AND quantity > 0
        ORDER BY d ASC, kind ASC, id ASC
        """,
        (user_id, user_id),
    )

    layers: dict[int, deque] = {}
    agg: dict[int, ProductProfit] = {}

    for r in rows:
        pid = int(r["stock_item_id"])
        if pid not in agg:
            agg[pid] = ProductProfit(stock_item_id=pid, name=names.get(pid, f"#{pid}"))
        p = agg[pid]
        qty = float(r["quantity"])
        amount = float(r["amount"] or 0.0)

        if r["kind"] == "PURCHASE":
            unit_cost = float(r["unit_price"]) if r["unit_price"] is not None else safe_div(amount, qty)
            layers.setdefault(pid, deque()).append([qty, unit_cost])
            p.purchased_qty += qty
            p.purchased_amount += unit_cost * qty
            continue

        remaining = qty
        cogs = 0.0
        queue = layers.setdefault(pid, deque())
        while remaining > 1e-9 and queue:
            layer = queue[0]
            take = min(layer[0], remaining)
            cogs += take * layer[1]
            layer[0] -= take
            remaining -= take
            if layer[0] <= 1e-9:
                queue.popleft()

        p.sold_qty += qty
        p.sales_amount += amount
        p.cogs += cogs

    for p in agg.values():
        p.purchased_amount = round(p.purchased_amount, 2)
        p.sales_amount = round(p.sales_amount, 2)
        p.cogs = round(p.cogs, 2)
    return sorted(agg.values(), key=lambda p: turkish_sort_key(p.name))

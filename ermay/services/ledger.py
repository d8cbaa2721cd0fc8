"""Sales, customer payments, purchases and supplier payments.

Every write that touches a stock item also writes a stock movement, and every
CHECK-method payment keeps a derived row in ``bank_checks`` in sync. These are
plain sequential writes; a failure half way is surfaced to the page as is.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ermay.constants import (
    CATEGORIES,
    CURRENCIES,
    INVOICE_TYPES,
    PARTY_CUSTOMER,
    PARTY_SUPPLIER,
    PAYMENT_METHODS,
    PURCHASE_TYPES,
    check_code,
)
from ermay.db import q, x
from ermay.services import checks, stock
from ermay.services.parties import require_party
from ermay.utils import clean_str, iso_now, optional_number, positive_amount, to_iso_date, to_optional_iso_date

logger = logging.getLogger(__name__)

DEFAULT_SALE_DESCRIPTION = "Genel Satış"
MISSING_STOCK_SALE_DESCRIPTION = "Stok Ürünü Satışı"
DEFAULT_PURCHASE_DESCRIPTION = "Genel Alış"
UNKNOWN_BANK = "Belirtilmedi"


# -------------------------
# Shared helpers
# -------------------------

def _list_entries(
    conn,
    user_id: str,
    *,
    table: str,
    date_col: str,
    party_table: str,
    party_col: str,
    party_id: Optional[int],
    date_from=None,
    date_to=None,
):
    where = ["t.user_id=?"]
    params: list[Any] = [user_id]
    if party_id is not None:
        where.append(f"t.{party_col}=?")
        params.append(int(party_id))
    d_from = to_optional_iso_date(date_from)
    d_to = to_optional_iso_date(date_to)
    if d_from:
        where.append(f"t.{date_col} >= ?")
        params.append(d_from)
    if d_to:
        where.append(f"t.{date_col} <= ?")
        params.append(d_to)
    where_sql = " AND ".join(where)
    return q(
        conn,
        f"""
        SELECT t.*, p.name AS party_name
        FROM {table} t
        JOIN {party_table} p ON p.id = t.{party_col}
        WHERE {where_sql}
        ORDER BY t.{date_col} DESC, t.created_at DESC, t.id DESC
        """,
        params,
    )


def _get_entry(conn, user_id: str, table: str, entry_id: int):
    rows = q(conn, f"SELECT * FROM {table} WHERE user_id=? AND id=?", (user_id, int(entry_id)))
    return rows[0] if rows else None


def _require_entry(conn, user_id: str, table: str, entry_id: int, message: str):
    row = _get_entry(conn, user_id, table, entry_id)
    if row is None:
        logger.warning("%s %s not found for user %s", table, entry_id, user_id)
        raise ValueError(message)
    return row


def _quantity_and_price(quantity, unit_price) -> tuple[Optional[float], Optional[float]]:
    qty = optional_number(quantity, field="Miktar")
    if qty is not None and qty <= 0:
        raise ValueError("Miktar sıfırdan büyük olmalıdır.")
    price = optional_number(unit_price, field="Birim fiyat")
    if price is not None and price < 0:
        raise ValueError("Birim fiyat negatif olamaz.")
    return qty, price


def _resolve_amount(amount, qty: Optional[float], price: Optional[float]) -> float:
    """An omitted amount is derived from quantity x unit price."""
    if optional_number(amount, field="Tutar") is None and qty is not None and price is not None:
        amount = qty * price
    return positive_amount(amount)


def _payment_fields(
    *,
    payment_date,
    amount,
    currency: str,
    method: str,
    description: Optional[str],
    category: str,
    reference_number: Optional[str],
    check_date,
    check_serial_number: Optional[str],
) -> dict[str, Any]:
    method_code = check_code(method or "CASH", PAYMENT_METHODS, field="ödeme yöntemi")
    rec: dict[str, Any] = {
        "payment_date": to_iso_date(payment_date, field="Ödeme tarihi"),
        "amount": positive_amount(amount),
        "currency": check_code(currency, CURRENCIES, field="para birimi"),
        "method": method_code,
        "description": clean_str(description),
        "category": check_code(category or "PAYMENT", CATEGORIES, field="kategori"),
        "reference_number": clean_str(reference_number),
        "check_date": None,
        "check_serial_number": None,
    }
    if method_code == "CHECK":
        serial = clean_str(check_serial_number)
        if not serial:
            raise ValueError("Çek ile ödemede çek seri numarası zorunludur.")
        rec["check_serial_number"] = serial
        rec["check_date"] = to_iso_date(check_date, field="Çek tarihi")
    return rec


def _sync_derived_check(
    conn,
    user_id: str,
    *,
    party_type: str,
    party_name: str,
    rec: dict[str, Any],
    payment_id: Optional[int] = None,
    supplier_payment_id: Optional[int] = None,
) -> None:
    existing = checks.find_check_for_payment(
        conn, user_id, payment_id=payment_id, supplier_payment_id=supplier_payment_id
    )
    if rec["method"] != "CHECK":
        if existing is not None:
            checks.delete_check(conn, user_id, int(existing["id"]))
        return

    # A post-dated or back-dated check both work: issue date never exceeds due date.
    issue_date = min(rec["payment_date"], rec["check_date"])
    fields = dict(
        check_number=rec["check_serial_number"],
        amount=rec["amount"],
        currency=rec["currency"],
        issue_date=issue_date,
        due_date=rec["check_date"],
        party_name=party_name,
        party_type=party_type,
        description=rec["description"],
    )
    if existing is None:
        checks.add_check(
            conn,
            user_id,
            bank_name=rec["reference_number"] or UNKNOWN_BANK,
            payment_id=payment_id,
            supplier_payment_id=supplier_payment_id,
            **fields,
        )
        return

    checks.update_check(
        conn,
        user_id,
        int(existing["id"]),
        bank_name=existing["bank_name"],
        branch_name=existing["branch_name"],
        account_number=existing["account_number"],
        status=existing["status"],
        **fields,
    )


def _drop_derived_check(conn, user_id: str, *, payment_id=None, supplier_payment_id=None) -> None:
    existing = checks.find_check_for_payment(
        conn, user_id, payment_id=payment_id, supplier_payment_id=supplier_payment_id
    )
    if existing is not None:
        checks.delete_check(conn, user_id, int(existing["id"]))


# -------------------------
# Sales
# -------------------------

def list_sales(conn, user_id: str, customer_id: Optional[int] = None, *, date_from=None, date_to=None):
    return _list_entries(
        conn,
        user_id,
        table="sales",
        date_col="sale_date",
        party_table="customers",
        party_col="customer_id",
        party_id=customer_id,
        date_from=date_from,
        date_to=date_to,
    )


def get_sale(conn, user_id: str, sale_id: int):
    return _get_entry(conn, user_id, "sales", sale_id)


def _sale_record(
    conn,
    user_id: str,
    *,
    sale_date,
    amount,
    currency: str,
    description: Optional[str],
    category: str,
    stock_item_id: Optional[int],
    quantity,
    unit_price,
    tax_rate,
    invoice_type: str,
) -> dict[str, Any]:
    qty, price = _quantity_and_price(quantity, unit_price)

    item = None
    if stock_item_id is not None:
        item = stock.get_stock_item(conn, user_id, stock_item_id)
        if item is not None and qty is None:
            raise ValueError("Stoklu satışta miktar zorunludur.")

    desc = clean_str(description)
    if not desc:
        if item is not None:
            desc = str(item["name"])
        elif stock_item_id is not None:
            desc = MISSING_STOCK_SALE_DESCRIPTION
        else:
            desc = DEFAULT_SALE_DESCRIPTION

    # With a tax rate the entered (or derived) amount is the net subtotal.
    net = _resolve_amount(amount, qty, price)
    rate = optional_number(tax_rate, field="KDV oranı")
    subtotal = tax_amount = None
    total = net
    if rate is not None:
        if rate < 0:
            raise ValueError("KDV oranı negatif olamaz.")
        subtotal = net
        tax_amount = round(net * rate / 100.0, 2)
        total = round(subtotal + tax_amount, 2)

    return {
        "sale_date": to_iso_date(sale_date, field="Satış tarihi"),
        "amount": total,
        "currency": check_code(currency, CURRENCIES, field="para birimi"),
        "description": desc,
        "category": check_code(category or "SALE", CATEGORIES, field="kategori"),
        "stock_item_id": int(item["id"]) if item is not None else None,
        "quantity": qty,
        "unit_price": price,
        "tax_rate": rate,
        "tax_amount": tax_amount,
        "subtotal": subtotal,
        "invoice_type": check_code(invoice_type or "NORMAL", INVOICE_TYPES, field="satış türü"),
    }


def _apply_sale_stock(conn, user_id: str, sale_id: int, rec: dict[str, Any], customer_name: str) -> None:
    if rec["stock_item_id"] is None or not rec["quantity"]:
        return
    stock.apply_movement(
        conn,
        user_id,
        stock_item_id=rec["stock_item_id"],
        kind="SALE",
        quantity_delta=-float(rec["quantity"]),
        sale_id=sale_id,
        party_name=customer_name,
    )


def add_sale(
    conn,
    user_id: str,
    *,
    customer_id: int,
    sale_date,
    amount=None,
    currency: str = "TRY",
    description: Optional[str] = None,
    category: str = "SALE",
    stock_item_id: Optional[int] = None,
    quantity=None,
    unit_price=None,
    tax_rate=None,
    invoice_type: str = "NORMAL",
) -> int:
    customer = require_party(conn, user_id, PARTY_CUSTOMER, customer_id)
    rec = _sale_record(
        conn,
        user_id,
        sale_date=sale_date,
        amount=amount,
        currency=currency,
        description=description,
        category=category,
        stock_item_id=stock_item_id,
        quantity=quantity,
        unit_price=unit_price,
        tax_rate=tax_rate,
        invoice_type=invoice_type,
    )
    now = iso_now()
    sale_id = x(
        conn,
        """
        INSERT INTO sales (
            user_id, customer_id, sale_date, amount, currency, description, category,
            stock_item_id, quantity, unit_price, tax_rate, tax_amount, subtotal, invoice_type,
            created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            user_id,
            int(customer_id),
            rec["sale_date"],
            rec["amount"],
            rec["currency"],
            rec["description"],
            rec["category"],
            rec["stock_item_id"],
            rec["quantity"],
            rec["unit_price"],
            rec["tax_rate"],
            rec["tax_amount"],
            rec["subtotal"],
            rec["invoice_type"],
            now,
            now,
        ),
    )
    _apply_sale_stock(conn, user_id, sale_id, rec, str(customer["name"]))
    logger.info("Created sale %s (%s %s) for customer %s", sale_id, rec["amount"], rec["currency"], customer_id)
    return sale_id


def update_sale(
    conn,
    user_id: str,
    sale_id: int,
    *,
    sale_date,
    amount=None,
    currency: str = "TRY",
    description: Optional[str] = None,
    category: str = "SALE",
    stock_item_id: Optional[int] = None,
    quantity=None,
    unit_price=None,
    tax_rate=None,
    invoice_type: str = "NORMAL",
) -> None:
    """Full replace. The old stock effect is reverted before the new one is applied."""
    sale = _require_entry(conn, user_id, "sales", sale_id, "Satış bulunamadı.")
    customer = require_party(conn, user_id, PARTY_CUSTOMER, int(sale["customer_id"]))
    rec = _sale_record(
        conn,
        user_id,
        sale_date=sale_date,
        amount=amount,
        currency=currency,
        description=description,
        category=category,
        stock_item_id=stock_item_id,
        quantity=quantity,
        unit_price=unit_price,
        tax_rate=tax_rate,
        invoice_type=invoice_type,
    )
    stock.revert_movement(conn, user_id, sale_id=int(sale_id))
    x(
        conn,
        """
        UPDATE sales
        SET sale_date=?, amount=?, currency=?, description=?, category=?, stock_item_id=?,
            quantity=?, unit_price=?, tax_rate=?, tax_amount=?, subtotal=?, invoice_type=?, updated_at=?
        WHERE user_id=? AND id=?
        """,
        (
            rec["sale_date"],
            rec["amount"],
            rec["currency"],
            rec["description"],
            rec["category"],
            rec["stock_item_id"],
            rec["quantity"],
            rec["unit_price"],
            rec["tax_rate"],
            rec["tax_amount"],
            rec["subtotal"],
            rec["invoice_type"],
            iso_now(),
            user_id,
            int(sale_id),
        ),
    )
    _apply_sale_stock(conn, user_id, int(sale_id), rec, str(customer["name"]))
    logger.info("Updated sale %s for user %s", sale_id, user_id)


def delete_sale(conn, user_id: str, sale_id: int) -> None:
    _require_entry(conn, user_id, "sales", sale_id, "Satış bulunamadı.")
    stock.revert_movement(conn, user_id, sale_id=int(sale_id))
    x(conn, "DELETE FROM sales WHERE user_id=? AND id=?", (user_id, int(sale_id)))
    logger.info("Deleted sale %s for user %s", sale_id, user_id)


# -------------------------
# Customer payments
# -------------------------

def list_payments(conn, user_id: str, customer_id: Optional[int] = None, *, date_from=None, date_to=None):
    return _list_entries(
        conn,
        user_id,
        table="payments",
        date_col="payment_date",
        party_table="customers",
        party_col="customer_id",
        party_id=customer_id,
        date_from=date_from,
        date_to=date_to,
    )


def get_payment(conn, user_id: str, payment_id: int):
    return _get_entry(conn, user_id, "payments", payment_id)


def add_payment(
    conn,
    user_id: str,
    *,
    customer_id: int,
    payment_date,
    amount,
    currency: str = "TRY",
    method: str = "CASH",
    description: Optional[str] = None,
    category: str = "PAYMENT",
    reference_number: Optional[str] = None,
    check_date=None,
    check_serial_number: Optional[str] = None,
) -> int:
    customer = require_party(conn, user_id, PARTY_CUSTOMER, customer_id)
    rec = _payment_fields(
        payment_date=payment_date,
        amount=amount,
        currency=currency,
        method=method,
        description=description,
        category=category,
        reference_number=reference_number,
        check_date=check_date,
        check_serial_number=check_serial_number,
    )
    now = iso_now()
    payment_id = x(
        conn,
        """
        INSERT INTO payments (
            user_id, customer_id, payment_date, amount, currency, method, description, category,
            reference_number, check_date, check_serial_number, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            user_id,
            int(customer_id),
            rec["payment_date"],
            rec["amount"],
            rec["currency"],
            rec["method"],
            rec["description"],
            rec["category"],
            rec["reference_number"],
            rec["check_date"],
            rec["check_serial_number"],
            now,
            now,
        ),
    )
    _sync_derived_check(
        conn, user_id, party_type=PARTY_CUSTOMER, party_name=str(customer["name"]), rec=rec, payment_id=payment_id
    )
    logger.info("Created payment %s (%s %s) for customer %s", payment_id, rec["amount"], rec["currency"], customer_id)
    return payment_id


def update_payment(
    conn,
    user_id: str,
    payment_id: int,
    *,
    payment_date,
    amount,
    currency: str = "TRY",
    method: str = "CASH",
    description: Optional[str] = None,
    category: str = "PAYMENT",
    reference_number: Optional[str] = None,
    check_date=None,
    check_serial_number: Optional[str] = None,
) -> None:
    payment = _require_entry(conn, user_id, "payments", payment_id, "Ödeme bulunamadı.")
    customer = require_party(conn, user_id, PARTY_CUSTOMER, int(payment["customer_id"]))
    rec = _payment_fields(
        payment_date=payment_date,
        amount=amount,
        currency=currency,
        method=method,
        description=description,
        category=category,
        reference_number=reference_number,
        check_date=check_date,
        check_serial_number=check_serial_number,
    )
    x(
        conn,
        """
        UPDATE payments
        SET payment_date=?, amount=?, currency=?, method=?, description=?, category=?,
            reference_number=?, check_date=?, check_serial_number=?, updated_at=?
        WHERE user_id=? AND id=?
        """,
        (
            rec["payment_date"],
            rec["amount"],
            rec["currency"],
            rec["method"],
            rec["description"],
            rec["category"],
            rec["reference_number"],
            rec["check_date"],
            rec["check_serial_number"],
            iso_now(),
            user_id,
            int(payment_id),
        ),
    )
    _sync_derived_check(
        conn, user_id, party_type=PARTY_CUSTOMER, party_name=str(customer["name"]), rec=rec, payment_id=int(payment_id)
    )
    logger.info("Updated payment %s for user %s", payment_id, user_id)


def delete_payment(conn, user_id: str, payment_id: int) -> None:
    _require_entry(conn, user_id, "payments", payment_id, "Ödeme bulunamadı.")
    _drop_derived_check(conn, user_id, payment_id=int(payment_id))
    x(conn, "DELETE FROM payments WHERE user_id=? AND id=?", (user_id, int(payment_id)))
    logger.info("Deleted payment %s for user %s", payment_id, user_id)


# -------------------------
# Purchases
# -------------------------

def list_purchases(conn, user_id: str, supplier_id: Optional[int] = None, *, date_from=None, date_to=None):
    return _list_entries(
        conn,
        user_id,
        table="purchases",
        date_col="purchase_date",
        party_table="suppliers",
        party_col="supplier_id",
        party_id=supplier_id,
        date_from=date_from,
        date_to=date_to,
    )


def get_purchase(conn, user_id: str, purchase_id: int):
    return _get_entry(conn, user_id, "purchases", purchase_id)


def _purchase_record(
    conn,
    user_id: str,
    *,
    purchase_date,
    amount,
    currency: str,
    description: Optional[str],
    category: str,
    purchase_type: str,
    stock_item_id: Optional[int],
    quantity,
    unit_price,
    manual_product_name: Optional[str],
) -> dict[str, Any]:
    ptype = check_code(purchase_type or "MANUAL", PURCHASE_TYPES, field="alış türü")
    qty, price = _quantity_and_price(quantity, unit_price)
    manual_name = clean_str(manual_product_name)

    item = None
    if ptype == "STOCK":
        if stock_item_id is None:
            raise ValueError("Stok alışında ürün seçilmelidir.")
        item = stock.require_stock_item(conn, user_id, stock_item_id)
        if qty is None:
            raise ValueError("Stok alışında miktar zorunludur.")
        manual_name = None

    desc = clean_str(description)
    if not desc:
        desc = str(item["name"]) if item is not None else (manual_name or DEFAULT_PURCHASE_DESCRIPTION)

    return {
        "purchase_date": to_iso_date(purchase_date, field="Alış tarihi"),
        "amount": _resolve_amount(amount, qty, price),
        "currency": check_code(currency, CURRENCIES, field="para birimi"),
        "description": desc,
        "category": check_code(category or "OTHER", CATEGORIES, field="kategori"),
        "purchase_type": ptype,
        "stock_item_id": int(item["id"]) if item is not None else None,
        "quantity": qty,
        "unit_price": price,
        "manual_product_name": manual_name,
    }


def _apply_purchase_stock(conn, user_id: str, purchase_id: int, rec: dict[str, Any], supplier_name: str) -> None:
    if rec["stock_item_id"] is None or not rec["quantity"]:
        return
    stock.apply_movement(
        conn,
        user_id,
        stock_item_id=rec["stock_item_id"],
        kind="PURCHASE",
        quantity_delta=float(rec["quantity"]),
        purchase_id=purchase_id,
        party_name=supplier_name,
    )


def add_purchase(
    conn,
    user_id: str,
    *,
    supplier_id: int,
    purchase_date,
    amount=None,
    currency: str = "TRY",
    description: Optional[str] = None,
    category: str = "OTHER",
    purchase_type: str = "MANUAL",
    stock_item_id: Optional[int] = None,
    quantity=None,
    unit_price=None,
    manual_product_name: Optional[str] = None,
) -> int:
    supplier = require_party(conn, user_id, PARTY_SUPPLIER, supplier_id)
    rec = _purchase_record(
        conn,
        user_id,
        purchase_date=purchase_date,
        amount=amount,
        currency=currency,
        description=description,
        category=category,
        purchase_type=purchase_type,
        stock_item_id=stock_item_id,
        quantity=quantity,
        unit_price=unit_price,
        manual_product_name=manual_product_name,
    )
    now = iso_now()
    purchase_id = x(
        conn,
        """
        INSERT INTO purchases (
            user_id, supplier_id, purchase_date, amount, currency, description, category,
            purchase_type, stock_item_id, quantity, unit_price, manual_product_name,
            created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            user_id,
            int(supplier_id),
            rec["purchase_date"],
            rec["amount"],
            rec["currency"],
            rec["description"],
            rec["category"],
            rec["purchase_type"],
            rec["stock_item_id"],
            rec["quantity"],
            rec["unit_price"],
            rec["manual_product_name"],
            now,
            now,
        ),
    )
    _apply_purchase_stock(conn, user_id, purchase_id, rec, str(supplier["name"]))
    logger.info("Created purchase %s (%s %s) for supplier %s", purchase_id, rec["amount"], rec["currency"], supplier_id)
    return purchase_id


def update_purchase(
    conn,
    user_id: str,
    purchase_id: int,
    *,
    purchase_date,
    amount=None,
    currency: str = "TRY",
    description: Optional[str] = None,
    category: str = "OTHER",
    purchase_type: str = "MANUAL",
    stock_item_id: Optional[int] = None,
    quantity=None,
    unit_price=None,
    manual_product_name: Optional[str] = None,
) -> None:
    purchase = _require_entry(conn, user_id, "purchases", purchase_id, "Alış bulunamadı.")
    supplier = require_party(conn, user_id, PARTY_SUPPLIER, int(purchase["supplier_id"]))
    rec = _purchase_record(
        conn,
        user_id,
        purchase_date=purchase_date,
        amount=amount,
        currency=currency,
        description=description,
        category=category,
        purchase_type=purchase_type,
        stock_item_id=stock_item_id,
        quantity=quantity,
        unit_price=unit_price,
        manual_product_name=manual_product_name,
    )
    stock.revert_movement(conn, user_id, purchase_id=int(purchase_id))
    x(
        conn,
        """
        UPDATE purchases
        SET purchase_date=?, amount=?, currency=?, description=?, category=?, purchase_type=?,
            stock_item_id=?, quantity=?, unit_price=?, manual_product_name=?, updated_at=?
        WHERE user_id=? AND id=?
        """,
        (
            rec["purchase_date"],
            rec["amount"],
            rec["currency"],
            rec["description"],
            rec["category"],
            rec["purchase_type"],
            rec["stock_item_id"],
            rec["quantity"],
            rec["unit_price"],
            rec["manual_product_name"],
            iso_now(),
            user_id,
            int(purchase_id),
        ),
    )
    _apply_purchase_stock(conn, user_id, int(purchase_id), rec, str(supplier["name"]))
    logger.info("Updated purchase %s for user %s", purchase_id, user_id)


def delete_purchase(conn, user_id: str, purchase_id: int) -> None:
    _require_entry(conn, user_id, "purchases", purchase_id, "Alış bulunamadı.")
    stock.revert_movement(conn, user_id, purchase_id=int(purchase_id))
    x(conn, "DELETE FROM purchases WHERE user_id=? AND id=?", (user_id, int(purchase_id)))
    logger.info("Deleted purchase %s for user %s", purchase_id, user_id)


# -------------------------
# Supplier payments
# -------------------------

def list_supplier_payments(conn, user_id: str, supplier_id: Optional[int] = None, *, date_from=None, date_to=None):
    return _list_entries(
        conn,
        user_id,
        table="supplier_payments",
        date_col="payment_date",
        party_table="suppliers",
        party_col="supplier_id",
        party_id=supplier_id,
        date_from=date_from,
        date_to=date_to,
    )


def get_supplier_payment(conn, user_id: str, payment_id: int):
    return _get_entry(conn, user_id, "supplier_payments", payment_id)


def add_supplier_payment(
    conn,
    user_id: str,
    *,
    supplier_id: int,
    payment_date,
    amount,
    currency: str = "TRY",
    method: str = "CASH",
    description: Optional[str] = None,
    category: str = "PAYMENT",
    reference_number: Optional[str] = None,
    check_date=None,
    check_serial_number: Optional[str] = None,
) -> int:
    supplier = require_party(conn, user_id, PARTY_SUPPLIER, supplier_id)
    rec = _payment_fields(
        payment_date=payment_date,
        amount=amount,
        currency=currency,
        method=method,
        description=description,
        category=category,
        reference_number=reference_number,
        check_date=check_date,
        check_serial_number=check_serial_number,
    )
    now = iso_now()
    payment_id = x(
        conn,
        """
        INSERT INTO supplier_payments (
            user_id, supplier_id, payment_date, amount, currency, method, description, category,
            reference_number, check_date, check_serial_number, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            user_id,
            int(supplier_id),
            rec["payment_date"],
            rec["amount"],
            rec["currency"],
            rec["method"],
            rec["description"],
            rec["category"],
            rec["reference_number"],
            rec["check_date"],
            rec["check_serial_number"],
            now,
            now,
        ),
    )
    _sync_derived_check(
        conn,
        user_id,
        party_type=PARTY_SUPPLIER,
        party_name=str(supplier["name"]),
        rec=rec,
        supplier_payment_id=payment_id,
    )
    logger.info("Created supplier payment %s (%s %s) for supplier %s", payment_id, rec["amount"], rec["currency"], supplier_id)
    return payment_id


def update_supplier_payment(
    conn,
    user_id: str,
    payment_id: int,
    *,
    payment_date,
    amount,
    currency: str = "TRY",
    method: str = "CASH",
    description: Optional[str] = None,
    category: str = "PAYMENT",
    reference_number: Optional[str] = None,
    check_date=None,
    check_serial_number: Optional[str] = None,
) -> None:
    payment = _require_entry(conn, user_id, "supplier_payments", payment_id, "Tedarikçi ödemesi bulunamadı.")
    supplier = require_party(conn, user_id, PARTY_SUPPLIER, int(payment["supplier_id"]))
    rec = _payment_fields(
        payment_date=payment_date,
        amount=amount,
        currency=currency,
        method=method,
        description=description,
        category=category,
        reference_number=reference_number,
        check_date=check_date,
        check_serial_number=check_serial_number,
    )
    x(
        conn,
        """
        UPDATE supplier_payments
        SET payment_date=?, amount=?, currency=?, method=?, description=?, category=?,
            reference_number=?, check_date=?, check_serial_number=?, updated_at=?
        WHERE user_id=? AND id=?
        """,
        (
            rec["payment_date"],
            rec["amount"],
            rec["currency"],
            rec["method"],
            rec["description"],
            rec["category"],
            rec["reference_number"],
            rec["check_date"],
            rec["check_serial_number"],
            iso_now(),
            user_id,
            int(payment_id),
        ),
    )
    _sync_derived_check(
        conn,
        user_id,
        party_type=PARTY_SUPPLIER,
        party_name=str(supplier["name"]),
        rec=rec,
        supplier_payment_id=int(payment_id),
    )
    logger.info("Updated supplier payment %s for user %s", payment_id, user_id)


def delete_supplier_payment(conn, user_id: str, payment_id: int) -> None:
    _require_entry(conn, user_id, "supplier_payments", payment_id, "Tedarikçi ödemesi bulunamadı.")
    _drop_derived_check(conn, user_id, supplier_payment_id=int(payment_id))
    x(conn, "DELETE FROM supplier_payments WHERE user_id=? AND id=?", (user_id, int(payment_id)))
    logger.info("Deleted supplier payment %s for user %s", payment_id, user_id)

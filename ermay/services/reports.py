from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import pandas as pd

from ermay.constants import CURRENCIES, EXCHANGE_RATES, ORDER_CLOSED_STATUSES, PARTY_CUSTOMER, PARTY_SUPPLIER
from ermay.db import q
from ermay.services.balances import party_balances
from ermay.utils import iso_today, to_iso_date, to_optional_iso_date

logger = logging.getLogger(__name__)


@dataclass
class IncomeExpenseReport:
    by_currency: pd.DataFrame
    by_month: pd.DataFrame


@dataclass
class DashboardSummary:
    customer_count: int = 0
    supplier_count: int = 0
    receivables: dict[str, float] = field(default_factory=dict)
    payables: dict[str, float] = field(default_factory=dict)
    month_sales: dict[str, float] = field(default_factory=dict)
    pending_check_count: int = 0
    pending_check_totals: dict[str, float] = field(default_factory=dict)
    open_orders: int = 0
    overdue_orders: int = 0
    open_todos: int = 0


def convert_currency(amount: float, from_currency: str, to_currency: str) -> float:
    if from_currency == to_currency:
        return float(amount)
    try:
        rate = EXCHANGE_RATES[from_currency][to_currency]
    except KeyError:
        raise ValueError(f"Kur bulunamadı: {from_currency} -> {to_currency}")
    return float(amount) * rate


def total_in(by_currency: dict[str, float], target: str = "TRY") -> float:
    """Collapse a per-currency dict into one amount using the static rate table."""
    return round(sum(convert_currency(v, cur, target) for cur, v in by_currency.items()), 2)


def _date_filter(date_col: str, date_from, date_to) -> tuple[str, list]:
    sql = ""
    params: list = []
    d_from = to_optional_iso_date(date_from, field="Başlangıç tarihi")
    d_to = to_optional_iso_date(date_to, field="Bitiş tarihi")
    if d_from:
        sql += f" AND {date_col} >= ?"
        params.append(d_from)
    if d_to:
        sql += f" AND {date_col} <= ?"
        params.append(d_to)
    return sql, params


def _ledger_frame(conn, user_id: str, table: str, date_col: str, value_name: str, date_from, date_to) -> pd.DataFrame:
    extra_where, extra_params = _date_filter(date_col, date_from, date_to)
    rows = q(
        conn,
        f"SELECT {date_col} AS date, amount, currency FROM {table} WHERE user_id=? {extra_where}",
        [user_id, *extra_params],
    )
    df = pd.DataFrame([dict(r) for r in rows], columns=["date", "amount", "currency"])
    # Safe numeric conversion; bad values count as zero
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce").fillna(0.0)
    df["month"] = df["date"].astype(str).str[:7]
    return df.rename(columns={"amount": value_name})


def _grouped(df: pd.DataFrame, keys: list[str], value_name: str) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=keys + [value_name])
    return df.groupby(keys, as_index=False)[value_name].sum()


def _two_sided(left: pd.DataFrame, right: pd.DataFrame, keys: list[str], left_name: str, right_name: str) -> pd.DataFrame:
    a = _grouped(left, keys, left_name)
    b = _grouped(right, keys, right_name)
    out = a.merge(b, on=keys, how="outer")
    out[left_name] = pd.to_numeric(out[left_name], errors="coerce").fillna(0.0).round(2)
    out[right_name] = pd.to_numeric(out[right_name], errors="coerce").fillna(0.0).round(2)
    out["net"] = (out[left_name] - out[right_name]).round(2)
    return out.sort_values(keys).reset_index(drop=True)


def income_expense(conn, user_id: str, date_from=None, date_to=None) -> IncomeExpenseReport:
    """Income = sales, expense = purchases. Never mixes currencies."""
    income = _ledger_frame(conn, user_id, "sales", "sale_date", "income", date_from, date_to)
    expense = _ledger_frame(conn, user_id, "purchases", "purchase_date", "expense", date_from, date_to)
    return IncomeExpenseReport(
        by_currency=_two_sided(income, expense, ["currency"], "income", "expense"),
        by_month=_two_sided(income, expense, ["month", "currency"], "income", "expense"),
    )


def cash_flow(conn, user_id: str, date_from=None, date_to=None) -> pd.DataFrame:
    """Collections from customers vs. payments to suppliers, per month and currency."""
    cash_in = _ledger_frame(conn, user_id, "payments", "payment_date", "cash_in", date_from, date_to)
    cash_out = _ledger_frame(conn, user_id, "supplier_payments", "payment_date", "cash_out", date_from, date_to)
    return _two_sided(cash_in, cash_out, ["month", "currency"], "cash_in", "cash_out")


def top_customers(conn, user_id: str, limit: int = 10, currency: Optional[str] = None) -> pd.DataFrame:
    extra_where = " AND s.currency = ?" if currency else ""
    params: list = [user_id]
    if currency:
        params.append(currency)
    rows = q(
        conn,
        f"""
        SELECT c.name AS customer, s.currency, COUNT(s.id) AS sale_count, SUM(s.amount) AS total_sales
        FROM sales s
        JOIN customers c ON c.id = s.customer_id
        WHERE s.user_id=? {extra_where}
        GROUP BY s.customer_id, s.currency
        """,
        params,
    )
    df = pd.DataFrame([dict(r) for r in rows], columns=["customer", "currency", "sale_count", "total_sales"])
    if df.empty:
        return df
    df["total_sales"] = pd.to_numeric(df["total_sales"], errors="coerce").fillna(0.0).round(2)
    df = df.sort_values(["total_sales", "customer"], ascending=[False, True])
    return df.head(int(limit)).reset_index(drop=True)


def _positive_totals(rows: list[dict]) -> dict[str, float]:
    out = {cur: 0.0 for cur in CURRENCIES}
    for r in rows:
        for cur in CURRENCIES:
            if r.get(cur, 0.0) > 0:
                out[cur] = round(out[cur] + r[cur], 2)
    return out


def dashboard_summary(conn, user_id: str, today=None) -> DashboardSummary:
    """
    Receivables: what customers owe us (sum of positive customer balances).
    Payables: what we owe suppliers (sum of positive supplier balances).
    """
    today_iso = to_iso_date(today) if today is not None else iso_today()
    month = today_iso[:7]

    customers = party_balances(conn, user_id, PARTY_CUSTOMER)
    suppliers = party_balances(conn, user_id, PARTY_SUPPLIER)

    month_sales = {cur: 0.0 for cur in CURRENCIES}
    for r in q(
        conn,
        """
        SELECT currency, COALESCE(SUM(amount), 0) AS total
        FROM sales
        WHERE user_id=? AND substr(sale_date, 1, 7)=?
        GROUP BY currency
        """,
        (user_id, month),
    ):
        month_sales[r["currency"]] = round(float(r["total"]), 2)

    pending = q(
        conn,
        """
        SELECT currency, COUNT(*) AS n, COALESCE(SUM(amount), 0) AS total
        FROM bank_checks
        WHERE user_id=? AND status='PENDING'
        GROUP BY currency
        """,
        (user_id,),
    )

    closed = sorted(ORDER_CLOSED_STATUSES)
    marks = ", ".join("?" for _ in closed)
    open_orders = q(
        conn,
        f"""
        SELECT COUNT(*) AS n,
               COALESCE(SUM(CASE WHEN delivery_date IS NOT NULL AND delivery_date < ? THEN 1 ELSE 0 END), 0) AS overdue
        FROM orders
        WHERE user_id=? AND status NOT IN ({marks})
        """,
        (today_iso, user_id, *closed),
    )[0]
    open_todos = q(conn, "SELECT COUNT(*) AS n FROM todos WHERE user_id=? AND completed=0", (user_id,))[0]

    return DashboardSummary(
        customer_count=len(customers),
        supplier_count=len(suppliers),
        receivables=_positive_totals(customers),
        payables=_positive_totals(suppliers),
        month_sales=month_sales,
        pending_check_count=sum(int(r["n"]) for r in pending),
        pending_check_totals={r["currency"]: round(float(r["total"]), 2) for r in pending},
        open_orders=int(open_orders["n"]),
        overdue_orders=int(open_orders["overdue"]),
        open_todos=int(open_todos["n"]),
    )

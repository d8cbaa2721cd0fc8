from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Optional

from ermay.constants import CHECK_STATUSES, CURRENCIES, PARTY_TYPES, check_code
from ermay.db import q, x
from ermay.utils import clean_str, iso_now, iso_today, positive_amount, to_iso_date

logger = logging.getLogger(__name__)


def _normalize_check(
    *,
    check_number: str,
    bank_name: str,
    amount: float,
    currency: str,
    issue_date,
    due_date,
    party_name: str,
    party_type: str,
    status: str,
    branch_name: Optional[str],
    account_number: Optional[str],
    description: Optional[str],
) -> dict[str, Any]:
    number = clean_str(check_number)
    if not number:
        raise ValueError("Çek numarası zorunludur.")
    bank = clean_str(bank_name)
    if not bank:
        raise ValueError("Banka adı zorunludur.")
    party = clean_str(party_name)
    if not party:
        raise ValueError("Keşideci / lehtar adı zorunludur.")

    issue_iso = to_iso_date(issue_date, field="Düzenleme tarihi")
    due_iso = to_iso_date(due_date, field="Vade tarihi")
    if due_iso < issue_iso:
        raise ValueError("Vade tarihi düzenleme tarihinden önce olamaz.")

    return {
        "check_number": number,
        "bank_name": bank,
        "branch_name": clean_str(branch_name),
        "account_number": clean_str(account_number),
        "amount": positive_amount(amount),
        "currency": check_code(currency, CURRENCIES, field="para birimi"),
        "issue_date": issue_iso,
        "due_date": due_iso,
        "status": check_code(status, CHECK_STATUSES, field="çek durumu"),
        "party_name": party,
        "party_type": check_code(party_type, PARTY_TYPES, field="cari türü"),
        "description": clean_str(description),
    }


def list_checks(conn, user_id: str, *, status: Optional[str] = None, party_type: Optional[str] = None):
    where = ["user_id=?"]
    params: list[Any] = [user_id]
    if status:
        where.append("status=?")
        params.append(check_code(status, CHECK_STATUSES, field="çek durumu"))
    if party_type:
        where.append("party_type=?")
        params.append(check_code(party_type, PARTY_TYPES, field="cari türü"))
    where_sql = " AND ".join(where)
    return q(conn, f"SELECT * FROM bank_checks WHERE {where_sql} ORDER BY due_date ASC, id ASC", params)


def get_check(conn, user_id: str, check_id: int):
    rows = q(conn, "SELECT * FROM bank_checks WHERE user_id=? AND id=?", (user_id, int(check_id)))
    return rows[0] if rows else None


def require_check(conn, user_id: str, check_id: int):
    row = get_check(conn, user_id, check_id)
    if row is None:
        logger.warning("Check %s not found for user %s", check_id, user_id)
        raise ValueError("Çek bulunamadı.")
    return row


def find_check_for_payment(
    conn, user_id: str, *, payment_id: Optional[int] = None, supplier_payment_id: Optional[int] = None
):
    """The check derived from a CHECK-method payment, if any."""
    if payment_id is not None:
        rows = q(conn, "SELECT * FROM bank_checks WHERE user_id=? AND payment_id=?", (user_id, int(payment_id)))
    elif supplier_payment_id is not None:
        rows = q(
            conn,
            "SELECT * FROM bank_checks WHERE user_id=? AND supplier_payment_id=?",
            (user_id, int(supplier_payment_id)),
        )
    else:
        return None
    return rows[0] if rows else None


def add_check(
    conn,
    user_id: str,
    *,
    check_number: str,
    bank_name: str,
    amount: float,
    issue_date,
    due_date,
    party_name: str,
    party_type: str,
    currency: str = "TRY",
    status: str = "PENDING",
    branch_name: Optional[str] = None,
    account_number: Optional[str] = None,
    description: Optional[str] = None,
    payment_id: Optional[int] = None,
    supplier_payment_id: Optional[int] = None,
) -> int:
    rec = _normalize_check(
        check_number=check_number,
        bank_name=bank_name,
        amount=amount,
        currency=currency,
        issue_date=issue_date,
        due_date=due_date,
        party_name=party_name,
        party_type=party_type,
        status=status,
        branch_name=branch_name,
        account_number=account_number,
        description=description,
    )
    now = iso_now()
    check_id = x(
        conn,
        """
        INSERT INTO bank_checks (
            user_id, check_number, bank_name, branch_name, account_number, amount, currency,
            issue_date, due_date, status, party_name, party_type, description,
            payment_id, supplier_payment_id, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            user_id,
            rec["check_number"],
            rec["bank_name"],
            rec["branch_name"],
            rec["account_number"],
            rec["amount"],
            rec["currency"],
            rec["issue_date"],
            rec["due_date"],
            rec["status"],
            rec["party_name"],
            rec["party_type"],
            rec["description"],
            payment_id,
            supplier_payment_id,
            now,
            now,
        ),
    )
    logger.info("Created check %s (%s) for user %s", check_id, rec["check_number"], user_id)
    return check_id


def update_check(
    conn,
    user_id: str,
    check_id: int,
    *,
    check_number: str,
    bank_name: str,
    amount: float,
    issue_date,
    due_date,
    party_name: str,
    party_type: str,
    currency: str = "TRY",
    status: str = "PENDING",
    branch_name: Optional[str] = None,
    account_number: Optional[str] = None,
    description: Optional[str] = None,
) -> None:
    require_check(conn, user_id, check_id)
    rec = _normalize_check(
        check_number=check_number,
        bank_name=bank_name,
        amount=amount,
        currency=currency,
        issue_date=issue_date,
        due_date=due_date,
        party_name=party_name,
        party_type=party_type,
        status=status,
        branch_name=branch_name,
        account_number=account_number,
        description=description,
    )
    x(
        conn,
        """
        UPDATE bank_checks
        SET check_number=?, bank_name=?, branch_name=?, account_number=?, amount=?, currency=?,
            issue_date=?, due_date=?, status=?, party_name=?, party_type=?, description=?, updated_at=?
        WHERE user_id=? AND id=?
        """,
        (
            rec["check_number"],
            rec["bank_name"],
            rec["branch_name"],
            rec["account_number"],
            rec["amount"],
            rec["currency"],
            rec["issue_date"],
            rec["due_date"],
            rec["status"],
            rec["party_name"],
            rec["party_type"],
            rec["description"],
            iso_now(),
            user_id,
            int(check_id),
        ),
    )
    logger.info("Updated check %s for user %s", check_id, user_id)


def delete_check(conn, user_id: str, check_id: int) -> None:
    require_check(conn, user_id, check_id)
    x(conn, "DELETE FROM bank_checks WHERE user_id=? AND id=?", (user_id, int(check_id)))
    logger.info("Deleted check %s for user %s", check_id, user_id)


def set_check_status(conn, user_id: str, check_id: int, status: str) -> None:
    code = check_code(status, CHECK_STATUSES, field="çek durumu")
    require_check(conn, user_id, check_id)
    x(
        conn,
        "UPDATE bank_checks SET status=?, updated_at=? WHERE user_id=? AND id=?",
        (code, iso_now(), user_id, int(check_id)),
    )
    logger.info("Check %s -> %s for user %s", check_id, code, user_id)


def upcoming_checks(conn, user_id: str, days: int = 7, today=None):
    """Pending checks due between today and today + days (inclusive). Overdue pending checks are included too."""
    start = date.fromisoformat(to_iso_date(today)) if today is not None else date.fromisoformat(iso_today())
    end = (start + timedelta(days=int(days))).isoformat()
    return q(
        conn,
        """
        SELECT * FROM bank_checks
        WHERE user_id=? AND status='PENDING' AND due_date <= ?
        ORDER BY due_date ASC, id ASC
        """,
        (user_id, end),
    )


def check_totals(conn, user_id: str):
    return q(
        conn,
        """
        SELECT status, currency, COUNT(*) AS check_count, ROUND(SUM(amount), 2) AS total_amount
        FROM bank_checks
        WHERE user_id=?
        GROUP BY status, currency
        ORDER BY status, currency
        """,
        (user_id,),
    )

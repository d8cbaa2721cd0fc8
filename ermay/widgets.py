"""Streamlit building blocks shared by the customer and supplier pages."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

import pandas as pd
import streamlit as st

from ermay.constants import CURRENCIES, ENTRY_LABELS, TASK_STATUSES
from ermay.formatting import balance_label, format_currency, format_date
from ermay.services import parties
from ermay.services.balances import Statement


def rows_frame(rows, columns: Optional[list[str]] = None) -> pd.DataFrame:
    df = pd.DataFrame([dict(r) for r in rows])
    if columns and not df.empty:
        df = df[[c for c in columns if c in df.columns]]
    return df


def show_rows(rows, columns: Optional[list[str]] = None, empty_text: str = "Kayıt yok.") -> None:
    if not rows:
        st.caption(empty_text)
        return
    st.dataframe(rows_frame(rows, columns), use_container_width=True, hide_index=True)


def party_form(key: str, current: Optional[dict[str, Any]] = None, *, supplier: bool = False) -> Optional[dict[str, Any]]:
    """Renders the party fields inside a form; returns the values once submitted."""
    cur = current or {}
    with st.form(key, clear_on_submit=current is None):
        c1, c2 = st.columns(2)
        data = {
            "name": c1.text_input("İsim / Unvan *", value=cur.get("name") or ""),
            "phone": c2.text_input("Telefon", value=cur.get("phone") or ""),
            "email": c1.text_input("E-posta", value=cur.get("email") or ""),
            "tax_number": c2.text_input("Vergi No / TCKN", value=cur.get("tax_number") or ""),
            "tax_office": c1.text_input("Vergi dairesi", value=cur.get("tax_office") or ""),
            "city": c2.text_input("İl", value=cur.get("city") or ""),
            "district": c1.text_input("İlçe", value=cur.get("district") or ""),
        }
        currency_default = cur.get("default_currency") or "TRY"
        data["default_currency"] = c2.selectbox(
            "Varsayılan para birimi", options=list(CURRENCIES), index=list(CURRENCIES).index(currency_default)
        )
        if supplier:
            data["website"] = c1.text_input("Web sitesi", value=cur.get("website") or "")
            data["sector"] = c2.text_input("Sektör", value=cur.get("sector") or "")
        data["address"] = st.text_area("Adres", value=cur.get("address") or "")
        data["notes"] = st.text_area("Notlar", value=cur.get("notes") or "")
        submitted = st.form_submit_button("Kaydet", type="primary")
    return data if submitted else None


def balance_metrics(balances: dict[str, float]) -> None:
    cols = st.columns(len(CURRENCIES))
    for col, cur in zip(cols, CURRENCIES):
        amount = balances.get(cur, 0.0)
        col.metric(f"Bakiye ({cur})", format_currency(abs(amount), cur), delta=balance_label(amount), delta_color="off")


def statement_table(statement: Statement) -> None:
    if any(abs(v) > 0 for v in statement.opening.values()):
        st.caption(
            "Devreden bakiye: "
            + ", ".join(format_currency(v, cur) for cur, v in statement.opening.items() if abs(v) > 0)
        )
    if not statement.lines:
        st.caption("Seçilen aralıkta hareket yok.")
        return

    df = pd.DataFrame(
        [
            {
                "Tarih": format_date(line.date),
                "İşlem": ENTRY_LABELS.get(line.kind, line.kind),
                "Açıklama": line.description or "",
                "Borç": format_currency(line.debit, line.currency) if line.debit else "",
                "Alacak": format_currency(line.credit, line.currency) if line.credit else "",
                "Bakiye": format_currency(line.balance, line.currency),
                "Durum": balance_label(line.balance),
            }
            for line in statement.lines
        ]
    )
    st.dataframe(df, use_container_width=True, hide_index=True)

    totals = [
        {
            "Para birimi": cur,
            "Toplam borç": format_currency(t["debit"], cur),
            "Toplam alacak": format_currency(t["credit"], cur),
            "Bakiye": format_currency(t["balance"], cur),
            "Durum": balance_label(t["balance"]),
        }
        for cur, t in statement.totals.items()
        if t["debit"] or t["credit"] or t["balance"]
    ]
    if totals:
        st.dataframe(pd.DataFrame(totals), use_container_width=True, hide_index=True)


def party_tasks_panel(conn, user_id: str, party_type: str, party_id: int) -> None:
    key = f"{party_type.lower()}_{party_id}"
    with st.form(f"task_form_{key}", clear_on_submit=True):
        description = st.text_input("Görev *", value="")
        c1, c2, c3 = st.columns(3)
        has_due = c1.checkbox("Termin var", value=True)
        due_date = c2.date_input("Termin", value=date.today())
        status = c3.selectbox("Durum", options=list(TASK_STATUSES), format_func=TASK_STATUSES.get)
        submitted = st.form_submit_button("Görev ekle")
    if submitted:
        run_action(
            lambda: parties.add_party_task(
                conn, user_id, party_type, party_id,
                description=description, due_date=due_date if has_due else None, status=status,
            ),
            "Görev eklendi.",
        )

    tasks = parties.list_party_tasks(conn, user_id, party_type, party_id)
    show_rows(tasks, ["id", "description", "due_date", "status"], empty_text="Görev yok.")
    if not tasks:
        return

    c1, c2, c3 = st.columns(3)
    pick = c1.selectbox("Görev", options=[int(t["id"]) for t in tasks],
                        format_func=lambda i: next(t["description"] for t in tasks if int(t["id"]) == i),
                        key=f"task_pick_{key}")
    new_status = c2.selectbox("Yeni durum", options=list(TASK_STATUSES), format_func=TASK_STATUSES.get,
                              key=f"task_status_{key}")
    if c2.button("Durumu güncelle", key=f"task_set_{key}"):
        run_action(lambda: parties.set_party_task_status(conn, user_id, pick, new_status), "Görev güncellendi.")
    if c3.button("Görevi sil", key=f"task_del_{key}"):
        run_action(lambda: parties.delete_party_task(conn, user_id, pick), "Görev silindi.")


def run_action(action, success: str) -> None:
    """Call action(); success -> toast + rerun, failure -> inline error."""
    try:
        action()
        st.success(success)
        st.rerun()
    except Exception as e:
        st.error(str(e))

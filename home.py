from __future__ import annotations

import streamlit as st
import pandas as pd

from ermay.config import get_settings
from ermay.constants import CURRENCIES
from ermay.db import get_conn, ensure_schema
from ermay.formatting import format_currency, format_date
from ermay.services.checks import upcoming_checks
from ermay.services.orders import overdue_orders
from ermay.services.parties import open_party_tasks
from ermay.services.quotations import expire_quotations
from ermay.services.reports import dashboard_summary, total_in
from ermay.services.stock import low_stock_items

st.title("📘 ERMAY — İşletme Yönetimi")
st.caption("Cari hesaplar, satış/alış hareketleri, stok, çek, sipariş ve teklif takibi.")

settings = get_settings()
conn = get_conn(settings.db_path)
ensure_schema(conn)
user_id = settings.user_id

with st.sidebar:
    st.subheader("Ortam")
    st.write(f"**Kullanıcı:** `{user_id}`")
    st.write(f"**Veri klasörü:** `{settings.data_dir}`")
    st.write(f"**Veritabanı:** `{settings.db_path.name}`")

# Housekeeping on every visit: quotations past their validity become EXPIRED
expire_quotations(conn, user_id)

summary = dashboard_summary(conn, user_id)

c1, c2, c3, c4 = st.columns(4)
c1.metric("Müşteri", f"{summary.customer_count}")
c2.metric("Tedarikçi", f"{summary.supplier_count}")
c3.metric("Açık sipariş", f"{summary.open_orders}", delta=f"{summary.overdue_orders} gecikmiş", delta_color="inverse")
c4.metric("Açık görev", f"{summary.open_todos}")

st.subheader("Bakiyeler")
rows = []
for cur in CURRENCIES:
    rows.append(
        {
            "Para birimi": cur,
            "Alacaklar": format_currency(summary.receivables.get(cur, 0.0), cur),
            "Borçlar": format_currency(summary.payables.get(cur, 0.0), cur),
            "Bu ay satış": format_currency(summary.month_sales.get(cur, 0.0), cur),
            "Bekleyen çek": format_currency(summary.pending_check_totals.get(cur, 0.0), cur),
        }
    )
st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)

c1, c2 = st.columns(2)
c1.metric("Toplam alacak (TL karşılığı)", format_currency(total_in(summary.receivables, "TRY"), "TRY"))
c2.metric("Toplam borç (TL karşılığı)", format_currency(total_in(summary.payables, "TRY"), "TRY"))

st.divider()
left, right = st.columns(2)

with left:
    st.subheader("Vadesi yaklaşan çekler (7 gün)")
    due = upcoming_checks(conn, user_id, days=7)
    if due:
        df = pd.DataFrame([dict(r) for r in due])[["check_number", "party_name", "bank_name", "amount", "currency", "due_date"]]
        df["due_date"] = df["due_date"].map(format_date)
        st.dataframe(df, use_container_width=True, hide_index=True)
    else:
        st.caption("Yaklaşan çek yok.")

    st.subheader("Geciken siparişler")
    late = overdue_orders(conn, user_id)
    if late:
        df = pd.DataFrame([dict(r) for r in late])[["order_number", "customer_name", "delivery_date", "status"]]
        st.dataframe(df, use_container_width=True, hide_index=True)
    else:
        st.caption("Geciken sipariş yok.")

with right:
    st.subheader("Kritik stok")
    low = low_stock_items(conn, user_id, threshold=5)
    if low:
        st.dataframe(pd.DataFrame([dict(r) for r in low]), use_container_width=True, hide_index=True)
    else:
        st.caption("Kritik seviyede ürün yok.")

    st.subheader("Açık cari görevleri")
    tasks = open_party_tasks(conn, user_id)
    if tasks:
        df = pd.DataFrame([dict(r) for r in tasks])[["party_name", "description", "due_date", "status"]]
        df["due_date"] = df["due_date"].map(lambda d: format_date(d) if d else "")
        st.dataframe(df, use_container_width=True, hide_index=True)
    else:
        st.caption("Açık görev yok.")

if summary.customer_count == 0 and summary.supplier_count == 0:
    st.info(
        "Henüz kayıt yok. Denemek için **🧪 Veri Yönetimi** sayfasından demo verisi yükleyebilirsiniz.",
        icon="ℹ️",
    )

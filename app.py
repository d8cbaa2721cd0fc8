from __future__ import annotations

import streamlit as st

st.set_page_config(page_title="ERMAY", page_icon="📘", layout="wide")

pages = [
    st.Page("home.py", title="Ana Sayfa", icon="🏠"),
    st.Page("pages/1_👥_Customers.py", title="Müşteriler", icon="👥"),
    st.Page("pages/2_🏭_Suppliers.py", title="Tedarikçiler", icon="🏭"),
    st.Page("pages/3_📒_Ledger.py", title="Hareketler", icon="📒"),
    st.Page("pages/4_📦_Stock.py", title="Stok", icon="📦"),
    st.Page("pages/5_🧾_Checks.py", title="Çekler", icon="🧾"),
    st.Page("pages/6_📋_Orders.py", title="Siparişler", icon="📋"),
    st.Page("pages/7_💼_Quotations.py", title="Teklifler", icon="💼"),
    st.Page("pages/8_📊_Reports.py", title="Raporlar", icon="📊"),
    st.Page("pages/9_🎯_Portfolio.py", title="Portföy", icon="🎯"),
    st.Page("pages/10_✅_Todos_&_Archive.py", title="Görevler & Arşiv", icon="✅"),
    st.Page("pages/11_🧪_Data_Management.py", title="Veri Yönetimi", icon="🧪"),
    st.Page("pages/12_🔍_Search.py", title="Arama", icon="🔍"),
]

st.navigation(pages).run()

"""Domain codes shared by services and pages, with their Turkish display labels.

Codes are what gets stored; labels are what the pages show.
"""

from __future__ import annotations

DEFAULT_CURRENCY = "TRY"
CURRENCIES = ("TRY", "USD", "EUR")
CURRENCY_SYMBOLS = {"TRY": "₺", "USD": "$", "EUR": "€"}

# Static cross rates; reports use them only for "all currencies in TRY" totals.
EXCHANGE_RATES = {
    "TRY": {"TRY": 1.0, "USD": 0.031, "EUR": 0.029},
    "USD": {"TRY": 32.5, "USD": 1.0, "EUR": 0.93},
    "EUR": {"TRY": 35.0, "USD": 1.08, "EUR": 1.0},
}

PAYMENT_METHODS = {
    "CASH": "Nakit",
    "CARD": "Kredi Kartı",
    "TRANSFER": "Havale / EFT",
    "CHECK": "Çek",
    "OTHER": "Diğer",
}

CATEGORIES = {
    "SALE": "Satış",
    "PAYMENT": "Ödeme",
    "RETURN": "İade",
    "DISCOUNT": "İndirim",
    "COMMISSION": "Komisyon",
    "OTHER": "Diğer",
}

INVOICE_TYPES = {"NORMAL": "Normal Satış", "INVOICE": "Faturalı Satış"}
PURCHASE_TYPES = {"STOCK": "Stok Alışı", "MANUAL": "Manuel Alış"}

# Ledger entry kinds. Debit kinds raise the party balance, credit kinds lower it.
SALE = "SALE"
PAYMENT = "PAYMENT"
PURCHASE = "PURCHASE"
SUPPLIER_PAYMENT = "SUPPLIER_PAYMENT"
DEBIT_KINDS = frozenset({SALE, PURCHASE})
CREDIT_KINDS = frozenset({PAYMENT, SUPPLIER_PAYMENT})
ENTRY_LABELS = {
    SALE: "Satış",
    PAYMENT: "Tahsilat",
    PURCHASE: "Alış",
    SUPPLIER_PAYMENT: "Ödeme",
}

PARTY_CUSTOMER = "CUSTOMER"
PARTY_SUPPLIER = "SUPPLIER"
PARTY_TYPES = {PARTY_CUSTOMER: "Müşteri", PARTY_SUPPLIER: "Tedarikçi"}

CHECK_STATUSES = {
    "PENDING": "Beklemede",
    "CLEARED": "Tahsil Edildi",
    "BOUNCED": "Karşılıksız",
    "CANCELLED": "İptal Edildi",
}

ORDER_STATUSES = {
    "PENDING": "Beklemede",
    "CONFIRMED": "Onaylandı",
    "IN_PRODUCTION": "Üretimde",
    "READY": "Hazır",
    "DELIVERED": "Teslim Edildi",
    "CANCELLED": "İptal Edildi",
}
ORDER_CLOSED_STATUSES = frozenset({"DELIVERED", "CANCELLED"})

ORDER_PRIORITIES = {
    "LOW": "Düşük",
    "MEDIUM": "Orta",
    "HIGH": "Yüksek",
    "URGENT": "Acil",
}

QUOTATION_STATUSES = {
    "DRAFT": "Taslak",
    "SENT": "Gönderildi",
    "ACCEPTED": "Kabul Edildi",
    "REJECTED": "Reddedildi",
    "EXPIRED": "Süresi Doldu",
}

CONTACT_TYPES = {
    "PHONE": "Telefon",
    "EMAIL": "E-posta",
    "MEETING": "Toplantı",
    "OTHER": "Diğer",
}

TASK_STATUSES = {"PENDING": "Bekliyor", "IN_PROGRESS": "Devam ediyor", "COMPLETED": "Tamamlandı"}

STOCK_MOVEMENT_KINDS = {"SALE": "Satış", "PURCHASE": "Alış", "ADJUSTMENT": "Düzeltme"}

PORTFOLIO_SECTORS = (
    "Ev Tekstili",
    "Promosyon",
    "İnşaat",
    "Çanta",
    "Ayakkabı",
    "Laminasyon",
    "Kapitone",
    "Mobilya",
    "Tarım",
    "Filtre",
)

SEARCH_SCOPES = {
    "ALL": "Tümü",
    "CUSTOMERS": "Müşteriler",
    "SUPPLIERS": "Tedarikçiler",
    "PRODUCTS": "Ürünler",
    "TRANSACTIONS": "İşlemler",
}

DEFAULT_UNIT = "Adet"
UNITS = ("Adet", "Kg", "Mt", "Top", "Paket", "Koli", "Lt")


def check_code(value, allowed, *, field: str) -> str:
    """Normalize a stored code and reject anything outside ``allowed``."""
    code = str(value or "").strip().upper()
    if code not in allowed:
        raise ValueError(f"Geçersiz {field}: {value!r}.")
    return code

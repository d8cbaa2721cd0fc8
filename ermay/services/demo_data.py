from __future__ import annotations

import logging
import random
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

from ermay.schema import USER_TABLES
from ermay.services import checks, ledger, orders, organizer, parties, quotations, stock
from ermay.services.orders import OrderItemInput
from ermay.services.quotations import QuotationItemInput

logger = logging.getLogger(__name__)

DEMO_CUSTOMERS = [
    dict(name="Yıldız Tekstil Ltd. Şti.", phone="0212 555 10 10", city="İstanbul", district="Bağcılar",
         tax_number="9876543210", tax_office="Güneşli"),
    dict(name="Ege Promosyon", phone="0232 444 20 20", city="İzmir", district="Bornova"),
    dict(name="Anadolu Mobilya A.Ş.", phone="0312 333 30 30", city="Ankara", district="Siteler",
         default_currency="USD"),
]
DEMO_SUPPLIERS = [
    dict(name="Bursa İplik San.", phone="0224 222 40 40", city="Bursa", sector="Ev Tekstili"),
    dict(name="Marmara Ambalaj", phone="0262 111 50 50", city="Kocaeli", sector="Promosyon"),
]
DEMO_STOCK = [
    dict(name="Kapitone Kumaş", unit="Mt", sale_price=85.0),
    dict(name="Laminasyon Film", unit="Kg", sale_price=120.0),
    dict(name="Tela", unit="Top", sale_price=950.0),
]
DEMO_TODOS = ["Yıldız Tekstil çek tahsilatı", "Bursa İplik fiyat teklifi iste", "Aylık KDV beyannamesi"]
DEMO_LINKS = [
    ("GİB İnteraktif Vergi Dairesi", "https://ivd.gib.gov.tr"),
    ("TCMB döviz kurları", "https://www.tcmb.gov.tr/kurlar/today.xml"),
]


def wipe_user_data(conn, user_id: str, archive_dir: Optional[Path] = None) -> None:
    if archive_dir is not None:
        for f in organizer.list_archived_files(conn, user_id):
            (Path(archive_dir) / str(f["stored_name"])).unlink(missing_ok=True)

    # Keep schema, delete this user's rows (order matters for FKs).
    for t in USER_TABLES:
        conn.execute(f"DELETE FROM {t} WHERE user_id=?;", (user_id,))
    conn.commit()
    logger.info("Wiped all data for user %s", user_id)


def load_demo_data(conn, user_id: str, *, seed: int = 7) -> None:
    random.seed(seed)
    base_date = date.today() - timedelta(days=45)

    customer_ids = [parties.add_customer(conn, user_id, **c) for c in DEMO_CUSTOMERS]
    supplier_ids = [parties.add_supplier(conn, user_id, **s) for s in DEMO_SUPPLIERS]
    item_ids = [stock.add_stock_item(conn, user_id, **s) for s in DEMO_STOCK]

    # Stock comes in before it goes out
    for i, item_id in enumerate(item_ids):
        ledger.add_purchase(
            conn,
            user_id,
            supplier_id=supplier_ids[i % len(supplier_ids)],
            purchase_date=(base_date + timedelta(days=i)).isoformat(),
            purchase_type="STOCK",
            stock_item_id=item_id,
            quantity=random.randint(80, 200),
            unit_price=round(random.uniform(20, 60), 2) if i < 2 else 600.0,
        )

    for i in range(8):
        item_id = random.choice(item_ids)
        item = stock.get_stock_item(conn, user_id, item_id)
        ledger.add_sale(
            conn,
            user_id,
            customer_id=customer_ids[i % 2],
            sale_date=(base_date + timedelta(days=5 + i * 4)).isoformat(),
            stock_item_id=item_id,
            quantity=random.randint(5, 25),
            unit_price=float(item["sale_price"]),
            tax_rate=20 if i % 3 == 0 else None,
            invoice_type="INVOICE" if i % 3 == 0 else "NORMAL",
        )

    ledger.add_sale(
        conn,
        user_id,
        customer_id=customer_ids[2],
        sale_date=(base_date + timedelta(days=20)).isoformat(),
        amount=4200.0,
        currency="USD",
        description="Mobilya kumaşı ihracat",
    )

    ledger.add_payment(
        conn,
        user_id,
        customer_id=customer_ids[0],
        payment_date=(base_date + timedelta(days=25)).isoformat(),
        amount=2500.0,
        method="TRANSFER",
        reference_number="EFT-0001",
    )
    ledger.add_payment(
        conn,
        user_id,
        customer_id=customer_ids[1],
        payment_date=(base_date + timedelta(days=30)).isoformat(),
        amount=3000.0,
        method="CHECK",
        reference_number="Ziraat Bankası",
        check_serial_number="ZB-445566",
        check_date=(date.today() + timedelta(days=5)).isoformat(),
    )
    ledger.add_supplier_payment(
        conn,
        user_id,
        supplier_id=supplier_ids[0],
        payment_date=(base_date + timedelta(days=15)).isoformat(),
        amount=1500.0,
        method="CASH",
    )

    checks.add_check(
        conn,
        user_id,
        check_number="IS-778899",
        bank_name="İş Bankası",
        branch_name="Merter",
        amount=1750.0,
        issue_date=(date.today() - timedelta(days=10)).isoformat(),
        due_date=(date.today() + timedelta(days=20)).isoformat(),
        party_name=DEMO_SUPPLIERS[1]["name"],
        party_type="SUPPLIER",
        description="Ambalaj alımı için verilen çek",
    )

    orders.add_order(
        conn,
        user_id,
        customer_id=customer_ids[0],
        order_date=date.today().isoformat(),
        delivery_date=(date.today() + timedelta(days=14)).isoformat(),
        priority="HIGH",
        total_amount=12500.0,
        items=[
            OrderItemInput(product_name="Kapitone Kumaş", quantity=150, unit="Mt", specifications="Bej, 2 cm dolgu"),
            OrderItemInput(product_name="Tela", quantity=4, unit="Top"),
        ],
    )

    quotations.add_quotation(
        conn,
        user_id,
        quotation_date=date.today().isoformat(),
        valid_until=(date.today() + timedelta(days=15)).isoformat(),
        customer_name=DEMO_CUSTOMERS[1]["name"],
        customer_phone=DEMO_CUSTOMERS[1]["phone"],
        items=[
            QuotationItemInput(product_name="Laminasyon Film", quantity=50, unit_price=120.0, unit="Kg"),
            QuotationItemInput(product_name="Baskı hizmeti", quantity=1, unit_price=2000.0, tax_rate=10),
        ],
    )

    parties.add_party_task(
        conn,
        user_id,
        "CUSTOMER",
        customer_ids[0],
        description="Mart ayı cari mutabakatını gönder",
        due_date=(date.today() + timedelta(days=3)).isoformat(),
    )
    for name, url in DEMO_LINKS:
        organizer.add_link(conn, user_id, name, url)

    for title in DEMO_TODOS:
        organizer.add_todo(conn, user_id, title)

    organizer.add_portfolio_item(
        conn,
        user_id,
        company_name="Karadeniz Çanta",
        sector="Çanta",
        gsm="0532 000 00 00",
        city="Trabzon",
    )
    logger.info("Loaded demo data for user %s", user_id)

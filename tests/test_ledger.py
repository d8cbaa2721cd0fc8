import pytest

from ermay.services import checks, ledger, stock


def _stock_level(conn, user_id, item_id):
    return stock.get_stock_item(conn, user_id, item_id)["current_stock"]


# -------------------------
# Sales
# -------------------------

def test_sale_defaults_description_and_derives_amount(conn, user_id, customer_id):
    sid = ledger.add_sale(conn, user_id, customer_id=customer_id, sale_date="2024-03-01", quantity=3, unit_price=12.5)
    sale = ledger.get_sale(conn, user_id, sid)
    assert sale["description"] == ledger.DEFAULT_SALE_DESCRIPTION
    assert sale["amount"] == pytest.approx(37.5)
    assert sale["category"] == "SALE"
    assert sale["invoice_type"] == "NORMAL"


def test_sale_requires_amount_or_quantity_and_price(conn, user_id, customer_id):
    with pytest.raises(ValueError):
        ledger.add_sale(conn, user_id, customer_id=customer_id, sale_date="2024-03-01")
    with pytest.raises(ValueError):
        ledger.add_sale(conn, user_id, customer_id=customer_id, sale_date="2024-03-01", amount=-5)


def test_sale_with_unknown_stock_item(conn, user_id, customer_id):
    sid = ledger.add_sale(conn, user_id, customer_id=customer_id, sale_date="2024-03-01", amount=50, stock_item_id=999)
    sale = ledger.get_sale(conn, user_id, sid)
    assert sale["stock_item_id"] is None
    assert sale["description"] == ledger.MISSING_STOCK_SALE_DESCRIPTION


def test_stock_sale_uses_item_name_and_needs_quantity(conn, user_id, customer_id, item_id):
    with pytest.raises(ValueError, match="miktar"):
        ledger.add_sale(conn, user_id, customer_id=customer_id, sale_date="2024-03-01", amount=10,
                        stock_item_id=item_id)
    sid = ledger.add_sale(conn, user_id, customer_id=customer_id, sale_date="2024-03-01", stock_item_id=item_id,
                          quantity=2, unit_price=85)
    assert ledger.get_sale(conn, user_id, sid)["description"] == "Kapitone Kumaş"


def test_sale_with_tax_rate(conn, user_id, customer_id):
    sid = ledger.add_sale(conn, user_id, customer_id=customer_id, sale_date="2024-03-01", amount=1000, tax_rate=20,
                          invoice_type="INVOICE")
    sale = ledger.get_sale(conn, user_id, sid)
    assert sale["subtotal"] == pytest.approx(1000)
    assert sale["tax_amount"] == pytest.approx(200)
    assert sale["amount"] == pytest.approx(1200)
    assert sale["invoice_type"] == "INVOICE"


def test_sale_stock_applied_updated_and_reverted(conn, user_id, customer_id, item_id):
    sid = ledger.add_sale(conn, user_id, customer_id=customer_id, sale_date="2024-03-01", stock_item_id=item_id,
                          quantity=10, unit_price=85)
    assert _stock_level(conn, user_id, item_id) == pytest.approx(90)

    ledger.update_sale(conn, user_id, sid, sale_date="2024-03-01", stock_item_id=item_id, quantity=4, unit_price=85)
    assert _stock_level(conn, user_id, item_id) == pytest.approx(96)
    assert ledger.get_sale(conn, user_id, sid)["amount"] == pytest.approx(340)

    ledger.delete_sale(conn, user_id, sid)
    assert _stock_level(conn, user_id, item_id) == pytest.approx(100)
    assert ledger.get_sale(conn, user_id, sid) is None


def test_sale_moved_to_another_item(conn, user_id, customer_id, item_id):
    other = stock.add_stock_item(conn, user_id, name="Tela", current_stock=20)
    sid = ledger.add_sale(conn, user_id, customer_id=customer_id, sale_date="2024-03-01", stock_item_id=item_id,
                          quantity=5, unit_price=1)
    ledger.update_sale(conn, user_id, sid, sale_date="2024-03-01", stock_item_id=other, quantity=5, unit_price=1)
    assert _stock_level(conn, user_id, item_id) == pytest.approx(100)
    assert _stock_level(conn, user_id, other) == pytest.approx(15)


def test_list_sales_filters_and_joins_party_name(conn, user_id, customer_id):
    ledger.add_sale(conn, user_id, customer_id=customer_id, sale_date="2024-01-15", amount=10)
    ledger.add_sale(conn, user_id, customer_id=customer_id, sale_date="2024-02-15", amount=20)
    ledger.add_sale(conn, user_id, customer_id=customer_id, sale_date="2024-03-15", amount=30)

    rows = ledger.list_sales(conn, user_id, customer_id, date_from="2024-02-01", date_to="2024-03-31")
    assert [r["sale_date"] for r in rows] == ["2024-03-15", "2024-02-15"]
    assert rows[0]["party_name"] == "Yıldız Tekstil"


def test_sale_for_missing_customer(conn, user_id):
    with pytest.raises(ValueError, match="Müşteri bulunamadı"):
        ledger.add_sale(conn, user_id, customer_id=42, sale_date="2024-03-01", amount=10)


# -------------------------
# Payments and derived checks
# -------------------------

def test_check_payment_requires_serial(conn, user_id, customer_id):
    with pytest.raises(ValueError, match="seri numarası"):
        ledger.add_payment(conn, user_id, customer_id=customer_id, payment_date="2024-03-01", amount=100,
                           method="CHECK", check_date="2024-04-01")


def test_non_check_payment_clears_check_fields(conn, user_id, customer_id):
    pid = ledger.add_payment(conn, user_id, customer_id=customer_id, payment_date="2024-03-01", amount=100,
                             method="CASH", check_serial_number="X1", check_date="2024-04-01")
    payment = ledger.get_payment(conn, user_id, pid)
    assert payment["check_serial_number"] is None
    assert payment["check_date"] is None
    assert checks.find_check_for_payment(conn, user_id, payment_id=pid) is None


def test_check_payment_creates_and_syncs_check(conn, user_id, customer_id):
    pid = ledger.add_payment(conn, user_id, customer_id=customer_id, payment_date="2024-03-10", amount=3000,
                             method="CHECK", check_serial_number="ZB-1", check_date="2024-04-10")
    chk = checks.find_check_for_payment(conn, user_id, payment_id=pid)
    assert chk["check_number"] == "ZB-1"
    assert chk["bank_name"] == ledger.UNKNOWN_BANK
    assert chk["issue_date"] == "2024-03-10"
    assert chk["due_date"] == "2024-04-10"
    assert chk["party_name"] == "Yıldız Tekstil"
    assert chk["party_type"] == "CUSTOMER"
    assert chk["status"] == "PENDING"

    checks.set_check_status(conn, user_id, chk["id"], "CLEARED")
    # back-dated check: issue date follows the check date
    ledger.update_payment(conn, user_id, pid, payment_date="2024-03-10", amount=2500, method="CHECK",
                          check_serial_number="ZB-2", check_date="2024-03-01")
    chk = checks.find_check_for_payment(conn, user_id, payment_id=pid)
    assert chk["check_number"] == "ZB-2"
    assert chk["amount"] == pytest.approx(2500)
    assert chk["issue_date"] == "2024-03-01"
    assert chk["status"] == "CLEARED"

    ledger.update_payment(conn, user_id, pid, payment_date="2024-03-10", amount=2500, method="TRANSFER")
    assert checks.find_check_for_payment(conn, user_id, payment_id=pid) is None


def test_deleting_check_payment_deletes_check(conn, user_id, customer_id):
    pid = ledger.add_payment(conn, user_id, customer_id=customer_id, payment_date="2024-03-10", amount=100,
                             method="CHECK", reference_number="Ziraat", check_serial_number="Z1",
                             check_date="2024-04-10")
    assert checks.find_check_for_payment(conn, user_id, payment_id=pid)["bank_name"] == "Ziraat"
    ledger.delete_payment(conn, user_id, pid)
    assert checks.list_checks(conn, user_id) == []


# -------------------------
# Purchases and supplier payments
# -------------------------

def test_stock_purchase_adds_stock(conn, user_id, supplier_id, item_id):
    pid = ledger.add_purchase(conn, user_id, supplier_id=supplier_id, purchase_date="2024-03-01",
                              purchase_type="STOCK", stock_item_id=item_id, quantity=50, unit_price=40)
    purchase = ledger.get_purchase(conn, user_id, pid)
    assert purchase["amount"] == pytest.approx(2000)
    assert purchase["description"] == "Kapitone Kumaş"
    assert _stock_level(conn, user_id, item_id) == pytest.approx(150)

    ledger.update_purchase(conn, user_id, pid, purchase_date="2024-03-01", amount=900, purchase_type="MANUAL",
                           manual_product_name="Nakliye")
    purchase = ledger.get_purchase(conn, user_id, pid)
    assert purchase["stock_item_id"] is None
    assert purchase["description"] == "Nakliye"
    assert _stock_level(conn, user_id, item_id) == pytest.approx(100)


def test_stock_purchase_validation(conn, user_id, supplier_id, item_id):
    with pytest.raises(ValueError):
        ledger.add_purchase(conn, user_id, supplier_id=supplier_id, purchase_date="2024-03-01", amount=10,
                            purchase_type="STOCK")
    with pytest.raises(ValueError, match="Stok kartı bulunamadı"):
        ledger.add_purchase(conn, user_id, supplier_id=supplier_id, purchase_date="2024-03-01", amount=10,
                            purchase_type="STOCK", stock_item_id=999, quantity=1)
    with pytest.raises(ValueError, match="miktar"):
        ledger.add_purchase(conn, user_id, supplier_id=supplier_id, purchase_date="2024-03-01", amount=10,
                            purchase_type="STOCK", stock_item_id=item_id)


def test_manual_purchase_default_description(conn, user_id, supplier_id):
    pid = ledger.add_purchase(conn, user_id, supplier_id=supplier_id, purchase_date="2024-03-01", amount=10)
    assert ledger.get_purchase(conn, user_id, pid)["description"] == ledger.DEFAULT_PURCHASE_DESCRIPTION


def test_delete_purchase_reverts_stock(conn, user_id, supplier_id, item_id):
    pid = ledger.add_purchase(conn, user_id, supplier_id=supplier_id, purchase_date="2024-03-01",
                              purchase_type="STOCK", stock_item_id=item_id, quantity=5, unit_price=1)
    ledger.delete_purchase(conn, user_id, pid)
    assert _stock_level(conn, user_id, item_id) == pytest.approx(100)


def test_supplier_check_payment(conn, user_id, supplier_id):
    pid = ledger.add_supplier_payment(conn, user_id, supplier_id=supplier_id, payment_date="2024-03-01",
                                      amount=700, currency="EUR", method="CHECK", check_serial_number="S-9",
                                      check_date="2024-05-01")
    chk = checks.find_check_for_payment(conn, user_id, supplier_payment_id=pid)
    assert chk["party_type"] == "SUPPLIER"
    assert chk["party_name"] == "Bursa İplik"
    assert chk["currency"] == "EUR"

    ledger.delete_supplier_payment(conn, user_id, pid)
    assert checks.find_check_for_payment(conn, user_id, supplier_payment_id=pid) is None
    assert ledger.list_supplier_payments(conn, user_id) == []


def test_supplier_payment_update_syncs_check(conn, user_id, supplier_id):
    pid = ledger.add_supplier_payment(conn, user_id, supplier_id=supplier_id, payment_date="2024-03-01",
                                      amount=400)
    assert checks.find_check_for_payment(conn, user_id, supplier_payment_id=pid) is None

    ledger.update_supplier_payment(conn, user_id, pid, payment_date="2024-03-01", amount=450, method="CHECK",
                                   reference_number="Halkbank", check_serial_number="HB-7",
                                   check_date="2024-06-01")
    chk = checks.find_check_for_payment(conn, user_id, supplier_payment_id=pid)
    assert chk["bank_name"] == "Halkbank"
    assert chk["amount"] == pytest.approx(450)
    assert chk["party_type"] == "SUPPLIER"

    ledger.update_supplier_payment(conn, user_id, pid, payment_date="2024-03-01", amount=500, method="CHECK",
                                   check_serial_number="HB-8", check_date="2024-06-15")
    chk = checks.find_check_for_payment(conn, user_id, supplier_payment_id=pid)
    assert chk["check_number"] == "HB-8"
    assert chk["due_date"] == "2024-06-15"
    assert chk["bank_name"] == "Halkbank"

    ledger.update_supplier_payment(conn, user_id, pid, payment_date="2024-03-01", amount=500, method="TRANSFER")
    assert checks.find_check_for_payment(conn, user_id, supplier_payment_id=pid) is None
    payment = ledger.get_supplier_payment(conn, user_id, pid)
    assert payment["method"] == "TRANSFER"
    assert payment["check_serial_number"] is None


def test_sub_cent_amounts_are_rejected(conn, user_id, customer_id):
    with pytest.raises(ValueError, match="sıfırdan büyük"):
        ledger.add_sale(conn, user_id, customer_id=customer_id, sale_date="2024-03-01", amount=0.004)
    with pytest.raises(ValueError, match="sıfırdan büyük"):
        ledger.add_payment(conn, user_id, customer_id=customer_id, payment_date="2024-03-01", amount=0.001)
    assert ledger.list_sales(conn, user_id) == []

import pytest

from ermay.db import x
from ermay.services import quotations
from ermay.services.quotations import QuotationItemInput, compute_quotation_totals

ITEMS = [
    QuotationItemInput(product_name="Laminasyon Film", quantity=50, unit_price=120.0, unit="Kg"),
    QuotationItemInput(product_name="Baskı hizmeti", quantity=1, unit_price=2000.0, tax_rate=10),
]


def test_totals_use_each_items_own_rate():
    totals = compute_quotation_totals(ITEMS)
    assert totals.sub_total == 8000.0
    assert totals.tax_by_rate == {20.0: 1200.0, 10.0: 200.0}
    assert totals.tax_amount == 1400.0
    assert totals.grand_total == 9400.0


def test_totals_round_to_cents():
    totals = compute_quotation_totals([QuotationItemInput(product_name="x", quantity=3, unit_price=0.333)])
    assert totals.sub_total == 1.0
    assert totals.tax_amount == 0.2
    assert totals.grand_total == 1.2


def test_numbering_continues_from_latest(conn, user_id):
    assert quotations.next_quotation_number(conn, user_id) == "QT0001"
    first = quotations.add_quotation(conn, user_id, quotation_date="2024-03-01", customer_name="Ege", items=ITEMS)
    assert quotations.get_quotation(conn, user_id, first)["quotation_number"] == "QT0001"
    quotations.add_quotation(conn, user_id, quotation_date="2024-03-01", customer_name="Ege", items=ITEMS)
    assert quotations.next_quotation_number(conn, user_id) == "QT0003"
    assert quotations.next_quotation_number(conn, "other") == "QT0001"


def test_numbering_follows_trailing_digits(conn, user_id):
    qid = quotations.add_quotation(conn, user_id, quotation_date="2024-03-01", customer_name="Ege", items=ITEMS)
    x(conn, "UPDATE quotations SET quotation_number='TK-2024-0041' WHERE id=?", (qid,))
    assert quotations.next_quotation_number(conn, user_id) == "QT0042"


def test_add_stores_totals_and_items(conn, user_id):
    qid = quotations.add_quotation(conn, user_id, quotation_date="2024-03-01", valid_until="2024-03-16",
                                   customer_name="Ege", customer_phone="0232", items=ITEMS)
    quote = quotations.get_quotation(conn, user_id, qid)
    assert (quote["sub_total"], quote["tax_amount"], quote["grand_total"]) == (8000.0, 1400.0, 9400.0)
    assert quote["status"] == "DRAFT"
    items = quotations.list_quotation_items(conn, qid)
    assert [i["total"] for i in items] == [6000.0, 2000.0]
    assert items[0]["tax_rate"] == 20


def test_validation(conn, user_id):
    with pytest.raises(ValueError, match="Müşteri adı"):
        quotations.add_quotation(conn, user_id, quotation_date="2024-03-01", customer_name="", items=ITEMS)
    with pytest.raises(ValueError, match="en az bir kalem"):
        quotations.add_quotation(conn, user_id, quotation_date="2024-03-01", customer_name="Ege", items=[])
    with pytest.raises(ValueError, match="Geçerlilik"):
        quotations.add_quotation(conn, user_id, quotation_date="2024-03-01", valid_until="2024-02-01",
                                 customer_name="Ege", items=ITEMS)
    with pytest.raises(ValueError, match="birim fiyat zorunludur"):
        quotations.add_quotation(conn, user_id, quotation_date="2024-03-01", customer_name="Ege",
                                 items=[QuotationItemInput(product_name="x", quantity=1, unit_price=None)])
    with pytest.raises(ValueError, match="birim fiyat negatif"):
        quotations.add_quotation(conn, user_id, quotation_date="2024-03-01", customer_name="Ege",
                                 items=[QuotationItemInput(product_name="x", quantity=1, unit_price=-5)])
    with pytest.raises(ValueError, match="KDV"):
        quotations.add_quotation(conn, user_id, quotation_date="2024-03-01", customer_name="Ege",
                                 items=[QuotationItemInput(product_name="x", quantity=1, unit_price=1, tax_rate=-1)])


def test_update_recomputes(conn, user_id):
    qid = quotations.add_quotation(conn, user_id, quotation_date="2024-03-01", customer_name="Ege", items=ITEMS)
    quotations.update_quotation(conn, user_id, qid, quotation_date="2024-03-02", customer_name="Ege Promosyon",
                                status="SENT", items=[QuotationItemInput(product_name="Tela", quantity=2, unit_price=100)])
    quote = quotations.get_quotation(conn, user_id, qid)
    assert quote["quotation_number"] == "QT0001"
    assert quote["grand_total"] == 240.0
    assert quote["status"] == "SENT"
    assert len(quotations.list_quotation_items(conn, qid)) == 1


def test_expire_only_open_quotations(conn, user_id):
    draft = quotations.add_quotation(conn, user_id, quotation_date="2024-03-01", valid_until="2024-03-05",
                                     customer_name="A", items=ITEMS)
    accepted = quotations.add_quotation(conn, user_id, quotation_date="2024-03-01", valid_until="2024-03-05",
                                        customer_name="B", items=ITEMS)
    still_valid = quotations.add_quotation(conn, user_id, quotation_date="2024-03-01", valid_until="2024-03-30",
                                           customer_name="C", items=ITEMS)
    quotations.set_quotation_status(conn, user_id, accepted, "ACCEPTED")

    assert quotations.expire_quotations(conn, user_id, today="2024-03-10") == 1
    assert quotations.get_quotation(conn, user_id, draft)["status"] == "EXPIRED"
    assert quotations.get_quotation(conn, user_id, accepted)["status"] == "ACCEPTED"
    assert quotations.get_quotation(conn, user_id, still_valid)["status"] == "DRAFT"
    assert quotations.expire_quotations(conn, user_id, today="2024-03-10") == 0


def test_delete_removes_items(conn, user_id):
    qid = quotations.add_quotation(conn, user_id, quotation_date="2024-03-01", customer_name="Ege", items=ITEMS)
    quotations.delete_quotation(conn, user_id, qid)
    assert quotations.list_quotation_items(conn, qid) == []
    assert quotations.list_quotations(conn, user_id) == []

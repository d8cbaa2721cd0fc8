import pytest

from ermay.services import ledger, stock


def test_opening_stock_is_an_adjustment(conn, user_id, item_id):
    moves = stock.list_movements(conn, user_id, stock_item_id=item_id)
    assert len(moves) == 1
    assert moves[0]["kind"] == "ADJUSTMENT"
    assert moves[0]["quantity_delta"] == pytest.approx(100)
    assert moves[0]["balance_after"] == pytest.approx(100)
    assert moves[0]["reason"] == "Açılış stoku"


def test_item_without_opening_stock_has_no_movement(conn, user_id):
    iid = stock.add_stock_item(conn, user_id, name="Tela")
    assert stock.get_stock_item(conn, user_id, iid)["unit"] == "Adet"
    assert stock.list_movements(conn, user_id, stock_item_id=iid) == []


def test_item_validation(conn, user_id):
    with pytest.raises(ValueError, match="Ürün adı"):
        stock.add_stock_item(conn, user_id, name="")
    with pytest.raises(ValueError):
        stock.add_stock_item(conn, user_id, name="X", sale_price=-1)


def test_edit_card_records_stock_change(conn, user_id, item_id):
    stock.update_stock_item(conn, user_id, item_id, name="Kapitone Kumaş 2cm", unit="Mt", current_stock=80,
                            sale_price=90)
    item = stock.get_stock_item(conn, user_id, item_id)
    assert item["name"] == "Kapitone Kumaş 2cm"
    assert item["current_stock"] == pytest.approx(80)

    latest = stock.list_movements(conn, user_id, stock_item_id=item_id, limit=1)[0]
    assert latest["quantity_delta"] == pytest.approx(-20)
    assert latest["reason"] == "Stok kartı düzenlendi"

    # unchanged stock adds nothing
    stock.update_stock_item(conn, user_id, item_id, name="Kapitone Kumaş 2cm", current_stock=80)
    assert len(stock.list_movements(conn, user_id, stock_item_id=item_id)) == 2


def test_adjust_stock(conn, user_id, item_id):
    stock.adjust_stock(conn, user_id, item_id, quantity_delta=-3.5, reason="Fire")
    assert stock.get_stock_item(conn, user_id, item_id)["current_stock"] == pytest.approx(96.5)

    with pytest.raises(ValueError, match="sıfır"):
        stock.adjust_stock(conn, user_id, item_id, quantity_delta=0, reason="x")
    with pytest.raises(ValueError, match="nedeni"):
        stock.adjust_stock(conn, user_id, item_id, quantity_delta=1, reason=" ")


def test_stock_can_go_negative(conn, user_id, item_id):
    stock.adjust_stock(conn, user_id, item_id, quantity_delta=-120, reason="Sayım farkı")
    assert stock.get_stock_item(conn, user_id, item_id)["current_stock"] == pytest.approx(-20)
    assert stock.low_stock_items(conn, user_id)[0]["id"] == item_id


def test_revert_needs_exactly_one_document(conn, user_id):
    with pytest.raises(ValueError):
        stock.revert_movement(conn, user_id)
    with pytest.raises(ValueError):
        stock.revert_movement(conn, user_id, sale_id=1, purchase_id=2)


def test_revert_is_idempotent(conn, user_id, customer_id, item_id):
    sid = ledger.add_sale(conn, user_id, customer_id=customer_id, sale_date="2024-03-01", stock_item_id=item_id,
                          quantity=10, unit_price=1)
    assert len(stock.revert_movement(conn, user_id, sale_id=sid)) == 1
    assert stock.revert_movement(conn, user_id, sale_id=sid) == []
    assert stock.get_stock_item(conn, user_id, item_id)["current_stock"] == pytest.approx(100)

    revert = stock.list_movements(conn, user_id, stock_item_id=item_id, limit=1)[0]
    assert revert["action"] == "REVERT"
    assert revert["kind"] == "SALE"
    assert revert["party_name"] == "Yıldız Tekstil"


def test_movement_paging_and_filters(conn, user_id, item_id):
    for i in range(5):
        stock.adjust_stock(conn, user_id, item_id, quantity_delta=1, reason=f"r{i}")

    first = stock.list_movements(conn, user_id, limit=2)
    assert [m["reason"] for m in first] == ["r4", "r3"]
    second = stock.list_movements(conn, user_id, limit=2, before_id=first[-1]["id"])
    assert [m["reason"] for m in second] == ["r2", "r1"]
    third = stock.list_movements(conn, user_id, limit=2, before_id=second[-1]["id"])
    assert [m["reason"] for m in third] == ["r0", "Açılış stoku"]

    assert stock.list_movements(conn, user_id, kind="SALE") == []
    assert stock.list_movements(conn, user_id, date_to="2000-01-01") == []
    assert third[0]["stock_item"] == "Kapitone Kumaş"


def test_list_items_sorted_by_name(conn, user_id):
    for name in ("zeytin", "Ayva", "armut"):
        stock.add_stock_item(conn, user_id, name=name)
    assert [r["name"] for r in stock.list_stock_items(conn, user_id)] == ["armut", "Ayva", "zeytin"]


def test_list_items_use_turkish_alphabet(conn, user_id):
    for name in ("Zeytin", "Çanta", "Dolgu", "Cırt", "İplik", "Jakar", "Işık", "Ölçü", "Oya"):
        stock.add_stock_item(conn, user_id, name=name)
    assert [r["name"] for r in stock.list_stock_items(conn, user_id)] == [
        "Cırt", "Çanta", "Dolgu", "Işık", "İplik", "Jakar", "Oya", "Ölçü", "Zeytin",
    ]


def test_delete_item_keeps_sales(conn, user_id, customer_id, item_id):
    sid = ledger.add_sale(conn, user_id, customer_id=customer_id, sale_date="2024-03-01", stock_item_id=item_id,
                          quantity=2, unit_price=85)
    stock.delete_stock_item(conn, user_id, item_id)
    sale = ledger.get_sale(conn, user_id, sid)
    assert sale["stock_item_id"] is None
    assert sale["amount"] == pytest.approx(170)
    assert stock.list_movements(conn, user_id) == []

    # the sale can still be deleted once its item is gone
    ledger.delete_sale(conn, user_id, sid)
    assert ledger.get_sale(conn, user_id, sid) is None


def test_stock_summary(conn, user_id, item_id):
    row = stock.stock_summary(conn, user_id)[0]
    assert row["stock_value"] == pytest.approx(8500)
    assert row["last_movement"] is not None


def test_fifo_profit(conn, user_id, customer_id, supplier_id, item_id):
    ledger.add_purchase(conn, user_id, supplier_id=supplier_id, purchase_date="2024-01-01", purchase_type="STOCK",
                        stock_item_id=item_id, quantity=10, unit_price=5)
    ledger.add_purchase(conn, user_id, supplier_id=supplier_id, purchase_date="2024-01-02", purchase_type="STOCK",
                        stock_item_id=item_id, quantity=10, unit_price=8)
    ledger.add_sale(conn, user_id, customer_id=customer_id, sale_date="2024-01-03", stock_item_id=item_id,
                    quantity=15, unit_price=20)

    [p] = stock.fifo_product_profit(conn, user_id)
    assert p.purchased_qty == pytest.approx(20)
    assert p.sold_qty == pytest.approx(15)
    assert p.sales_amount == pytest.approx(300)
    assert p.cogs == pytest.approx(90)
    assert p.profit == pytest.approx(210)
    assert p.margin_pct == pytest.approx(70)


def test_fifo_same_day_purchase_comes_first(conn, user_id, customer_id, supplier_id, item_id):
    ledger.add_sale(conn, user_id, customer_id=customer_id, sale_date="2024-01-01", stock_item_id=item_id,
                    quantity=2, unit_price=10)
    ledger.add_purchase(conn, user_id, supplier_id=supplier_id, purchase_date="2024-01-01", purchase_type="STOCK",
                        stock_item_id=item_id, quantity=2, unit_price=4)
    [p] = stock.fifo_product_profit(conn, user_id)
    assert p.cogs == pytest.approx(8)


def test_fifo_sale_beyond_purchases_has_no_cost(conn, user_id, customer_id, item_id):
    ledger.add_sale(conn, user_id, customer_id=customer_id, sale_date="2024-01-01", stock_item_id=item_id,
                    quantity=3, unit_price=10)
    [p] = stock.fifo_product_profit(conn, user_id)
    assert p.cogs == 0
    assert p.profit == pytest.approx(30)

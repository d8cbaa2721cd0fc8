import pytest

from ermay.services import orders
from ermay.services.orders import OrderItemInput

ITEMS = [OrderItemInput(product_name="Kapitone Kumaş", quantity=150, unit="Mt", specifications="Bej")]


def test_order_numbers_are_sequential_per_day(conn, user_id):
    a = orders.add_order(conn, user_id, order_date="2024-03-01", customer_name="Ege", items=ITEMS)
    b = orders.add_order(conn, user_id, order_date="2024-03-01", customer_name="Ege", items=ITEMS)
    c = orders.add_order(conn, user_id, order_date="2024-03-02", customer_name="Ege", items=ITEMS)
    numbers = [orders.get_order(conn, user_id, i)["order_number"] for i in (a, b, c)]
    assert numbers == ["SIP-20240301-001", "SIP-20240301-002", "SIP-20240302-001"]


def test_order_number_skips_taken_numbers(conn, user_id):
    a = orders.add_order(conn, user_id, order_date="2024-03-01", customer_name="Ege", items=ITEMS)
    orders.add_order(conn, user_id, order_date="2024-03-01", customer_name="Ege", items=ITEMS)
    orders.delete_order(conn, user_id, a)
    c = orders.add_order(conn, user_id, order_date="2024-03-01", customer_name="Ege", items=ITEMS)
    assert orders.get_order(conn, user_id, c)["order_number"] == "SIP-20240301-003"


def test_linked_customer_name_wins(conn, user_id, customer_id):
    oid = orders.add_order(conn, user_id, order_date="2024-03-01", customer_id=customer_id, customer_name="ignored",
                           items=ITEMS)
    order = orders.get_order(conn, user_id, oid)
    assert order["customer_id"] == customer_id
    assert order["customer_name"] == "Yıldız Tekstil"


def test_order_validation(conn, user_id):
    with pytest.raises(ValueError, match="Müşteri"):
        orders.add_order(conn, user_id, order_date="2024-03-01", items=ITEMS)
    with pytest.raises(ValueError, match="en az bir kalem"):
        orders.add_order(conn, user_id, order_date="2024-03-01", customer_name="Ege", items=[])
    with pytest.raises(ValueError, match="miktar"):
        orders.add_order(conn, user_id, order_date="2024-03-01", customer_name="Ege",
                         items=[OrderItemInput(product_name="Tela", quantity=0)])
    with pytest.raises(ValueError, match="Teslim tarihi"):
        orders.add_order(conn, user_id, order_date="2024-03-01", delivery_date="2024-02-01", customer_name="Ege",
                         items=ITEMS)


def test_update_rewrites_items_and_keeps_number(conn, user_id):
    oid = orders.add_order(conn, user_id, order_date="2024-03-01", customer_name="Ege", items=ITEMS)
    number = orders.get_order(conn, user_id, oid)["order_number"]
    orders.update_order(
        conn,
        user_id,
        oid,
        order_date="2024-03-05",
        customer_name="Ege Promosyon",
        priority="URGENT",
        total_amount=900,
        items=[OrderItemInput(product_name="Tela", quantity=4, unit="Top"), OrderItemInput(product_name="Fermuar", quantity=100)],
    )
    order = orders.get_order(conn, user_id, oid)
    assert order["order_number"] == number
    assert order["priority"] == "URGENT"
    items = orders.list_order_items(conn, oid)
    assert [(i["product_name"], i["unit"]) for i in items] == [("Tela", "Top"), ("Fermuar", "Adet")]


def test_delete_order_removes_items(conn, user_id):
    oid = orders.add_order(conn, user_id, order_date="2024-03-01", customer_name="Ege", items=ITEMS)
    orders.delete_order(conn, user_id, oid)
    assert orders.list_order_items(conn, oid) == []
    with pytest.raises(ValueError, match="Sipariş bulunamadı"):
        orders.require_order(conn, user_id, oid)


def test_status_and_overdue(conn, user_id):
    late = orders.add_order(conn, user_id, order_date="2024-03-01", delivery_date="2024-03-05", customer_name="A",
                            items=ITEMS)
    delivered = orders.add_order(conn, user_id, order_date="2024-03-01", delivery_date="2024-03-05",
                                 customer_name="B", items=ITEMS)
    orders.add_order(conn, user_id, order_date="2024-03-01", delivery_date="2024-03-20", customer_name="C",
                     items=ITEMS)
    orders.set_order_status(conn, user_id, delivered, "DELIVERED")

    assert [r["id"] for r in orders.overdue_orders(conn, user_id, today="2024-03-10")] == [late]
    assert [r["id"] for r in orders.list_orders(conn, user_id, status="DELIVERED")] == [delivered]
    with pytest.raises(ValueError):
        orders.set_order_status(conn, user_id, late, "LOST")

import pytest

from ermay.db import _connect, ensure_schema
from ermay.services import parties, stock


@pytest.fixture
def conn(tmp_path):
    c = _connect(tmp_path / "test.db")
    ensure_schema(c)
    yield c
    c.close()


@pytest.fixture
def user_id():
    return "u1"


@pytest.fixture
def archive_dir(tmp_path):
    return tmp_path / "archive" / "u1"


@pytest.fixture
def customer_id(conn, user_id):
    return parties.add_customer(conn, user_id, name="Yıldız Tekstil", phone="0212 555 10 10")


@pytest.fixture
def supplier_id(conn, user_id):
    return parties.add_supplier(conn, user_id, name="Bursa İplik")


@pytest.fixture
def item_id(conn, user_id):
    return stock.add_stock_item(conn, user_id, name="Kapitone Kumaş", unit="Mt", current_stock=100, sale_price=85)

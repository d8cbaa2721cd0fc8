import pytest

from ermay.services import checks


def _add(conn, user_id, **overrides):
    data = dict(
        check_number="IS-1",
        bank_name="İş Bankası",
        amount=1000,
        issue_date="2024-03-01",
        due_date="2024-03-20",
        party_name="Yıldız Tekstil",
        party_type="CUSTOMER",
    )
    data.update(overrides)
    return checks.add_check(conn, user_id, **data)


def test_add_and_get(conn, user_id):
    cid = _add(conn, user_id, branch_name="Merter", currency="usd")
    row = checks.get_check(conn, user_id, cid)
    assert row["status"] == "PENDING"
    assert row["currency"] == "USD"
    assert row["branch_name"] == "Merter"
    assert checks.get_check(conn, "other", cid) is None


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"check_number": " "}, "Çek numarası"),
        ({"bank_name": ""}, "Banka adı"),
        ({"party_name": None}, "Keşideci"),
        ({"due_date": "2024-02-01"}, "Vade tarihi"),
        ({"amount": 0}, "Tutar"),
        ({"status": "LOST"}, "çek durumu"),
    ],
)
def test_validation(conn, user_id, overrides, message):
    with pytest.raises(ValueError, match=message):
        _add(conn, user_id, **overrides)


def test_update_status_and_delete(conn, user_id):
    cid = _add(conn, user_id)
    checks.update_check(conn, user_id, cid, check_number="IS-2", bank_name="Garanti", amount=1200,
                        issue_date="2024-03-01", due_date="2024-04-01", party_name="Ege", party_type="SUPPLIER")
    row = checks.get_check(conn, user_id, cid)
    assert (row["check_number"], row["bank_name"], row["party_type"]) == ("IS-2", "Garanti", "SUPPLIER")

    checks.set_check_status(conn, user_id, cid, "bounced")
    assert checks.get_check(conn, user_id, cid)["status"] == "BOUNCED"

    checks.delete_check(conn, user_id, cid)
    with pytest.raises(ValueError, match="Çek bulunamadı"):
        checks.require_check(conn, user_id, cid)


def test_list_filters_sorted_by_due_date(conn, user_id):
    late = _add(conn, user_id, due_date="2024-05-01")
    early = _add(conn, user_id, due_date="2024-03-10", party_type="SUPPLIER")
    assert [r["id"] for r in checks.list_checks(conn, user_id)] == [early, late]
    assert [r["id"] for r in checks.list_checks(conn, user_id, party_type="SUPPLIER")] == [early]
    checks.set_check_status(conn, user_id, late, "CLEARED")
    assert [r["id"] for r in checks.list_checks(conn, user_id, status="CLEARED")] == [late]


def test_upcoming_includes_overdue_pending(conn, user_id):
    overdue = _add(conn, user_id, due_date="2024-03-02")
    soon = _add(conn, user_id, due_date="2024-03-14")
    _add(conn, user_id, due_date="2024-04-30")
    cleared = _add(conn, user_id, due_date="2024-03-12")
    checks.set_check_status(conn, user_id, cleared, "CLEARED")

    rows = checks.upcoming_checks(conn, user_id, days=7, today="2024-03-10")
    assert [r["id"] for r in rows] == [overdue, soon]


def test_totals_grouped_by_status_and_currency(conn, user_id):
    _add(conn, user_id, amount=100)
    _add(conn, user_id, amount=50.5)
    _add(conn, user_id, amount=10, currency="EUR")
    totals = {(r["status"], r["currency"]): (r["check_count"], r["total_amount"]) for r in checks.check_totals(conn, user_id)}
    assert totals == {("PENDING", "EUR"): (1, 10.0), ("PENDING", "TRY"): (2, 150.5)}

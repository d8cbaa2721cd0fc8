from ermay.db import q
from ermay.schema import USER_TABLES
from ermay.services import checks, organizer
from ermay.services.demo_data import load_demo_data, wipe_user_data


def _counts(conn, user_id):
    return {t: q(conn, f"SELECT COUNT(*) AS n FROM {t} WHERE user_id=?", (user_id,))[0]["n"] for t in USER_TABLES}


def test_load_demo_data(conn, user_id):
    load_demo_data(conn, user_id)
    counts = _counts(conn, user_id)
    assert counts["customers"] == 3
    assert counts["suppliers"] == 2
    assert counts["stock_items"] == 3
    assert counts["sales"] == 9
    assert counts["payments"] == 2
    assert counts["supplier_payments"] == 1
    assert counts["orders"] == 1
    assert counts["quotations"] == 1
    assert counts["todos"] == 3
    assert counts["portfolio_items"] == 1
    assert counts["party_tasks"] == 1
    assert counts["useful_links"] == 2
    # one check derived from the CHECK payment plus one entered directly
    assert counts["bank_checks"] == 2
    assert len([c for c in checks.list_checks(conn, user_id) if c["payment_id"] is not None]) == 1


def test_wipe_only_touches_one_user(conn, user_id, archive_dir):
    load_demo_data(conn, user_id)
    load_demo_data(conn, "u2")
    organizer.add_archived_file(conn, user_id, archive_dir, name="a.txt", data=b"abc")
    stored = organizer.list_archived_files(conn, user_id)[0]["stored_name"]

    wipe_user_data(conn, user_id, archive_dir)

    assert all(n == 0 for n in _counts(conn, user_id).values())
    assert not (archive_dir / stored).exists()
    assert _counts(conn, "u2")["sales"] == 9
    assert q(conn, "SELECT COUNT(*) AS n FROM order_items")[0]["n"] == 2

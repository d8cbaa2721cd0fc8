from datetime import date

import pytest

from ermay.constants import check_code
from ermay.formatting import (
    INVALID_DATE,
    balance_label,
    format_currency,
    format_date,
    format_number,
    turkish_lower,
    turkish_sort_key,
)
from ermay.utils import clean_str, positive_amount, to_iso_date


def test_format_number_uses_turkish_grouping():
    assert format_number(1234567.891) == "1.234.567,89"
    assert format_number(-1500) == "-1.500,00"
    assert format_number("abc") == "0,00"


def test_format_currency_symbols():
    assert format_currency(1500, "TRY") == "1.500,00 ₺"
    assert format_currency(10.5, "USD") == "10,50 $"
    assert format_currency(3, "GBP") == "3,00 GBP"


def test_format_date():
    assert format_date("2024-03-05") == "05.03.2024"
    assert format_date(date(2024, 1, 2)) == "02.01.2024"
    assert format_date("2024-03-05T14:30:00", with_time=True) == "05.03.2024 14:30"
    assert format_date("not a date") == INVALID_DATE
    assert format_date(None) == INVALID_DATE


def test_balance_label():
    assert balance_label(0) == "KAPALI"
    assert balance_label(0.001) == "KAPALI"
    assert balance_label(10) == "BORÇLU"
    assert balance_label(-10) == "ALACAKLI"


def test_check_code_normalizes_and_rejects():
    assert check_code(" try ", ("TRY", "USD"), field="para birimi") == "TRY"
    with pytest.raises(ValueError):
        check_code("GBP", ("TRY", "USD"), field="para birimi")


def test_input_helpers():
    assert clean_str("  ") is None
    assert clean_str(" a ") == "a"
    assert to_iso_date("2024-05-06T10:00:00") == "2024-05-06"
    with pytest.raises(ValueError):
        to_iso_date("")
    with pytest.raises(ValueError):
        positive_amount(0)
    with pytest.raises(ValueError):
        positive_amount(float("nan"))
    assert positive_amount("12.346") == 12.35


def test_turkish_lower_handles_dotted_i():
    assert turkish_lower("İPLİK IŞIK") == "iplik ışık"


def test_turkish_sort_key_orders_special_letters():
    names = ["şal", "Sepet", "üzüm", "Uçak", "ğ", "Gece", "10 Mt", "ceket"]
    assert sorted(names, key=turkish_sort_key) == ["10 Mt", "ceket", "Gece", "ğ", "Sepet", "şal", "Uçak", "üzüm"]


def test_positive_amount_rejects_sub_cent_values():
    with pytest.raises(ValueError, match="sıfırdan büyük"):
        positive_amount(0.004)
    with pytest.raises(ValueError, match="sıfırdan büyük"):
        positive_amount("-0.001")
    assert positive_amount(0.01) == 0.01

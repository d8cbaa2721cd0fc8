from __future__ import annotations

from datetime import date, datetime
from typing import Any

from ermay.constants import CURRENCY_SYMBOLS
from ermay.utils import is_number

INVALID_DATE = "Geçersiz Tarih"


def format_number(value: Any, decimals: int = 2) -> str:
    """Turkish grouping: 1.234.567,89"""
    n = float(value) if is_number(value) else 0.0
    s = f"{abs(n):,.{decimals}f}"
    s = s.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"-{s}" if n < 0 else s


def format_currency(amount: Any, currency: str = "TRY") -> str:
    symbol = CURRENCY_SYMBOLS.get(str(currency).upper())
    body = format_number(amount)
    if symbol is None:
        return f"{body} {currency}"
    return f"{body} {symbol}"


def format_date(value: Any, with_time: bool = False) -> str:
    fmt = "%d.%m.%Y %H:%M" if with_time else "%d.%m.%Y"
    if isinstance(value, datetime):
        return value.strftime(fmt)
    if isinstance(value, date):
        return value.strftime("%d.%m.%Y")
    if not value:
        return INVALID_DATE
    s = str(value)
    try:
        if len(s) <= 10:
            return date.fromisoformat(s).strftime("%d.%m.%Y")
        return datetime.fromisoformat(s).strftime(fmt)
    except ValueError:
        return INVALID_DATE


def balance_label(balance: float) -> str:
    # Customer side: positive means they owe us; supplier side: we owe them.
    if abs(float(balance)) < 0.005:
        return "KAPALI"
    return "BORÇLU" if balance > 0 else "ALACAKLI"


TURKISH_ALPHABET = "abcçdefgğhıijklmnoöpqrsştuüvwxyz"
_ALPHABET_POS = {ch: i for i, ch in enumerate(TURKISH_ALPHABET)}


def turkish_lower(text: Any) -> str:
    """Lowercase with the dotted/dotless I pairs: I -> ı, İ -> i."""
    return str(text or "").replace("I", "ı").replace("İ", "i").lower()


def turkish_sort_key(text: Any) -> tuple:
    """Collation key in Turkish alphabet order, ignoring case (Ç after C, İ after I)."""
    key = []
    for ch in turkish_lower(text):
        pos = _ALPHABET_POS.get(ch)
        # Digits, spaces and punctuation sort before letters.
        key.append((1, pos) if pos is not None else (0, ord(ch)))
    return tuple(key)

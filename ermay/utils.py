from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any, Optional


def iso_today() -> str:
    return date.today().isoformat()


def iso_now() -> str:
    # Use UTC ISO timestamps for consistency.
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def safe_div(n: float, d: float) -> float:
    return float(n) / float(d) if d else 0.0


def clean_str(v: Any) -> Optional[str]:
    """Strip text input; empty strings become None."""
    if v is None:
        return None
    s = str(v).strip()
    return s if s else None


def to_iso_date(v: Any, *, field: str = "Tarih") -> str:
    """Accept date/datetime/ISO string, return YYYY-MM-DD."""
    if isinstance(v, datetime):
        return v.date().isoformat()
    if isinstance(v, date):
        return v.isoformat()
    s = clean_str(v)
    if not s:
        raise ValueError(f"{field} zorunludur.")
    try:
        return date.fromisoformat(s[:10]).isoformat()
    except ValueError:
        raise ValueError(f"{field} geçersiz: {s}")


def to_optional_iso_date(v: Any, *, field: str = "Tarih") -> Optional[str]:
    if v is None or (isinstance(v, str) and not v.strip()):
        return None
    return to_iso_date(v, field=field)


def is_number(v: Any) -> bool:
    if isinstance(v, bool):
        return False
    try:
        f = float(v)
    except (TypeError, ValueError):
        return False
    return not math.isnan(f) and not math.isinf(f)


def positive_amount(v: Any, *, field: str = "Tutar") -> float:
    if not is_number(v):
        raise ValueError(f"{field} sayı olmalıdır.")
    f = round(float(v), 2)
    if f <= 0:
        raise ValueError(f"{field} sıfırdan büyük olmalıdır.")
    return f


def optional_number(v: Any, *, field: str) -> Optional[float]:
    if v is None or (isinstance(v, str) and not v.strip()):
        return None
    if not is_number(v):
        raise ValueError(f"{field} sayı olmalıdır.")
    return float(v)

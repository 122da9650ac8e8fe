from __future__ import annotations

from typing import Optional

from sales_core.records import PLACEHOLDER


def fmt_money(value: Optional[float]) -> str:
    """es-MX style currency: ``$1,234.50``; negatives as ``-$1,234.50``."""
    if value is None:
        return PLACEHOLDER
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(float(value)):,.2f}"


def fmt_int(value: Optional[float]) -> str:
    if value is None:
        return PLACEHOLDER
    return f"{float(value):,.0f}"


def fmt_pct(value: Optional[float], decimals: int = 1) -> str:
    if value is None:
        return PLACEHOLDER
    return f"{float(value):.{decimals}f}%"

"""Pure money / ratio helpers used by reconciliation and the spend matcher."""
from __future__ import annotations

from typing import Any

from affiliate_orders.config import MONEY_TOLERANCE


def safe_div(numerator: float | int, denominator: float | int) -> float:
    if denominator in (0, 0.0):
        return 0.0
    return float(numerator) / float(denominator)


def money_differs(stored: float | None, fresh: float | None, tolerance: float | None = None) -> bool:
    """True when two money values differ by strictly more than the tolerance."""
    tol = MONEY_TOLERANCE if tolerance is None else tolerance
    return abs(float(stored or 0.0) - float(fresh or 0.0)) > tol


def to_money(value: Any) -> float:
    """Coerce a partner amount to a non-negative float; unparseable or negative → 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(str(value).replace(",", "").strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return 0.0
    if amount != amount or amount < 0:  # NaN or negative
        return 0.0
    return amount


__all__ = ["safe_div", "money_differs", "to_money"]

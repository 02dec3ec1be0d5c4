"""Pure (year, month) arithmetic used for historical windows."""

from __future__ import annotations

from typing import List, Tuple

YearMonth = Tuple[int, int]


def subtract_months(year: int, month: int, count: int) -> YearMonth:
    """Return the (year, month) that lies ``count`` months before ``(year, month)``."""
    target_year = year
    target_month = month - count
    while target_month <= 0:
        target_month += 12
        target_year -= 1
    return target_year, target_month


def months_before(year: int, month: int, count: int) -> List[YearMonth]:
    """Return the ``count`` months preceding ``(year, month)``, newest first."""
    return [subtract_months(year, month, offset) for offset in range(1, count + 1)]


def month_index(year: int, month: int) -> int:
    """Linear month number, handy for ordering and distance checks."""
    return year * 12 + month


__all__ = ["YearMonth", "month_index", "months_before", "subtract_months"]

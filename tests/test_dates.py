"""Tests for summnir.dates."""

from __future__ import annotations

import pytest

from summnir.dates import month_index, months_before, subtract_months


@pytest.mark.parametrize(
    ("year", "month", "count", "expected"),
    [
        (2024, 5, 1, (2024, 4)),
        (2024, 1, 1, (2023, 12)),
        (2024, 3, 15, (2022, 12)),
        (2024, 12, 24, (2022, 12)),
        (2024, 6, 0, (2024, 6)),
    ],
)
def test_subtract_months_rolls_over_years(year, month, count, expected) -> None:
    assert subtract_months(year, month, count) == expected


def test_months_before_is_newest_first() -> None:
    assert months_before(2024, 2, 3) == [(2024, 1), (2023, 12), (2023, 11)]


def test_months_before_long_window_is_strictly_decreasing() -> None:
    window = months_before(2024, 3, 18)

    assert len(window) == 18
    assert window[0] == (2024, 2)
    assert window[-1] == (2022, 9)
    indices = [month_index(year, month) for year, month in window]
    assert indices == list(range(month_index(2024, 2), month_index(2022, 9) - 1, -1))
    assert all(1 <= month <= 12 for _, month in window)

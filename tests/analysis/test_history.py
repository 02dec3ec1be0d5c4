"""Tests for the historical window resolver."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from summnir.analysis.history import read_history, resolve_month_count, resolve_window
from summnir.analysis.parameters import Parameter
from summnir.errors import UnresolvedReferenceError


def _number(value) -> Parameter:
    return Parameter(type="number", value=value, default=None, required=False, description="")


def test_window_crosses_year_boundary() -> None:
    assert resolve_window(2024, 2, 3) == [(2024, 1), (2023, 12), (2023, 11)]


@pytest.mark.parametrize("count", [0, -2])
def test_window_of_zero_or_less_is_empty(count: int) -> None:
    assert resolve_window(2024, 6, count) == []


def test_month_count_defaults_to_one() -> None:
    assert resolve_month_count(None, {}) == 1


def test_month_count_literal() -> None:
    assert resolve_month_count(4, {}) == 4


def test_month_count_from_parameter() -> None:
    assert resolve_month_count("${parameters.historyMonths}", {"historyMonths": _number(2)}) == 2


def test_month_count_from_string_valued_parameter() -> None:
    assert resolve_month_count("${parameters.historyMonths}", {"historyMonths": _number("3")}) == 3


def test_month_count_unresolvable_reference() -> None:
    with pytest.raises(UnresolvedReferenceError):
        resolve_month_count("${parameters.historyMonths}", {})


def test_month_count_non_parameter_reference() -> None:
    with pytest.raises(UnresolvedReferenceError):
        resolve_month_count("${env.DEPTH}", {})


def test_read_history_collects_each_period_and_tolerates_gaps(tmp_path: Path) -> None:
    base = tmp_path / "summary"
    (base / "team" / "2024" / "1").mkdir(parents=True)
    (base / "team" / "2024" / "1" / "summary.md").write_text("January", encoding="utf-8")
    (base / "team" / "2023" / "11").mkdir(parents=True)
    (base / "team" / "2023" / "11" / "summary.md").write_text("November", encoding="utf-8")

    periods = read_history(str(base), "team", 2024, 2, 3, "summary.md")

    assert [(period.year, period.month) for period in periods] == [
        (2024, 1),
        (2023, 12),
        (2023, 11),
    ]
    assert list(periods[0].files.values()) == ["January"]
    assert periods[1].files == {}
    assert list(periods[2].files) == [
        os.path.join(str(base), "team", "2023", "11", "summary.md")
    ]


def test_read_history_without_sub_directory(tmp_path: Path) -> None:
    base = tmp_path / "summary"
    (base / "2023" / "12").mkdir(parents=True)
    (base / "2023" / "12" / "summary.md").write_text("December", encoding="utf-8")

    periods = read_history(str(base), None, 2024, 1, 1)

    assert list(periods[0].files.values()) == ["December"]

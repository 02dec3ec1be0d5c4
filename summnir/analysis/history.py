"""Historical window resolution across month and year boundaries."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from ..dates import YearMonth, months_before
from ..errors import FileCollectionError, UnresolvedReferenceError
from ..logging import get_logger
from ..storage import Storage
from .config_loader import MonthsSetting
from .files import FileContents, collect_files
from .parameters import Parameter, parse_months_reference

DEFAULT_WINDOW_MONTHS = 1


@dataclass(frozen=True)
class HistoryPeriod:
    """Files found for one (year, month) of a window."""

    year: int
    month: int
    files: FileContents


def resolve_window(reference_year: int, reference_month: int, month_count: int) -> List[YearMonth]:
    """Return the ``month_count`` months before the reference month, newest first."""
    if month_count <= 0:
        return []
    return months_before(reference_year, reference_month, month_count)


def resolve_month_count(months: MonthsSetting, parameters: Mapping[str, Parameter]) -> int:
    """Turn a configured ``months`` value into a concrete window size."""
    if months is None:
        return DEFAULT_WINDOW_MONTHS
    if isinstance(months, int) and not isinstance(months, bool):
        return months
    name = parse_months_reference(months)
    if name is None:
        raise UnresolvedReferenceError(f"Cannot resolve months reference {months!r}")
    parameter = parameters.get(name)
    if parameter is None or parameter.value is None:
        raise UnresolvedReferenceError(
            f"Parameter {name} referenced in months has no resolved value"
        )
    try:
        return int(parameter.value)
    except (TypeError, ValueError) as exc:
        raise UnresolvedReferenceError(
            f"Parameter {name} referenced in months is not a number: {parameter.value!r}"
        ) from exc


def read_history(
    base_directory: str,
    sub_directory: Optional[str],
    reference_year: int,
    reference_month: int,
    month_count: int,
    pattern: Optional[str] = None,
    *,
    storage: Storage | None = None,
    logger: logging.Logger | None = None,
) -> List[HistoryPeriod]:
    """Collect files for each month of the window.

    A period whose directory is missing or unreadable contributes nothing
    rather than failing the window.
    """
    logger = logger or get_logger("analysis.history")
    periods: List[HistoryPeriod] = []
    for year, month in resolve_window(reference_year, reference_month, month_count):
        history_path = os.path.join(base_directory, sub_directory or "", str(year), str(month))
        logger.debug("Reading historical data from %s with pattern %s", history_path, pattern)
        try:
            files = collect_files(history_path, pattern, storage=storage, logger=logger)
        except FileCollectionError as exc:
            logger.warning("Could not read historical data for %s-%s: %s", year, month, exc)
            files = {}
        periods.append(HistoryPeriod(year=year, month=month, files=files))
    return periods


__all__ = [
    "DEFAULT_WINDOW_MONTHS",
    "HistoryPeriod",
    "read_history",
    "resolve_month_count",
    "resolve_window",
]

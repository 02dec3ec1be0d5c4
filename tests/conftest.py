from __future__ import annotations

import logging
from pathlib import Path

import pytest

from tests._fixtures.job_builder import JobBuilder


@pytest.fixture
def job_builder(tmp_path: Path) -> JobBuilder:
    """Provide a workspace builder rooted at the pytest tmp_path."""
    return JobBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _reset_summnir_logger():
    """Undo configure_logging so caplog keeps seeing records between tests."""
    yield
    logger = logging.getLogger("summnir")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)

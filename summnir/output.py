"""Write generated artefacts under ``<summary-dir>/<year>/<month>/``."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .constants import DEFAULT_CHARACTER_ENCODING
from .logging import get_logger
from .storage import Storage


def output_path(base_directory: str | Path, year: int, month: int, pattern: str) -> Path:
    """Location of an output file; months are not zero padded."""
    return Path(base_directory) / str(year) / str(month) / pattern


def write_output_file(
    base_directory: str | Path,
    year: int,
    month: int,
    pattern: str,
    content: Any,
    *,
    storage: Storage | None = None,
    logger: logging.Logger | None = None,
) -> Path:
    """Write ``content`` as text, or as indented JSON when it is not a string."""
    storage = storage or Storage()
    logger = logger or get_logger("output")
    path = output_path(base_directory, year, month, pattern)
    storage.create_directory(path.parent)
    if isinstance(content, str):
        data = content
    else:
        data = json.dumps(content, indent=2, default=str)
    storage.write_file(path, data, DEFAULT_CHARACTER_ENCODING)
    logger.info("Output written to %s", path)
    return path


__all__ = ["output_path", "write_output_file"]

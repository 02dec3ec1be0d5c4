"""Collect the text of every file matching a glob under a directory."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Optional

from ..constants import DEFAULT_CHARACTER_ENCODING, DEFAULT_FILE_PATTERN
from ..errors import FileCollectionError
from ..logging import get_logger
from ..storage import Storage

FileContents = Dict[str, str]


def collect_files(
    directory: str | Path,
    pattern: Optional[str] = None,
    *,
    storage: Storage | None = None,
    logger: logging.Logger | None = None,
) -> FileContents:
    """Return ``{path: text}`` for files under ``directory`` matching ``pattern``.

    Keys are ``directory`` joined with the matched relative path and follow
    discovery order. Unreadable files are logged and left out; only a
    directory that cannot be listed raises ``FileCollectionError``.
    """
    storage = storage or Storage()
    logger = logger or get_logger("analysis.files")
    file_pattern = pattern or DEFAULT_FILE_PATTERN

    try:
        matches = storage.list_matching_files(directory, file_pattern)
    except OSError as exc:
        raise FileCollectionError(
            f"Unable to list {directory} with pattern {file_pattern}: {exc}"
        ) from exc

    contents: FileContents = {}
    for relative in matches:
        file_path = os.path.join(str(directory), relative)
        try:
            logger.debug("Reading file %s", file_path)
            contents[file_path] = storage.read_file(file_path, DEFAULT_CHARACTER_ENCODING)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read file %s: %s", file_path, exc)
    return contents


__all__ = ["FileContents", "collect_files"]

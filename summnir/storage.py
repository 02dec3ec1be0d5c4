"""Filesystem access for summnir, isolated so tests can substitute it."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

from .constants import DEFAULT_CHARACTER_ENCODING
from .logging import get_logger


class Storage:
    """Local filesystem capability set used by the loaders and collectors."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or get_logger("storage")

    def exists(self, path: str | Path) -> bool:
        return Path(path).exists()

    def is_directory(self, path: str | Path) -> bool:
        if not Path(path).is_dir():
            self.logger.debug("%s is not a directory", path)
            return False
        return True

    def is_file(self, path: str | Path) -> bool:
        if not Path(path).is_file():
            self.logger.debug("%s is not a file", path)
            return False
        return True

    def is_readable(self, path: str | Path) -> bool:
        if not os.access(path, os.R_OK):
            self.logger.debug("%s is not readable", path)
            return False
        return True

    def is_writable(self, path: str | Path) -> bool:
        if not os.access(path, os.W_OK):
            self.logger.debug("%s is not writable", path)
            return False
        return True

    def is_file_readable(self, path: str | Path) -> bool:
        return self.exists(path) and self.is_file(path) and self.is_readable(path)

    def is_directory_readable(self, path: str | Path) -> bool:
        return self.exists(path) and self.is_directory(path) and self.is_readable(path)

    def is_directory_writable(self, path: str | Path) -> bool:
        return self.exists(path) and self.is_directory(path) and self.is_writable(path)

    def create_directory(self, path: str | Path) -> None:
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RuntimeError(f"Failed to create directory {path}: {exc}") from exc

    def read_file(self, path: str | Path, encoding: str = DEFAULT_CHARACTER_ENCODING) -> str:
        return Path(path).read_text(encoding=encoding)

    def write_file(
        self, path: str | Path, data: str, encoding: str = DEFAULT_CHARACTER_ENCODING
    ) -> None:
        Path(path).write_text(data, encoding=encoding)

    def list_matching_files(self, directory: str | Path, pattern: str) -> List[str]:
        """Return sorted POSIX paths relative to ``directory`` for files matching ``pattern``.

        Directories are never returned. Raises ``FileNotFoundError`` or
        ``NotADirectoryError`` when ``directory`` cannot be listed.
        """
        root = Path(directory)
        if not root.exists():
            raise FileNotFoundError(f"Directory does not exist: {root}")
        if not root.is_dir():
            raise NotADirectoryError(f"Not a directory: {root}")
        matches = {
            candidate.relative_to(root).as_posix()
            for candidate in root.glob(pattern)
            if candidate.is_file()
        }
        return sorted(matches)


__all__ = ["Storage"]

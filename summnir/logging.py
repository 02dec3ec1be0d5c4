"""Logging utilities for summnir runs."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "summnir"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the summnir hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, debug: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the summnir logger once per process, before any component runs."""
    level = logging.DEBUG if (verbose or debug) else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when main() is invoked repeatedly.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    if debug:
        console_format = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    else:
        console_format = "%(levelname)s: %(message)s"
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter(console_format))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]

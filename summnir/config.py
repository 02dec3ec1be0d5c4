"""Program settings (<config-dir>/config.yaml merged with CLI flags) and job arguments."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .constants import (
    ALLOWED_MODELS,
    DEFAULT_ACTIVITY_DIR,
    DEFAULT_CONFIG_DIR,
    DEFAULT_CONTEXT_DIR,
    DEFAULT_HISTORY_MONTHS,
    DEFAULT_SUMMARY_DIR,
    DEFAULT_SUMMARY_MONTHS,
    PROGRAM_CONFIG_FILE,
)
from .errors import ArgumentError, ConfigParseError
from .storage import Storage

# config.yaml keys (camelCase, as written by users) -> RunConfig attributes
_FILE_KEYS: Dict[str, str] = {
    "dryRun": "dry_run",
    "verbose": "verbose",
    "debug": "debug",
    "model": "model",
    "contextDirectory": "context_directory",
    "activityDirectory": "activity_directory",
    "summaryDirectory": "summary_directory",
    "replace": "replace",
}

_JOB_KEYS: Dict[str, str] = {
    "job": "job",
    "year": "year",
    "month": "month",
    "historyMonths": "history_months",
    "summaryMonths": "summary_months",
}


@dataclass(frozen=True)
class RunConfig:
    """Settings for one invocation of the tool."""

    dry_run: bool = False
    verbose: bool = False
    debug: bool = False
    # overrides the job's model when set
    model: Optional[str] = None
    config_directory: str = DEFAULT_CONFIG_DIR
    context_directory: str = DEFAULT_CONTEXT_DIR
    activity_directory: str = DEFAULT_ACTIVITY_DIR
    summary_directory: str = DEFAULT_SUMMARY_DIR
    replace: bool = False

    def job_directory(self, job: str) -> Path:
        return Path(self.config_directory) / job


@dataclass(frozen=True)
class JobConfig:
    """Identifies one job run: what to summarise and how far back to look."""

    job: str
    year: int
    month: int
    history_months: int = DEFAULT_HISTORY_MONTHS
    summary_months: int = DEFAULT_SUMMARY_MONTHS

    def parameter_values(self, history_months: int, summary_months: int) -> Dict[str, int]:
        """Values supplied to the job's declared parameters for one build."""
        return {
            "year": self.year,
            "month": self.month,
            "historyMonths": history_months,
            "summaryMonths": summary_months,
        }


def load_program_file(config_directory: str | Path) -> Dict[str, Any]:
    """Read ``<config-dir>/config.yaml``; a missing file yields an empty mapping."""
    path = Path(config_directory).expanduser() / PROGRAM_CONFIG_FILE
    if not path.is_file():
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ConfigParseError(f"Failed to decode {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigParseError(f"Failed to parse {path}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigParseError(f"{path} must contain a mapping at the root")
    return loaded


def load_run_config(
    cli_values: Mapping[str, Any], file_values: Mapping[str, Any] | None = None
) -> RunConfig:
    """Merge defaults, file values and CLI values, in increasing precedence.

    ``cli_values`` uses RunConfig attribute names; entries set to None are
    treated as "not given". When ``file_values`` is omitted the program file
    is read from the config directory named on the command line.
    """
    if file_values is None:
        file_values = load_program_file(cli_values.get("config_directory") or DEFAULT_CONFIG_DIR)
    config = RunConfig()
    overrides: Dict[str, Any] = {}
    for file_key, attribute in _FILE_KEYS.items():
        value = (file_values or {}).get(file_key)
        if value is not None:
            overrides[attribute] = _coerce(attribute, value)
    known = {item.name for item in fields(RunConfig)}
    for attribute, value in cli_values.items():
        if attribute in known and value is not None:
            overrides[attribute] = _coerce(attribute, value)
    return replace(config, **overrides)


def parse_job_arguments(
    job: Optional[str],
    year: Any,
    month: Any,
    history_months: Any = None,
    summary_months: Any = None,
    *,
    file_values: Mapping[str, Any] | None = None,
) -> JobConfig:
    """Validate positional job arguments, falling back to the config file's ``job`` block."""
    defaults = _job_defaults(file_values or {})
    job = job or defaults.get("job")
    year = year if year is not None else defaults.get("year")
    month = month if month is not None else defaults.get("month")
    if history_months is None:
        history_months = defaults.get("history_months")
    if summary_months is None:
        summary_months = defaults.get("summary_months")

    if not job:
        raise ArgumentError("job", "Job is required")
    if year is None:
        raise ArgumentError("year", "Year is required")
    if month is None:
        raise ArgumentError("month", "Month is required")

    year_number = _as_int(year)
    if year_number is None or not 1900 <= year_number <= 2100:
        raise ArgumentError("year", "Year must be a valid number between 1900 and 2100")
    month_number = _as_int(month)
    if month_number is None or not 1 <= month_number <= 12:
        raise ArgumentError("month", "Month must be a valid number between 1 and 12")

    history = DEFAULT_HISTORY_MONTHS
    if history_months is not None:
        history = _positive("historyMonths", history_months, "History months")
    summary = DEFAULT_SUMMARY_MONTHS
    if summary_months is not None:
        summary = _positive("summaryMonths", summary_months, "Summary months")

    return JobConfig(
        job=str(job),
        year=year_number,
        month=month_number,
        history_months=history,
        summary_months=summary,
    )


def validate_run_config(config: RunConfig, storage: Storage | None = None) -> None:
    """Check directories and the model before any job work starts."""
    storage = storage or Storage()
    if not storage.is_directory_readable(config.config_directory):
        raise ArgumentError(
            "--config-dir", f"Config directory does not exist: {config.config_directory}"
        )
    for flag, directory in (
        ("--context-directory", config.context_directory),
        ("--activity-directory", config.activity_directory),
    ):
        if not storage.is_directory_readable(directory):
            raise ArgumentError(flag, f"Input directory does not exist: {directory}")
    if not storage.is_directory_writable(config.summary_directory):
        raise ArgumentError(
            "--summary-directory",
            f"Output directory does not exist: {config.summary_directory}",
        )
    if config.model is not None and config.model not in ALLOWED_MODELS:
        raise ArgumentError(
            "--model",
            f"Invalid model: {config.model}. Valid models are: {', '.join(ALLOWED_MODELS)}",
        )


def _job_defaults(file_values: Mapping[str, Any]) -> Dict[str, Any]:
    job_block = file_values.get("job")
    if not isinstance(job_block, dict):
        return {}
    return {
        attribute: job_block[key]
        for key, attribute in _JOB_KEYS.items()
        if job_block.get(key) is not None
    }


def _coerce(attribute: str, value: Any) -> Any:
    if attribute in {"dry_run", "verbose", "debug", "replace"}:
        parsed = _as_bool(value)
        if parsed is None:
            raise ArgumentError(attribute, f"Invalid boolean for {attribute}: {value!r}")
        return parsed
    return str(value)


def _positive(argument: str, value: Any, label: str) -> int:
    number = _as_int(value)
    if number is None or number < 1:
        raise ArgumentError(argument, f"{label} must be a positive number")
    return number


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


__all__ = [
    "JobConfig",
    "RunConfig",
    "load_program_file",
    "load_run_config",
    "parse_job_arguments",
    "validate_run_config",
]

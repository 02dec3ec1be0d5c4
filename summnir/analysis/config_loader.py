"""Loading and validation of a job's config.yaml."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Literal, Mapping, Optional, Union

import yaml

from ..constants import DEFAULT_CHARACTER_ENCODING, JOB_CONFIG_FILE, JOB_REQUIRED_FILES
from ..errors import (
    ConfigNotFoundError,
    ConfigParseError,
    InvalidContextTypeError,
    InvalidFieldError,
    InvalidReferenceError,
    MissingFieldError,
)
from ..logging import get_logger
from ..storage import Storage
from .parameters import PARAMETER_TYPES, ParameterSpec, is_reference, parse_months_reference

CONTENT_TYPES = ("activity", "summary")

MonthsSetting = Union[int, str, None]


@dataclass(frozen=True)
class StaticContext:
    """Reference material read from a fixed directory under the context root."""

    name: str
    directory: str
    pattern: Optional[str] = None
    include: Optional[bool] = None
    type: Literal["static"] = "static"


@dataclass(frozen=True)
class HistoryContext:
    """Prior months of a content or output source, read across a window."""

    name: str
    source: str
    months: MonthsSetting = None
    include: Optional[bool] = None
    type: Literal["history"] = "history"


ContextSource = Union[StaticContext, HistoryContext]


@dataclass(frozen=True)
class ContentSource:
    """Primary material for the target month."""

    name: str
    type: Literal["activity", "summary"]
    directory: str = ""
    pattern: Optional[str] = None


@dataclass(frozen=True)
class OutputTarget:
    """A file the run produces, relative to the month's summary directory."""

    name: str
    pattern: str
    format: Optional[str] = None
    type: Optional[str] = None


@dataclass
class AnalysisConfig:
    """Validated contents of a job's config.yaml."""

    name: str
    directory: Path
    model: str
    temperature: Optional[float] = None
    max_completion_tokens: Optional[int] = None
    parameters: Dict[str, ParameterSpec] = field(default_factory=dict)
    context: Dict[str, ContextSource] = field(default_factory=dict)
    content: Dict[str, ContentSource] = field(default_factory=dict)
    output: Dict[str, OutputTarget] = field(default_factory=dict)
    raw: Dict[str, Any] = field(default_factory=dict)

    def history_source(self, key: str) -> ContentSource | OutputTarget | None:
        """Return the content entry named ``key``, falling back to the output entry."""
        if key in self.content:
            return self.content[key]
        return self.output.get(key)


def check_job_directory(job_directory: Path, storage: Storage | None = None) -> None:
    """Ensure the job directory exists and holds every required file."""
    storage = storage or Storage()
    if not storage.exists(job_directory):
        raise ConfigNotFoundError(
            str(job_directory),
            f"Configuration directory {job_directory} does not exist",
        )
    for filename in JOB_REQUIRED_FILES:
        required = job_directory / filename
        if not storage.exists(required):
            raise ConfigNotFoundError(
                str(required),
                f"Missing required file in {job_directory}: {filename}",
            )


def load_analysis_config(
    job_directory: Path, *, storage: Storage | None = None
) -> AnalysisConfig:
    """Load config.yaml from ``job_directory`` and validate it, failing on the first problem."""
    storage = storage or Storage()
    logger = get_logger("analysis.config")
    job_directory = Path(job_directory)
    check_job_directory(job_directory, storage)

    config_file = job_directory / JOB_CONFIG_FILE
    data = _read_yaml(config_file, storage)
    where = f"{config_file}"
    logger.debug("Loaded job config from %s", where)

    model = data.get("model")
    if not model:
        raise MissingFieldError("model", f"Missing required config property in {where}: model")
    for key in ("temperature", "maxCompletionTokens"):
        if data.get(key) is None:
            raise MissingFieldError(key, f"Missing required config property in {where}: {key}")

    parameters = _parse_parameters(_as_mapping(data, "parameters", where), where)
    content = _parse_content(_as_mapping(data, "content", where), where)
    output = _parse_output(_as_mapping(data, "output", where), where)
    context = _parse_context(
        _as_mapping(data, "context", where), parameters, content, output, where
    )

    return AnalysisConfig(
        name=job_directory.name,
        directory=job_directory,
        model=str(model),
        temperature=_as_float(data.get("temperature"), "temperature", where),
        max_completion_tokens=_as_int(
            data.get("maxCompletionTokens"), "maxCompletionTokens", where
        ),
        parameters=parameters,
        context=context,
        content=content,
        output=output,
        raw=data,
    )


def _read_yaml(path: Path, storage: Storage) -> Dict[str, Any]:
    try:
        text = storage.read_file(path, DEFAULT_CHARACTER_ENCODING)
    except UnicodeDecodeError as exc:
        raise ConfigParseError(f"Failed to decode {path}: {exc}") from exc
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigParseError(f"Failed to parse {path}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigParseError(f"{path} must contain a mapping at the root")
    return loaded


def _as_mapping(data: Mapping[str, Any], key: str, where: str) -> Dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigParseError(f"'{key}' in {where} must be a mapping")
    return value


def _entry(value: Any, section: str, key: str, where: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigParseError(f"{section} entry '{key}' in {where} must be a mapping")
    return value


def _parse_parameters(raw: Mapping[str, Any], where: str) -> Dict[str, ParameterSpec]:
    parameters: Dict[str, ParameterSpec] = {}
    for key, value in raw.items():
        entry = _entry(value, "Parameter", key, where)
        param_type = entry.get("type", "string")
        if param_type not in PARAMETER_TYPES:
            raise InvalidFieldError(
                f"parameters.{key}.type",
                f"Invalid type '{param_type}' for parameter {key} in {where} - "
                f"must be one of {', '.join(PARAMETER_TYPES)}",
            )
        parameters[str(key)] = ParameterSpec(
            type=param_type,
            default=entry.get("default"),
            description=str(entry.get("description") or ""),
            required=bool(entry.get("required", False)),
        )
    return parameters


def _parse_content(raw: Mapping[str, Any], where: str) -> Dict[str, ContentSource]:
    content: Dict[str, ContentSource] = {}
    for key, value in raw.items():
        entry = _entry(value, "Content", key, where)
        if not entry.get("name"):
            raise MissingFieldError(
                f"content.{key}.name",
                f"Missing required name property for content {key} in {where}",
            )
        content_type = entry.get("type")
        if content_type not in CONTENT_TYPES:
            raise InvalidFieldError(
                f"content.{key}.type",
                f"Invalid content type '{content_type}' for content {key} in {where} - "
                f"must be one of {', '.join(CONTENT_TYPES)}",
            )
        content[str(key)] = ContentSource(
            name=str(entry["name"]),
            type=content_type,
            directory=str(entry.get("directory") or ""),
            pattern=_relative_pattern(entry.get("pattern"), f"content.{key}.pattern", where),
        )
    return content


def _parse_output(raw: Mapping[str, Any], where: str) -> Dict[str, OutputTarget]:
    output: Dict[str, OutputTarget] = {}
    for key, value in raw.items():
        entry = _entry(value, "Output", key, where)
        if not entry.get("pattern"):
            raise MissingFieldError(
                f"output.{key}.pattern",
                f"Missing required pattern property for output {key} in {where}",
            )
        output[str(key)] = OutputTarget(
            name=str(entry.get("name") or key),
            pattern=_relative_pattern(entry["pattern"], f"output.{key}.pattern", where),
            format=_optional_str(entry.get("format")),
            type=_optional_str(entry.get("type")),
        )
    return output


def _parse_context(
    raw: Mapping[str, Any],
    parameters: Mapping[str, ParameterSpec],
    content: Mapping[str, ContentSource],
    output: Mapping[str, OutputTarget],
    where: str,
) -> Dict[str, ContextSource]:
    context: Dict[str, ContextSource] = {}
    for key, value in raw.items():
        entry = _entry(value, "Context", key, where)
        if not entry.get("name"):
            raise MissingFieldError(
                f"context.{key}.name",
                f"Missing required name property for context {key} in {where}",
            )
        include = entry.get("include")
        context_type = entry.get("type")
        if context_type == "static":
            if not entry.get("directory"):
                raise MissingFieldError(
                    f"context.{key}.directory",
                    f"Missing required directory property for static context {key} in {where}",
                )
            context[str(key)] = StaticContext(
                name=str(entry["name"]),
                directory=str(entry["directory"]),
                pattern=_relative_pattern(entry.get("pattern"), f"context.{key}.pattern", where),
                include=include if isinstance(include, bool) else None,
            )
        elif context_type == "history":
            source = entry.get("from")
            if not source:
                raise MissingFieldError(
                    f"context.{key}.from",
                    f"Missing required 'from' property for history context {key} in {where}",
                )
            if source not in content and source not in output:
                raise InvalidReferenceError(
                    f"History context {key} in {where} references '{source}', "
                    "which is not a content or output entry"
                )
            months = _validate_months(key, entry.get("months"), parameters, where)
            context[str(key)] = HistoryContext(
                name=str(entry["name"]),
                source=str(source),
                months=months,
                include=include if isinstance(include, bool) else None,
            )
        else:
            raise InvalidContextTypeError(
                f"Invalid context type '{context_type}' for context {key} in {where}"
            )
    return context


def _validate_months(
    key: str, months: Any, parameters: Mapping[str, ParameterSpec], where: str
) -> MonthsSetting:
    """Check a history ``months`` value; whole numbers come back as ``int``."""
    if months is None:
        return None
    if isinstance(months, float) and months.is_integer():
        months = int(months)
    is_number = isinstance(months, int) and not isinstance(months, bool)
    if not is_number and not is_reference(months):
        raise InvalidFieldError(
            f"context.{key}.months",
            f"Invalid months property for history context {key} in {where} - "
            "must be a whole number or parameter reference",
        )
    name = parse_months_reference(months)
    if name is None:
        return months
    spec = parameters.get(name)
    if spec is None:
        raise InvalidReferenceError(
            f"Parameter {name} referenced in months for history context {key} "
            "not found in config parameters"
        )
    if spec.type != "number":
        raise InvalidReferenceError(
            f"Parameter {name} referenced in months for history context {key} "
            "must be of type number"
        )
    if not spec.required and spec.default is None:
        raise InvalidReferenceError(
            f"Parameter {name} referenced in months for history context {key} "
            "must be required or have a default value"
        )
    return months


def _relative_pattern(value: Any, field_name: str, where: str) -> Optional[str]:
    pattern = _optional_str(value)
    if pattern is not None and Path(pattern).is_absolute():
        raise InvalidFieldError(
            field_name, f"Invalid {field_name} in {where} - pattern must be a relative path"
        )
    return pattern


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _as_float(value: Any, key: str, where: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidFieldError(key, f"Invalid {key} in {where} - must be a number")
    return float(value)


def _as_int(value: Any, key: str, where: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidFieldError(key, f"Invalid {key} in {where} - must be an integer")
    return value


__all__ = [
    "AnalysisConfig",
    "CONTENT_TYPES",
    "ContentSource",
    "ContextSource",
    "HistoryContext",
    "OutputTarget",
    "StaticContext",
    "check_job_directory",
    "load_analysis_config",
]

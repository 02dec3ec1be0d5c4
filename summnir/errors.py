"""Exception hierarchy shared across summnir components."""

from __future__ import annotations

from typing import Optional


class SummnirError(RuntimeError):
    """Base class for failures that should terminate a run with a message."""


class ConfigError(SummnirError):
    """Raised when a job configuration cannot be loaded or is invalid."""


class ConfigNotFoundError(ConfigError):
    """Raised when the job directory or one of its required files is missing."""

    def __init__(self, path: str, message: str | None = None) -> None:
        super().__init__(message or f"Configuration path does not exist: {path}")
        self.path = path


class ConfigParseError(ConfigError):
    """Raised when config.yaml is not parseable into the expected shape."""


class MissingFieldError(ConfigError):
    """Raised when a required configuration field is absent or empty."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class InvalidFieldError(ConfigError):
    """Raised when a configuration field carries a value of the wrong shape."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class InvalidContextTypeError(ConfigError):
    """Raised for context entries whose type is neither static nor history."""


class InvalidReferenceError(ConfigError):
    """Raised when a configuration entry references something that does not exist."""


class UnresolvedReferenceError(ConfigError):
    """Raised when a ${...} reference cannot be resolved against the parameters."""


class MissingParameterError(SummnirError):
    """Raised when a required parameter was not supplied."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Missing required parameter: {name}")
        self.name = name


class ArgumentError(SummnirError):
    """Raised when a command line argument or program setting is invalid."""

    def __init__(self, argument: str, message: str) -> None:
        super().__init__(message)
        self.argument = argument


class FileCollectionError(SummnirError):
    """Raised when a directory cannot be listed for file collection."""


class OutputExistsError(SummnirError):
    """Raised when the summary output already exists and replace was not requested."""


class GenerationError(SummnirError):
    """Raised when the model could not produce a summary."""


class RequestTooLargeError(SummnirError):
    """Raised when the model provider rejects a prompt for exceeding its token budget."""

    def __init__(
        self,
        message: str,
        *,
        limit: Optional[int] = None,
        requested: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.limit = limit
        self.requested = requested


class GenerationSkipped(Exception):
    """Signals a graceful no-op: there is nothing to summarise for this run."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


__all__ = [
    "ArgumentError",
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigParseError",
    "FileCollectionError",
    "GenerationError",
    "GenerationSkipped",
    "InvalidContextTypeError",
    "InvalidFieldError",
    "InvalidReferenceError",
    "MissingFieldError",
    "MissingParameterError",
    "OutputExistsError",
    "RequestTooLargeError",
    "SummnirError",
    "UnresolvedReferenceError",
]

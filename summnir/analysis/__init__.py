"""Job configuration, parameters and prompt assembly."""

from .config_loader import (
    AnalysisConfig,
    ContentSource,
    HistoryContext,
    OutputTarget,
    StaticContext,
    check_job_directory,
    load_analysis_config,
)
from .files import FileContents, collect_files
from .history import read_history, resolve_month_count, resolve_window
from .parameters import Parameter, ParameterSpec, Parameters, resolve_parameters, substitute
from .prompt import Inputs, Prompt, PromptAssembler, PromptMessage, persona_role
from .section import Section, parse_markdown, render_markdown, replace_parameters

__all__ = [
    "AnalysisConfig",
    "ContentSource",
    "FileContents",
    "HistoryContext",
    "Inputs",
    "OutputTarget",
    "Parameter",
    "ParameterSpec",
    "Parameters",
    "Prompt",
    "PromptAssembler",
    "PromptMessage",
    "Section",
    "StaticContext",
    "check_job_directory",
    "collect_files",
    "load_analysis_config",
    "parse_markdown",
    "persona_role",
    "read_history",
    "render_markdown",
    "replace_parameters",
    "resolve_month_count",
    "resolve_parameters",
    "resolve_window",
    "substitute",
]

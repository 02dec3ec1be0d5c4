"""Assemble persona, instructions, context and content into a prompt."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ..constants import (
    DEFAULT_CHARACTER_ENCODING,
    DEFAULT_MODEL,
    DEVELOPER_PERSONA_PREFIXES,
    JOB_INSTRUCTIONS_PROMPT_FILE,
    JOB_PERSONA_PROMPT_FILE,
    USER_PERSONA_MODELS,
)
from ..errors import ConfigParseError, FileCollectionError, InvalidReferenceError
from ..logging import get_logger
from ..storage import Storage
from .config_loader import (
    AnalysisConfig,
    ContentSource,
    HistoryContext,
    StaticContext,
)
from .files import collect_files
from .history import read_history, resolve_month_count
from .parameters import Parameters
from .section import Section, parse_markdown, render_markdown, replace_parameters


def persona_role(model: str) -> str:
    """Chat role that carries the persona for ``model``."""
    if model in USER_PERSONA_MODELS:
        return "user"
    if model.startswith(DEVELOPER_PERSONA_PREFIXES):
        return "developer"
    return "system"


@dataclass(frozen=True)
class PromptMessage:
    """Represents a single chat message for the model."""

    role: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class Prompt:
    """The four top-level sections of a generation request."""

    persona: Section
    instructions: Section
    context: Section
    content: Section

    def to_messages(self, model: str = DEFAULT_MODEL) -> List[PromptMessage]:
        """Format the prompt for ``model``.

        The persona goes in its own system or developer message where the
        model accepts one, otherwise it leads the single user message.
        """
        messages: List[PromptMessage] = []
        persona = render_markdown(self.persona, include_title=False)
        role = persona_role(model)
        if persona and role != "user":
            messages.append(PromptMessage(role=role, content=persona))
        user_parts = [
            persona if role == "user" else "",
            render_markdown(self.instructions, include_title=False),
            render_markdown(self.content),
            render_markdown(self.context),
        ]
        messages.append(
            PromptMessage(role="user", content="\n\n".join(part for part in user_parts if part))
        )
        return messages


@dataclass
class Inputs:
    """Everything one generation attempt sends to the model, plus provenance."""

    config: AnalysisConfig
    parameters: Parameters
    prompt: Prompt
    messages: List[PromptMessage]
    contributing_files: Dict[str, List[str]] = field(
        default_factory=lambda: {"context": [], "content": []}
    )
    model: Optional[str] = None

    @property
    def content_file_count(self) -> int:
        return len(self.contributing_files.get("content", []))

    def to_dict(self) -> Dict[str, object]:
        return {
            "job": self.config.name,
            "model": self.model or self.config.model,
            "config": self.config.raw,
            "parameters": {
                name: {
                    "type": parameter.type,
                    "value": parameter.value,
                    "default": parameter.default,
                    "required": parameter.required,
                    "description": parameter.description,
                }
                for name, parameter in self.parameters.items()
            },
            "messages": [message.to_dict() for message in self.messages],
            "contributingFiles": self.contributing_files,
        }


class PromptAssembler:
    """Builds prompt sections from a validated job config and resolved parameters."""

    def __init__(
        self,
        *,
        context_directory: str,
        activity_directory: str,
        summary_directory: str,
        storage: Storage | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.context_directory = context_directory
        self.activity_directory = activity_directory
        self.summary_directory = summary_directory
        self.storage = storage or Storage()
        self.logger = logger or get_logger("analysis.prompt")

    def assemble(
        self,
        config: AnalysisConfig,
        parameters: Parameters,
        year: int,
        month: int,
        *,
        model: str | None = None,
    ) -> Inputs:
        """Build the full prompt for ``year``/``month`` and report contributing files.

        ``model`` overrides the job's model, both for formatting the messages
        and for the request itself.
        """
        model = model or config.model
        persona = replace_parameters(self.generate_persona(config.directory), parameters)
        instructions = replace_parameters(
            self.generate_instructions(config.directory), parameters
        )

        context_files: List[str] = []
        content_files: List[str] = []
        context = self.generate_context(config, parameters, year, month, context_files)
        content = self.generate_content(config, year, month, content_files)

        prompt = Prompt(
            persona=persona,
            instructions=instructions,
            context=context,
            content=content,
        )
        return Inputs(
            config=config,
            parameters=parameters,
            prompt=prompt,
            messages=prompt.to_messages(model),
            contributing_files={"context": context_files, "content": content_files},
            model=model,
        )

    def generate_persona(self, job_directory: Path) -> Section:
        return self._read_template(job_directory / JOB_PERSONA_PROMPT_FILE, "Persona")

    def generate_instructions(self, job_directory: Path) -> Section:
        return self._read_template(job_directory / JOB_INSTRUCTIONS_PROMPT_FILE, "Instructions")

    def generate_context(
        self,
        config: AnalysisConfig,
        parameters: Parameters,
        year: int,
        month: int,
        contributing: List[str] | None = None,
    ) -> Section:
        contributing = contributing if contributing is not None else []
        context = Section("Context")
        for key, entry in config.context.items():
            if entry.include is False:
                self.logger.info("Skipping %s Context because it is not included", entry.name or key)
                continue
            if isinstance(entry, StaticContext):
                context = context.add(self.read_static_context(entry, contributing))
            elif isinstance(entry, HistoryContext):
                context = context.add(
                    self.read_history_context(entry, config, parameters, year, month, contributing)
                )
        return context

    def read_static_context(
        self, entry: StaticContext, contributing: List[str] | None = None
    ) -> Section:
        """Read a static context directory; a directory that cannot be read is fatal."""
        contributing = contributing if contributing is not None else []
        directory = os.path.join(self.context_directory, entry.directory)
        self.logger.debug(
            "Generating %s Context from %s with pattern %s", entry.name, directory, entry.pattern
        )
        try:
            contents = collect_files(
                directory, entry.pattern, storage=self.storage, logger=self.logger
            )
        except FileCollectionError:
            self.logger.warning("Could not read context directory %s", directory)
            raise

        section = Section(f"{entry.name} Context")
        for filename, text in contents.items():
            section = section.add(Section(filename, (text,)))
            contributing.append(filename)
        return section

    def read_history_context(
        self,
        entry: HistoryContext,
        config: AnalysisConfig,
        parameters: Parameters,
        year: int,
        month: int,
        contributing: List[str] | None = None,
    ) -> Section:
        """Read previous months of the content or output entry named by ``entry.source``."""
        contributing = contributing if contributing is not None else []
        source = config.history_source(entry.source)
        if source is None:
            raise InvalidReferenceError(
                f"Missing source {entry.source} for history context {entry.name}"
            )

        if isinstance(source, ContentSource):
            sub_directory = source.directory
            base_directory = (
                self.activity_directory if source.type == "activity" else self.summary_directory
            )
        else:
            # output targets live under the summary tree
            sub_directory = ""
            base_directory = self.summary_directory

        months = resolve_month_count(entry.months, parameters)
        periods = read_history(
            base_directory,
            sub_directory,
            year,
            month,
            months,
            source.pattern,
            storage=self.storage,
            logger=self.logger,
        )

        section = Section(f"{source.name or entry.source} Context")
        for period in periods:
            for filename, text in period.files.items():
                section = section.add(Section(filename, (text,)))
                contributing.append(filename)
        return section

    def generate_content(
        self,
        config: AnalysisConfig,
        year: int,
        month: int,
        contributing: List[str] | None = None,
    ) -> Section:
        contributing = contributing if contributing is not None else []
        content = Section("Content")
        count = 0
        for key, entry in config.content.items():
            base_directory = (
                self.summary_directory if entry.type == "summary" else self.activity_directory
            )
            directory = os.path.join(base_directory, entry.directory, str(year), str(month))
            self.logger.debug(
                "Generating %s Content from %s with pattern %s",
                entry.name or key,
                directory,
                entry.pattern,
            )
            try:
                contents = collect_files(
                    directory, entry.pattern, storage=self.storage, logger=self.logger
                )
            except FileCollectionError as exc:
                self.logger.warning("No %s content for %s-%s: %s", entry.name, year, month, exc)
                contents = {}

            section = Section(f"{entry.name} Content")
            for filename, text in contents.items():
                section = section.add(Section(filename, (text,)))
                contributing.append(filename)
                count += 1
            content = content.add(section)

        if count == 0:
            self.logger.warning("No contributing files found for %s", config.name)
        return content

    def _read_template(self, path: Path, title: str) -> Section:
        try:
            text = self.storage.read_file(path, DEFAULT_CHARACTER_ENCODING)
        except UnicodeDecodeError as exc:
            raise ConfigParseError(f"Failed to decode {path}: {exc}") from exc
        return parse_markdown(text, title)


__all__ = ["Inputs", "Prompt", "PromptAssembler", "PromptMessage", "persona_role"]

"""End-to-end tests for prompt assembly."""

from __future__ import annotations

import os

import pytest

from summnir.analysis.config_loader import load_analysis_config
from summnir.analysis.parameters import resolve_parameters
from summnir.analysis.prompt import Prompt, PromptAssembler, persona_role
from summnir.analysis.section import Section
from summnir.errors import ConfigParseError, FileCollectionError
from tests._fixtures.job_builder import JobBuilder


def _assembler(job_builder: JobBuilder) -> PromptAssembler:
    return PromptAssembler(
        context_directory=str(job_builder.context_directory),
        activity_directory=str(job_builder.activity_directory),
        summary_directory=str(job_builder.summary_directory),
    )


def _assemble(
    job_builder: JobBuilder,
    year: int = 2024,
    month: int = 3,
    history: int = 1,
    summary: int = 1,
    model: str | None = None,
):
    config = load_analysis_config(job_builder.config_directory / "team")
    parameters = resolve_parameters(
        config.parameters,
        {"year": year, "month": month, "historyMonths": history, "summaryMonths": summary},
    )
    return _assembler(job_builder).assemble(config, parameters, year, month, model=model)


def test_single_activity_file_produces_one_content_entry(job_builder: JobBuilder) -> None:
    job_builder.job()
    job_builder.context({"team/roster.md": "Ana, Bo"})
    job_builder.activity({"work/2024/3/log.md": "Shipped the importer"})

    inputs = _assemble(job_builder)

    content = inputs.prompt.content
    assert content.title == "Content"
    (activity,) = content.subsections
    assert activity.title == "Activity Content"
    log_path = os.path.join(str(job_builder.activity_directory), "work", "2024", "3", "log.md")
    assert [section.title for section in activity.subsections] == [log_path]
    assert activity.subsections[0].items == ("Shipped the importer",)
    assert inputs.content_file_count == 1
    assert inputs.contributing_files["content"] == [log_path]
    assert inputs.contributing_files["context"] == [
        os.path.join(str(job_builder.context_directory), "team", "roster.md")
    ]


def test_messages_split_persona_from_user_content(job_builder: JobBuilder) -> None:
    job_builder.job()
    job_builder.context({"team/roster.md": "Ana, Bo"})
    job_builder.activity({"work/2024/3/log.md": "Shipped the importer"})

    inputs = _assemble(job_builder)

    system, user = inputs.messages
    assert system.role == "system"
    assert system.content == "You are a careful writer of monthly team summaries."
    assert user.role == "user"
    assert user.content.startswith("Summarise 2024-3.")
    assert "## Activity Content" in user.content
    assert "Shipped the importer" in user.content
    assert "## Background Context" in user.content
    assert user.content.index("# Content") < user.content.index("# Context")


def test_history_reads_previous_months_from_both_roots(job_builder: JobBuilder) -> None:
    job_builder.job()
    job_builder.context({"team/roster.md": "Ana, Bo"})
    job_builder.activity(
        {
            "work/2024/3/log.md": "March work",
            "work/2024/2/log.md": "February work",
            "work/2024/1/log.md": "January work",
        }
    )
    job_builder.summary({"2024/2/summary.md": "February summary"})

    inputs = _assemble(job_builder, history=2, summary=1)

    titles = [section.title for section in inputs.prompt.context.subsections]
    assert titles == ["Background Context", "Summary Context", "Activity Context"]
    previous = inputs.prompt.context.subsections[1]
    assert [section.items for section in previous.subsections] == [("February summary",)]
    recent = inputs.prompt.context.subsections[2]
    assert [section.items for section in recent.subsections] == [
        ("February work",),
        ("January work",),
    ]
    assert inputs.content_file_count == 1


def test_zero_history_months_reads_no_history(job_builder: JobBuilder) -> None:
    job_builder.job()
    job_builder.context({"team/roster.md": "Ana, Bo"})
    job_builder.activity({"work/2024/3/log.md": "March", "work/2024/2/log.md": "February"})

    inputs = _assemble(job_builder, history=0, summary=0)

    recent = inputs.prompt.context.subsections[2]
    assert recent.subsections == []


def test_missing_content_directory_yields_zero_count(job_builder: JobBuilder) -> None:
    job_builder.job()
    job_builder.context({"team/roster.md": "Ana, Bo"})

    inputs = _assemble(job_builder)

    assert inputs.content_file_count == 0
    assert inputs.prompt.content.subsections[0].subsections == []


def test_missing_static_context_directory_is_fatal(job_builder: JobBuilder) -> None:
    job_builder.job()
    job_builder.activity({"work/2024/3/log.md": "March"})

    with pytest.raises(FileCollectionError):
        _assemble(job_builder)


def test_excluded_context_is_skipped(job_builder: JobBuilder) -> None:
    job_builder.job(
        config="""
model: gpt-4o
temperature: 0.7
maxCompletionTokens: 4000
context:
  background:
    type: static
    name: Background
    directory: team
    include: false
content:
  activity:
    type: activity
    name: Activity
    directory: work
"""
    )
    job_builder.activity({"work/2024/3/log.md": "March"})

    inputs = _assemble(job_builder)

    assert inputs.prompt.context.subsections == []
    assert inputs.contributing_files["context"] == []


def test_summary_content_reads_from_summary_root(job_builder: JobBuilder) -> None:
    job_builder.job(
        config="""
model: gpt-4o
temperature: 0.7
maxCompletionTokens: 4000
content:
  monthly:
    type: summary
    name: Team Summaries
    directory: teams
"""
    )
    job_builder.summary({"teams/2024/3/a.md": "Team A"})

    inputs = _assemble(job_builder)

    assert inputs.content_file_count == 1
    assert inputs.prompt.content.subsections[0].title == "Team Summaries Content"


def test_inputs_snapshot_is_serialisable(job_builder: JobBuilder) -> None:
    job_builder.job()
    job_builder.context({"team/roster.md": "Ana, Bo"})
    job_builder.activity({"work/2024/3/log.md": "March"})

    snapshot = _assemble(job_builder).to_dict()

    assert snapshot["job"] == "team"
    assert snapshot["parameters"]["year"]["value"] == 2024
    assert snapshot["parameters"]["historyMonths"]["default"] == 1
    assert snapshot["messages"][0]["role"] == "system"
    assert len(snapshot["contributingFiles"]["content"]) == 1


@pytest.mark.parametrize(
    ("model", "role"),
    [
        ("gpt-4o", "system"),
        ("gpt-4o-mini", "system"),
        ("o1-mini", "user"),
        ("o1-preview", "user"),
        ("o1-preview-2024-09-12", "user"),
        ("o1-pro", "developer"),
        ("o3-mini", "developer"),
    ],
)
def test_persona_role_follows_model_family(model: str, role: str) -> None:
    assert persona_role(model) == role


def test_o1_mini_gets_persona_inside_single_user_message() -> None:
    prompt = Prompt(
        persona=Section("Persona", ("Be concise.",)),
        instructions=Section("Instructions", ("Summarise March.",)),
        context=Section("Context"),
        content=Section("Content", (Section("Activity Content", ("did things",)),)),
    )

    (message,) = prompt.to_messages("o1-mini")

    assert message.role == "user"
    assert message.content.startswith("Be concise.\n\nSummarise March.")
    assert "did things" in message.content


def test_o3_mini_gets_developer_persona() -> None:
    prompt = Prompt(
        persona=Section("Persona", ("Be concise.",)),
        instructions=Section("Instructions", ("Summarise March.",)),
        context=Section("Context"),
        content=Section("Content"),
    )

    roles = [message.role for message in prompt.to_messages("o3-mini")]

    assert roles == ["developer", "user"]


def test_model_override_formats_messages_and_is_recorded(job_builder: JobBuilder) -> None:
    job_builder.job()
    job_builder.context({"team/roster.md": "Ana, Bo"})
    job_builder.activity({"work/2024/3/log.md": "Shipped the importer"})

    default = _assemble(job_builder)
    overridden = _assemble(job_builder, model="o1-mini")

    assert default.model == "gpt-4o"
    assert [message.role for message in default.messages] == ["system", "user"]
    assert overridden.model == "o1-mini"
    assert [message.role for message in overridden.messages] == ["user"]
    assert overridden.to_dict()["model"] == "o1-mini"


def test_undecodable_template_is_a_parse_error(job_builder: JobBuilder) -> None:
    job_directory = job_builder.job()
    (job_directory / "persona.md").write_bytes(b"\xff\xfe persona")
    job_builder.context({"team/roster.md": "Ana, Bo"})

    with pytest.raises(ConfigParseError):
        _assemble(job_builder)

"""Tests for the adaptive retry controller."""

from __future__ import annotations

from pathlib import Path
from typing import List, Tuple

import pytest

from summnir.analysis.config_loader import AnalysisConfig
from summnir.analysis.prompt import Inputs, Prompt, PromptMessage
from summnir.analysis.section import Section
from summnir.config import JobConfig
from summnir.errors import GenerationError, GenerationSkipped, RequestTooLargeError
from summnir.generator import SummaryGenerator
from summnir.llm.runner import Completion


def _inputs(history: int, summary: int, content_files: int = 1) -> Inputs:
    config = AnalysisConfig(
        name="team",
        directory=Path("team"),
        model="gpt-4o",
        temperature=0.4,
        max_completion_tokens=800,
    )
    prompt = Prompt(Section("Persona"), Section("Instructions"), Section("Context"), Section("Content"))
    return Inputs(
        config=config,
        parameters={},
        prompt=prompt,
        messages=[PromptMessage("user", f"h={history} s={summary}")],
        contributing_files={
            "context": [],
            "content": [f"file-{index}.md" for index in range(content_files)],
        },
    )


class RecordingBuilder:
    def __init__(self, content_files: int = 1) -> None:
        self.calls: List[Tuple[int, int]] = []
        self.content_files = content_files

    def __call__(self, history: int, summary: int) -> Inputs:
        self.calls.append((history, summary))
        return _inputs(history, summary, self.content_files)


class ScriptedRunner:
    """Replays a list of outcomes: exceptions are raised, strings are returned."""

    def __init__(self, outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls = []

    def complete(self, model, messages, temperature=None, max_tokens=None):
        self.calls.append((model, messages, temperature, max_tokens))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return Completion(text=outcome, payload={"usage": {"total_tokens": 5}})


def _too_large() -> RequestTooLargeError:
    return RequestTooLargeError("429 Request too large", limit=100, requested=200)


JOB = JobConfig(job="team", year=2024, month=3, history_months=2, summary_months=1)


def test_first_attempt_success() -> None:
    builder = RecordingBuilder()
    runner = ScriptedRunner(["All good"])

    result = SummaryGenerator(runner).generate(builder, JOB)

    assert result.summary == "All good"
    assert (result.history_months, result.summary_months, result.attempts) == (2, 1, 1)
    assert result.completion == {"usage": {"total_tokens": 5}}
    assert builder.calls == [(2, 1)]
    model, messages, temperature, max_tokens = runner.calls[0]
    assert model == "gpt-4o"
    assert messages == [{"role": "user", "content": "h=2 s=1"}]
    assert (temperature, max_tokens) == (0.4, 800)


def test_shrinks_history_before_summary() -> None:
    builder = RecordingBuilder()
    runner = ScriptedRunner([_too_large(), _too_large(), _too_large(), "Finally"])

    result = SummaryGenerator(runner).generate(builder, JOB)

    assert builder.calls == [(2, 1), (1, 1), (0, 1), (0, 0)]
    assert result.summary == "Finally"
    assert (result.history_months, result.summary_months, result.attempts) == (0, 0, 4)
    assert [call[1][0]["content"] for call in runner.calls] == [
        "h=2 s=1",
        "h=1 s=1",
        "h=0 s=1",
        "h=0 s=0",
    ]


def test_fourth_too_large_failure_is_fatal() -> None:
    runner = ScriptedRunner([_too_large()] * 4)

    with pytest.raises(GenerationError) as excinfo:
        SummaryGenerator(runner).generate(RecordingBuilder(), JOB)

    assert "Unable to generate summary even with minimum history and summary months" in str(
        excinfo.value
    )
    assert len(runner.calls) == 4


def test_success_on_second_attempt_reports_reduced_history() -> None:
    runner = ScriptedRunner([_too_large(), "Second time"])

    result = SummaryGenerator(runner).generate(RecordingBuilder(), JOB)

    assert (result.history_months, result.summary_months) == (1, 1)
    assert result.attempts == 2


def test_too_large_detected_from_message_text() -> None:
    runner = ScriptedRunner(
        [RuntimeError("429 Request too large for gpt-4o: Limit 30000, Requested 45000"), "ok"]
    )

    result = SummaryGenerator(runner).generate(RecordingBuilder(), JOB)

    assert result.history_months == 1


def test_blank_response_is_skipped() -> None:
    runner = ScriptedRunner(["   \n"])

    with pytest.raises(GenerationSkipped):
        SummaryGenerator(runner).generate(RecordingBuilder(), JOB)


def test_no_content_never_calls_model() -> None:
    runner = ScriptedRunner(["unused"])

    with pytest.raises(GenerationSkipped):
        SummaryGenerator(runner).generate(RecordingBuilder(content_files=0), JOB)

    assert runner.calls == []


def test_other_errors_propagate_without_retry() -> None:
    builder = RecordingBuilder()
    runner = ScriptedRunner([ValueError("boom")])

    with pytest.raises(ValueError):
        SummaryGenerator(runner).generate(builder, JOB)

    assert builder.calls == [(2, 1)]


def test_initial_inputs_are_reused() -> None:
    builder = RecordingBuilder()
    runner = ScriptedRunner(["ok"])

    SummaryGenerator(runner).generate(builder, JOB, initial_inputs=_inputs(2, 1))

    assert builder.calls == []

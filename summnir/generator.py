"""Model invocation that shrinks the lookback window when a prompt is too large."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Protocol

from .analysis.prompt import Inputs
from .config import JobConfig
from .errors import GenerationError, GenerationSkipped
from .llm.runner import Completion, match_request_too_large
from .logging import get_logger

BuildInputs = Callable[[int, int], Inputs]


class CompletionRunner(Protocol):
    def complete(
        self,
        model: str,
        messages: Any,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> Completion: ...


@dataclass
class GenerationResult:
    """A summary together with what produced it."""

    summary: str
    inputs: Inputs
    history_months: int
    summary_months: int
    attempts: int
    completion: Dict[str, Any] = field(default_factory=dict)


class SummaryGenerator:
    """Calls the model, rebuilding a smaller prompt after each too-large rejection.

    History months are given up first, then summary months. Each shrink
    removes one month, so a run makes at most
    ``history_months + summary_months + 1`` attempts.
    """

    def __init__(self, runner: CompletionRunner, logger: logging.Logger | None = None) -> None:
        self.runner = runner
        self.logger = logger or get_logger("generator")

    def generate(
        self,
        build: BuildInputs,
        job: JobConfig,
        *,
        initial_inputs: Inputs | None = None,
    ) -> GenerationResult:
        history_months = job.history_months
        summary_months = job.summary_months
        inputs = initial_inputs or build(history_months, summary_months)
        attempts = 0

        while True:
            if inputs.content_file_count == 0:
                raise GenerationSkipped(
                    f"No content found for {job.job} in {job.year}-{job.month}. Skipping generation."
                )

            attempts += 1
            config = inputs.config
            try:
                completion = self.runner.complete(
                    inputs.model or config.model,
                    [message.to_dict() for message in inputs.messages],
                    config.temperature,
                    config.max_completion_tokens,
                )
            except Exception as exc:
                too_large = match_request_too_large(exc)
                if too_large is None:
                    raise
                limit = too_large.limit if too_large.limit is not None else "unknown"
                requested = too_large.requested if too_large.requested is not None else "unknown"
                if history_months > 0:
                    history_months -= 1
                    self.logger.info(
                        "Token limit exceeded (Limit: %s, Requested: %s). "
                        "Reducing history months to %d and retrying...",
                        limit,
                        requested,
                        history_months,
                    )
                elif summary_months > 0:
                    summary_months -= 1
                    self.logger.info(
                        "Token limit exceeded (Limit: %s, Requested: %s). "
                        "Reducing summary months to %d and retrying...",
                        limit,
                        requested,
                        summary_months,
                    )
                else:
                    raise GenerationError(
                        "Unable to generate summary even with minimum history and summary "
                        f"months. Last error: {exc}"
                    ) from exc
                inputs = build(history_months, summary_months)
                continue

            if not completion.text.strip():
                raise GenerationSkipped("Summary generation skipped: AI returned a blank response")

            return GenerationResult(
                summary=completion.text,
                inputs=inputs,
                history_months=history_months,
                summary_months=summary_months,
                attempts=attempts,
                completion=completion.payload,
            )


__all__ = ["BuildInputs", "GenerationResult", "SummaryGenerator"]

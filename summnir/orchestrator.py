"""Run one summary job end to end."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from .analysis import (
    AnalysisConfig,
    Inputs,
    PromptAssembler,
    load_analysis_config,
    resolve_parameters,
)
from .config import JobConfig, RunConfig
from .constants import OUTPUT_COMPLETION_KEY, OUTPUT_INPUTS_KEY, OUTPUT_SUMMARY_KEY
from .errors import OutputExistsError
from .generator import CompletionRunner, GenerationResult, SummaryGenerator
from .llm.runner import LLMRunner
from .logging import get_logger
from .output import output_path, write_output_file
from .storage import Storage


@dataclass
class RunOutcome:
    """What a job run produced."""

    job: JobConfig
    inputs: Inputs
    dry_run: bool = False
    result: Optional[GenerationResult] = None
    written: Dict[str, Path] = field(default_factory=dict)

    @property
    def summary(self) -> str | None:
        return self.result.summary if self.result else None


class Orchestrator:
    """Coordinates config loading, prompt assembly, generation and output."""

    def __init__(
        self,
        runner: CompletionRunner | None = None,
        storage: Storage | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._runner = runner
        self.storage = storage or Storage()
        self.logger = logger or get_logger("orchestrator")

    def run(self, run_config: RunConfig, job: JobConfig) -> RunOutcome:
        self.logger.info(
            "Generating %s summary for %s-%s with historyMonths=%d and summaryMonths=%d",
            job.job,
            job.year,
            job.month,
            job.history_months,
            job.summary_months,
        )
        config = load_analysis_config(run_config.job_directory(job.job), storage=self.storage)
        assembler = PromptAssembler(
            context_directory=run_config.context_directory,
            activity_directory=run_config.activity_directory,
            summary_directory=run_config.summary_directory,
            storage=self.storage,
            logger=self.logger,
        )

        def build(history_months: int, summary_months: int) -> Inputs:
            parameters = resolve_parameters(
                config.parameters, job.parameter_values(history_months, summary_months)
            )
            return assembler.assemble(
                config, parameters, job.year, job.month, model=run_config.model
            )

        self._check_existing_summary(run_config, job, config)
        inputs = build(job.history_months, job.summary_months)

        if run_config.dry_run:
            self.logger.info("Dry run: skipping model call and output writes")
            return RunOutcome(job=job, inputs=inputs, dry_run=True)

        generator = SummaryGenerator(self._resolve_runner(), logger=self.logger)
        result = generator.generate(build, job, initial_inputs=inputs)

        self.logger.info(
            "Successfully generated summary with historyMonths=%d and summaryMonths=%d",
            result.history_months,
            result.summary_months,
        )
        if (result.history_months, result.summary_months) != (
            job.history_months,
            job.summary_months,
        ):
            self.logger.info(
                "Note: Original parameters were historyMonths=%d and summaryMonths=%d",
                job.history_months,
                job.summary_months,
            )

        written = self._write_outputs(run_config, job, config, result)
        return RunOutcome(job=job, inputs=result.inputs, result=result, written=written)

    def _check_existing_summary(
        self, run_config: RunConfig, job: JobConfig, config: AnalysisConfig
    ) -> None:
        target = config.output.get(OUTPUT_SUMMARY_KEY)
        if target is None:
            return
        path = output_path(run_config.summary_directory, job.year, job.month, target.pattern)
        if self.storage.exists(path) and not run_config.replace:
            raise OutputExistsError(
                f"Output file {path} already exists. Use --replace flag to overwrite."
            )

    def _write_outputs(
        self,
        run_config: RunConfig,
        job: JobConfig,
        config: AnalysisConfig,
        result: GenerationResult,
    ) -> Dict[str, Path]:
        artefacts = {
            OUTPUT_SUMMARY_KEY: result.summary,
            OUTPUT_COMPLETION_KEY: result.completion,
            OUTPUT_INPUTS_KEY: result.inputs.to_dict(),
        }
        written: Dict[str, Path] = {}
        for key, content in artefacts.items():
            target = config.output.get(key)
            if target is None:
                self.logger.debug("No %s output configured for %s", key, config.name)
                continue
            written[key] = write_output_file(
                run_config.summary_directory,
                job.year,
                job.month,
                target.pattern,
                content,
                storage=self.storage,
                logger=self.logger,
            )
        return written

    def _resolve_runner(self) -> CompletionRunner:
        if self._runner is None:
            self._runner = LLMRunner()
        return self._runner


__all__ = ["Orchestrator", "RunOutcome"]

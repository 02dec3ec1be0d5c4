"""CLI entrypoint for summnir."""

from __future__ import annotations

import argparse
import sys

from .config import load_program_file, load_run_config, parse_job_arguments, validate_run_config
from .constants import ALLOWED_MODELS, DEFAULT_CONFIG_DIR, PROGRAM_NAME, VERSION
from .errors import GenerationSkipped, SummnirError
from .logging import configure_logging, get_logger
from .orchestrator import Orchestrator


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROGRAM_NAME,
        description="Generate a monthly summary from activity, context and past summaries.",
    )
    parser.add_argument("job", nargs="?", help="Job name; a directory under the config directory.")
    parser.add_argument("year", nargs="?", help="Target year (1900-2100).")
    parser.add_argument("month", nargs="?", help="Target month (1-12).")
    parser.add_argument(
        "history_months",
        nargs="?",
        help="Months of history context to include (default 1).",
    )
    parser.add_argument(
        "summary_months",
        nargs="?",
        help="Months of past summaries to include (default 1).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=None,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Enable debug logging with timestamps.",
    )
    parser.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        default=None,
        help="Print the assembled prompt without calling the model or writing files.",
    )
    parser.add_argument(
        "--model",
        help=f"Model to use instead of the job's model ({', '.join(ALLOWED_MODELS)}).",
    )
    parser.add_argument(
        "--config-dir",
        dest="config_directory",
        help=f"Directory holding config.yaml and job directories (default {DEFAULT_CONFIG_DIR}).",
    )
    parser.add_argument(
        "--context-directory",
        dest="context_directory",
        help="Directory holding static context files.",
    )
    parser.add_argument(
        "--activity-directory",
        dest="activity_directory",
        help="Directory holding monthly activity files.",
    )
    parser.add_argument(
        "--summary-directory",
        dest="summary_directory",
        help="Directory where summaries are read from and written to.",
    )
    parser.add_argument(
        "--replace",
        action="store_true",
        default=None,
        help="Overwrite an existing summary for the month.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for summnir."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    cli_values = {
        "dry_run": args.dry_run,
        "verbose": args.verbose,
        "debug": args.debug,
        "model": args.model,
        "config_directory": args.config_directory,
        "context_directory": args.context_directory,
        "activity_directory": args.activity_directory,
        "summary_directory": args.summary_directory,
        "replace": args.replace,
    }

    try:
        file_values = load_program_file(args.config_directory or DEFAULT_CONFIG_DIR)
        run_config = load_run_config(cli_values, file_values)
        configure_logging(verbose=run_config.verbose, debug=run_config.debug)
        job = parse_job_arguments(
            args.job,
            args.year,
            args.month,
            args.history_months,
            args.summary_months,
            file_values=file_values,
        )
        validate_run_config(run_config)
    except (SummnirError, OSError) as exc:
        parser.exit(1, f"{PROGRAM_NAME}: {exc}\n")

    logger = get_logger()
    logger.debug("Run config: %s", run_config)
    logger.debug("Job config: %s", job)

    try:
        outcome = Orchestrator().run(run_config, job)
    except GenerationSkipped as exc:
        logger.info("%s", exc.reason)
        parser.exit(0)
    except (RuntimeError, OSError) as exc:
        parser.exit(1, f"Error generating summary: {exc}\nRun with --verbose for more details.\n")

    if outcome.dry_run:
        for message in outcome.inputs.messages:
            print(f"--- {message.role} ---")
            print(message.content)
        return
    for key, path in outcome.written.items():
        print(f"{key}: {path}")


if __name__ == "__main__":
    main(sys.argv[1:])

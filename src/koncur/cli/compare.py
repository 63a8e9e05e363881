"""CLI command implementation for comparing two findings documents."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.syntax import Syntax

from koncur.cli.errors import EXIT_FAILED, cli_error_handler
from koncur.comparers import comparer_for
from koncur.loader import OutputLoader
from koncur.logging import setup_logging
from koncur.reporting import ConsoleReporter
from koncur.results import ValidationResult, unified_diff
from koncur.validator import Validator

logger = logging.getLogger(__name__)
console = Console()


def compare_outputs_command(  # noqa: PLR0913 - CLI entry point with many options
    actual_path: Path,
    expected_path: Path,
    target: str | None = None,
    work_dir: Path | None = None,
    show_diff: bool = False,
    strict_paths: bool = False,
    log_level: str = "INFO",
) -> ValidationResult:
    """CLI command implementation for comparing an actual output to an expected one.

    Both documents are filtered and normalised the same way before comparison.

    Args:
        actual_path: Findings document produced by the backend
        expected_path: Expected findings document
        target: Backend kind whose tolerance rules apply
        work_dir: Execution working directory to strip from incident paths
        show_diff: Also print a unified text diff
        strict_paths: Treat incident paths that fail to normalise as an error
        log_level: Logging level

    Raises:
        typer.Exit: With code 1 on discrepancies, 2 on structural errors

    """
    setup_logging(level=log_level)

    with cli_error_handler("compare", "Comparison failed"):
        comparer = comparer_for(target)
        loader = OutputLoader(working_dir=work_dir, strict_paths=strict_paths)
        actual = loader.load_file(actual_path)
        expected = loader.load_file(expected_path)

        result = Validator(comparer).validate(
            expected.rulesets,
            actual.rulesets,
            [*expected.normalization_errors, *actual.normalization_errors],
        )

    console.print(
        f"Compared [cyan]{actual_path}[/cyan] against [cyan]{expected_path}[/cyan] "
        f"using the [magenta]{comparer.name}[/magenta] comparer"
    )
    ConsoleReporter(console).print_validation_result(result)

    if show_diff and not result.passed:
        diff = unified_diff(expected.rulesets, actual.rulesets)
        if diff:
            console.print(Syntax(diff, "diff", theme="ansi_dark"))

    if not result.passed:
        raise typer.Exit(EXIT_FAILED)
    return result

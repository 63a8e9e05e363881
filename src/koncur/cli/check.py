"""CLI command implementation for checking backend outputs against tests."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console

from koncur.cli.errors import EXIT_ERROR, EXIT_FAILED, cli_error_handler
from koncur.definitions import TargetConfigLoader, TestDefinitionLoader, find_test_files
from koncur.errors import ConfigError
from koncur.execution import ExecutionResult, RecordedOutputTarget
from koncur.logging import setup_logging
from koncur.reporting import (
    ConsoleReporter,
    OutputFormat,
    TestSummary,
    format_results,
)
from koncur.runner import TestRunner

logger = logging.getLogger(__name__)
console = Console()


def check_output_command(  # noqa: PLR0913 - CLI entry point with many options
    test_path: Path,
    output_path: Path,
    exit_code: int = 0,
    target: str | None = None,
    target_config: Path | None = None,
    output_format: OutputFormat = OutputFormat.CONSOLE,
    output_file: Path | None = None,
    log_level: str = "INFO",
) -> TestSummary:
    """CLI command implementation for evaluating already produced outputs.

    ``test_path`` is either one test definition, checked against the findings
    document at ``output_path``, or a directory of test definitions. In
    directory mode ``output_path`` is a directory that mirrors the test tree
    with one ``output.yaml`` per test case.

    Args:
        test_path: Test definition YAML file or directory of test definitions
        output_path: Findings document, or directory of recorded documents
        exit_code: Exit code the backend finished with
        target: Backend kind whose tolerance rules apply
        target_config: Target configuration file; its type is used when
            ``target`` is not given
        output_format: Result format
        output_file: Write formatted results here instead of stdout
        log_level: Logging level

    Raises:
        typer.Exit: With code 1 when a test fails, 2 when one errors

    """
    setup_logging(level=log_level)

    with cli_error_handler("check", "Test check failed"):
        if target is None and target_config is not None:
            target = TargetConfigLoader.load(target_config).type
        runner = TestRunner(backend_kind=target)

        if test_path.is_dir():
            if not output_path.is_dir():
                raise ConfigError(
                    f"--output must be a directory when checking a test directory: {output_path}"
                )
            test_files = find_test_files(test_path)
            if not test_files:
                raise ConfigError(f"No test files found in {test_path}")
            logger.info("Found %d test files in %s", len(test_files), test_path)
            summary = runner.run_tests(
                test_files,
                RecordedOutputTarget(output_path, test_path, target, exit_code),
            )
        else:
            test = TestDefinitionLoader.load(test_path)
            execution = ExecutionResult(
                exit_code=exit_code,
                output_file=output_path,
                work_dir=test.test_dir,
            )
            summary = TestSummary.from_results(
                [runner.run(test, execution, test_path)]
            )

    _report(summary, output_format, output_file, show_summary=test_path.is_dir())

    if summary.errors:
        raise typer.Exit(EXIT_ERROR)
    if summary.failed:
        raise typer.Exit(EXIT_FAILED)
    return summary


def _report(
    summary: TestSummary,
    output_format: OutputFormat,
    output_file: Path | None,
    show_summary: bool,
) -> None:
    if output_format is OutputFormat.CONSOLE:
        reporter = ConsoleReporter(console)
        for result in summary.tests:
            reporter.print_test_result(result)
        if show_summary:
            reporter.print_summary(summary)
        return

    rendered = format_results(summary, output_format)
    if output_file is not None:
        output_file.write_text(rendered, encoding="utf-8")
        console.print(f"[green]✅ Results written to: {output_file}[/green]")
        logger.info("Results saved to %s", output_file)
    else:
        console.out(rendered, highlight=False)


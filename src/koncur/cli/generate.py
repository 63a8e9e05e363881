"""CLI command implementation for generating expected outputs."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console

from koncur.cli.errors import cli_error_handler
from koncur.definitions import TestDefinitionLoader, is_test_skipped
from koncur.errors import ConfigError
from koncur.loader import LoadedOutput, OutputLoader
from koncur.logging import setup_logging
from koncur.reporting import ConsoleReporter
from koncur.schemas import dump_rulesets

logger = logging.getLogger(__name__)
console = Console()


def generate_expected_command(
    test_file: Path, output_path: Path, log_level: str = "INFO"
) -> LoadedOutput | None:
    """CLI command implementation for capturing an output as the expectation.

    The findings document is filtered and normalised exactly as it would be
    before a comparison, then written to the test's ``file`` expectation.

    Args:
        test_file: Test definition YAML file with a ``file`` expectation
        output_path: Findings document produced by the backend
        log_level: Logging level

    Returns:
        The written output, or None when the test is marked as skipped

    Raises:
        typer.Exit: With code 2 when the test or the output cannot be loaded

    """
    setup_logging(level=log_level)

    if is_test_skipped(test_file):
        console.print(
            f"[yellow]⊘ {test_file} is marked as skipped; nothing generated[/yellow]"
        )
        return None

    with cli_error_handler("generate", "Expected output generation failed"):
        test = TestDefinitionLoader.load(test_file, skip_expected_output=True)
        if not test.expect.output.file:
            raise ConfigError(
                f"Test {test.name} has no 'file' expectation to write to"
            )

        expected_path = Path(test.expect.output.file)
        if not expected_path.is_absolute():
            expected_path = test_file.parent / expected_path

        loaded = OutputLoader(working_dir=test.test_dir).load_file(output_path)
        expected_path.parent.mkdir(parents=True, exist_ok=True)
        expected_path.write_text(dump_rulesets(loaded.rulesets), encoding="utf-8")

    logger.info("Wrote expected output for %s to %s", test.name, expected_path)
    console.print(
        f"[green]✅ Wrote {len(loaded.rulesets)} rulesets "
        f"({loaded.filtered_out} empty filtered out) to {expected_path}[/green]"
    )
    ConsoleReporter(console).print_normalization_errors(
        [str(error) for error in loaded.normalization_errors]
    )
    return loaded

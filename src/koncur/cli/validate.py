"""CLI command implementation for test definition validation."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.tree import Tree

from koncur.cli.errors import cli_error_handler
from koncur.definitions import TestDefinition, TestDefinitionLoader, is_test_skipped
from koncur.logging import setup_logging

logger = logging.getLogger(__name__)
console = Console()


def _expected_summary(test: TestDefinition) -> str:
    output = test.expect.output
    if output.result is None:
        return f"file {output.file} (not loaded)"
    source = f" from {output.file}" if output.file else " (inline)"
    return f"{len(output.rulesets)} rulesets{source}"


def validate_test_command(test_file: Path, log_level: str = "INFO") -> TestDefinition:
    """CLI command implementation for validating a test definition.

    Args:
        test_file: Test definition YAML file
        log_level: Logging level

    """
    setup_logging(level=log_level)

    with cli_error_handler("validate", "Test validation failed"):
        test = TestDefinitionLoader.load(test_file)

    tree = Tree(f"[bold green]✅ {test.name}[/bold green]")
    if test.description:
        tree.add(f"Description: [white]{test.description}[/white]")
    tree.add(f"Application: [cyan]{test.analysis.application}[/cyan]")
    tree.add(f"Analysis mode: [cyan]{test.analysis.analysis_mode}[/cyan]")
    if test.analysis.label_selector:
        tree.add(f"Label selector: [cyan]{test.analysis.label_selector}[/cyan]")
    tree.add(f"Timeout: [blue]{test.get_timeout()}[/blue]")
    tree.add(f"Expected exit code: [blue]{test.expect.exit_code}[/blue]")
    tree.add(f"Expected output: [blue]{_expected_summary(test)}[/blue]")
    if is_test_skipped(test_file):
        tree.add("[yellow]Marked as skipped[/yellow]")
    console.print(tree)
    logger.info("Test definition %s is valid", test_file)
    return test

"""Rich console rendering of comparison and test results."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from koncur.reporting.models import TestResult, TestStatus, TestSummary
from koncur.results import Discrepancy, ValidationResult

logger = logging.getLogger(__name__)

__all__ = ["ConsoleReporter"]


class ConsoleReporter:
    """Prints results to the terminal."""

    STATUS_TEXT = {
        TestStatus.PASSED: "[green]PASS[/green]",
        TestStatus.FAILED: "[red]FAIL[/red]",
        TestStatus.ERROR: "[red]ERROR[/red]",
        TestStatus.SKIPPED: "[yellow]SKIP[/yellow]",
    }

    def __init__(self, console: Console | None = None) -> None:
        """Initialise the reporter.

        Args:
            console: Console to print to; defaults to stdout

        """
        self.console = console or Console()

    def print_discrepancies(self, discrepancies: list[Discrepancy]) -> None:
        """Print numbered discrepancies with their messages beneath."""
        for index, discrepancy in enumerate(discrepancies, start=1):
            self.console.print(
                f"[yellow]{index}. {escape(discrepancy.path)}[/yellow]", highlight=False
            )
            for line in discrepancy.message.splitlines():
                self.console.print(f"   {line}", markup=False, highlight=False)

    def print_normalization_errors(self, errors: list[str]) -> None:
        """Warn that some incident paths were compared un-normalised."""
        if not errors:
            return
        body = "\n".join(f"• {error}" for error in errors)
        self.console.print(
            Panel(
                body,
                title=f"⚠️ {len(errors)} incident path(s) could not be normalised",
                border_style="yellow",
            )
        )

    def print_validation_result(self, result: ValidationResult) -> None:
        """Print the outcome of a single document comparison."""
        if result.passed:
            self.console.print("[bold green]✅ Output matches expectation[/bold green]")
        else:
            self.console.print(
                f"[bold red]❌ {len(result.discrepancies)} discrepancies found[/bold red]"
            )
            self.print_discrepancies(result.discrepancies)
        self.print_normalization_errors(result.normalization_errors)

    def print_test_result(self, result: TestResult) -> None:
        """Print one test result with its failure details."""
        self.console.print(
            f"{self.STATUS_TEXT[result.status]} {result.name} "
            f"[blue]({result.duration:.2f}s)[/blue]"
        )

        if result.status is TestStatus.ERROR:
            self.console.print(
                Panel(
                    f"[red]{escape(result.error_message or 'Unknown error')}[/red]",
                    title=f"Error in {result.name}",
                    border_style="red",
                )
            )
            logger.error("Test %s errored: %s", result.name, result.error_message)
            return

        if result.exit_code_mismatch:
            self.console.print(
                f"[red]Exit code mismatch: expected {result.expected_exit_code}, "
                f"got {result.exit_code}[/red]"
            )
        if result.validation_errors:
            self.print_discrepancies(result.validation_errors)
        self.print_normalization_errors(result.normalization_errors)

    def print_summary(self, summary: TestSummary) -> None:
        """Print a results table followed by totals."""
        table = Table(
            title="📊 Test Results Summary",
            show_header=True,
            header_style="bold magenta",
        )
        table.add_column("Test", style="cyan", no_wrap=True)
        table.add_column("Status")
        table.add_column("Duration", style="blue")
        table.add_column("Discrepancies", justify="right")

        for result in summary.tests:
            table.add_row(
                result.name,
                self.STATUS_TEXT[result.status],
                f"{result.duration:.2f}s",
                str(len(result.validation_errors)),
            )
        self.console.print(table)

        totals = Tree(f"[bold]Total: {summary.total}[/bold]")
        totals.add(f"Passed: [green]{summary.passed}[/green]")
        totals.add(f"Failed: [red]{summary.failed}[/red]")
        totals.add(f"Errors: [red]{summary.errors}[/red]")
        totals.add(f"Skipped: [yellow]{summary.skipped}[/yellow]")
        self.console.print(totals)

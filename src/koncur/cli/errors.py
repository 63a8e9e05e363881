"""CLI error handling for koncur."""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import override

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

logger = logging.getLogger(__name__)
console = Console()

EXIT_FAILED = 1
EXIT_ERROR = 2


class CLIError(Exception):
    """Exception for CLI-related errors with command context."""

    def __init__(
        self,
        message: str,
        command: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialise CLI error with context.

        Args:
            message: Human-readable error message describing what went wrong
            command: Name of the CLI command that failed (e.g., "compare", "check")
            original_error: The underlying exception that caused this CLI error

        """
        super().__init__(message)
        self.command = command
        self.original_error = original_error

    @override
    def __str__(self) -> str:
        """Return formatted error message with CLI context."""
        base_message = super().__str__()
        if self.command:
            return f"CLI command '{self.command}' failed: {base_message}"
        return base_message


def _report(title: str, error: CLIError) -> None:
    logger.error("%s: %s", title, error)
    console.print(
        Panel(f"[red]{escape(str(error))}[/red]", title=f"❌ {title}", border_style="red")
    )


@contextmanager
def cli_error_handler(
    command: str, title: str, exit_code: int = EXIT_ERROR
) -> Generator[None]:
    """Context manager for unified CLI error handling.

    Catches exceptions, displays them as Rich error panels, and exits with
    ``exit_code``. Handles both pre-wrapped CLIError and raw exceptions.

    Args:
        command: CLI command name for error context.
        title: Panel title for the error display.
        exit_code: Process exit code for errors.

    """
    try:
        yield
    except CLIError as e:
        _report(title, e)
        raise typer.Exit(exit_code) from e
    except Exception as e:
        cli_error = CLIError(str(e), command=command, original_error=e)
        _report(title, cli_error)
        raise typer.Exit(exit_code) from cli_error

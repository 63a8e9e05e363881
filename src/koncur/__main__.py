"""Main entry point for koncur.

This module provides the command-line interface for koncur, including
commands for:
- Comparing an analysis output against an expected findings document
- Checking produced outputs against test definitions
- Generating expected outputs from a produced output
- Validating test definitions
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv

from koncur.cli import (
    check_output_command,
    compare_outputs_command,
    generate_expected_command,
    validate_test_command,
)
from koncur.comparers import BackendKind
from koncur.reporting import OutputFormat

# Environment overrides such as KONCUR_ENV may live in a local .env file
load_dotenv()

app = typer.Typer(name="koncur", no_args_is_help=True)

LogLevelOption = Annotated[
    str,
    typer.Option(
        "--log-level",
        help="Set logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        case_sensitive=False,
    ),
]
TargetOption = Annotated[
    BackendKind | None,
    typer.Option(
        "--target",
        "-t",
        help="Backend that produced the output; selects its comparison rules",
    ),
]


@app.command()
def compare(  # noqa: PLR0913 - CLI entry point with many options
    actual: Annotated[
        Path,
        typer.Argument(
            help="Findings document produced by the analysis",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    expected: Annotated[
        Path,
        typer.Argument(
            help="Expected findings document",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    target: TargetOption = None,
    work_dir: Annotated[
        Path | None,
        typer.Option(
            "--work-dir",
            help="Working directory of the analysis, stripped from incident paths",
            file_okay=False,
            dir_okay=True,
        ),
    ] = None,
    diff: Annotated[
        bool,
        typer.Option("--diff", help="Also print a unified diff of both documents"),
    ] = False,
    strict_paths: Annotated[
        bool,
        typer.Option(
            "--strict-paths",
            help="Fail with an error when an incident path cannot be normalised",
        ),
    ] = False,
    log_level: LogLevelOption = "INFO",
) -> None:
    """Compare an analysis output against an expected findings document.

    Exits with 1 when discrepancies are found and 2 when either document
    cannot be loaded.

    Example:
        koncur compare output.yaml expected.yaml --target tackle-hub --diff

    """
    compare_outputs_command(
        actual, expected, target, work_dir, diff, strict_paths, log_level
    )


@app.command()
def check(  # noqa: PLR0913 - CLI entry point with many options
    test_path: Annotated[
        Path,
        typer.Argument(
            help="Test definition YAML file, or a directory searched for test.yaml files",
            exists=True,
            file_okay=True,
            dir_okay=True,
            readable=True,
        ),
    ],
    output: Annotated[
        Path,
        typer.Option(
            "--output",
            "-o",
            help=(
                "Findings document produced by the analysis, or a directory "
                "with one output.yaml per test case in directory mode"
            ),
            file_okay=True,
            dir_okay=True,
        ),
    ],
    exit_code: Annotated[
        int,
        typer.Option("--exit-code", help="Exit code the analysis finished with"),
    ] = 0,
    target: TargetOption = None,
    target_config: Annotated[
        Path | None,
        typer.Option(
            "--target-config",
            help="Target configuration file; used when --target is not given",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Result format",
            case_sensitive=False,
            rich_help_panel="Output",
        ),
    ] = OutputFormat.CONSOLE,
    output_file: Annotated[
        Path | None,
        typer.Option(
            "--output-file",
            help="Write formatted results to this file instead of stdout",
            file_okay=True,
            dir_okay=False,
            writable=True,
            rich_help_panel="Output",
        ),
    ] = None,
    log_level: LogLevelOption = "INFO",
) -> None:
    """Check already produced analysis outputs against test definitions.

    Exits with 1 when a test fails and 2 when a test errors.

    Examples:
        koncur check tests/tackle-testapp/test.yaml -o output.yaml --format junit
        koncur check tests/ -o recorded/ --target tackle-hub

    """
    check_output_command(
        test_path,
        output,
        exit_code,
        target,
        target_config,
        output_format,
        output_file,
        log_level,
    )


@app.command()
def generate(
    test_file: Annotated[
        Path,
        typer.Argument(
            help="Path to the test definition YAML file",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    output: Annotated[
        Path,
        typer.Option(
            "--output",
            "-o",
            help="Findings document to capture as the expected output",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    log_level: LogLevelOption = "INFO",
) -> None:
    """Write a filtered, normalised output to a test's expected output file.

    Example:
        koncur generate tests/tackle-testapp/test.yaml -o output.yaml

    """
    generate_expected_command(test_file, output, log_level)


@app.command()
def validate(
    test_file: Annotated[
        Path,
        typer.Argument(
            help="Path to the test definition YAML file",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    log_level: LogLevelOption = "INFO",
) -> None:
    """Validate a test definition and its expected output."""
    validate_test_command(test_file, log_level)


if __name__ == "__main__":
    app()

"""CLI command implementations for koncur."""

from koncur.cli.check import check_output_command
from koncur.cli.compare import compare_outputs_command
from koncur.cli.errors import CLIError
from koncur.cli.generate import generate_expected_command
from koncur.cli.validate import validate_test_command

__all__ = [
    "CLIError",
    "check_output_command",
    "compare_outputs_command",
    "generate_expected_command",
    "validate_test_command",
]

"""Test result models and their console and file renderings."""

from koncur.reporting.console import ConsoleReporter
from koncur.reporting.formats import OutputFormat, format_results
from koncur.reporting.models import TestResult, TestStatus, TestSummary

__all__ = [
    "ConsoleReporter",
    "OutputFormat",
    "TestResult",
    "TestStatus",
    "TestSummary",
    "format_results",
]

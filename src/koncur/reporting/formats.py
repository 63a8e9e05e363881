"""Machine-readable renderings of a test run summary."""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from enum import StrEnum

import yaml

from koncur.errors import KoncurError
from koncur.reporting.models import TestResult, TestStatus, TestSummary

__all__ = ["OutputFormat", "format_results"]

JUNIT_SUITE_NAME = "koncur-tests"
JUNIT_CLASS_NAME = "koncur"
JUNIT_FAILURE_TYPE = "ValidationError"
XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'


class OutputFormat(StrEnum):
    """Supported result formats."""

    CONSOLE = "console"
    JSON = "json"
    YAML = "yaml"
    JUNIT = "junit"


def format_results(summary: TestSummary, output_format: OutputFormat | str) -> str:
    """Render ``summary`` in a machine-readable format.

    Args:
        summary: Run summary to render
        output_format: One of ``json``, ``yaml`` or ``junit``

    Returns:
        Rendered document

    Raises:
        KoncurError: If the format has no textual rendering

    """
    match output_format:
        case OutputFormat.JSON:
            return json.dumps(_to_document(summary), indent=2)
        case OutputFormat.YAML:
            return yaml.safe_dump(
                _to_document(summary), sort_keys=False, allow_unicode=True
            )
        case OutputFormat.JUNIT:
            return _format_junit(summary)
        case _:
            raise KoncurError(f"Unsupported output format: {output_format}")


def _to_document(summary: TestSummary) -> dict[str, object]:
    return summary.model_dump(mode="json", by_alias=True, exclude_none=True)


def _seconds(value: float) -> str:
    return f"{value:.3f}"


def _failure_content(result: TestResult) -> str:
    lines: list[str] = []
    if result.exit_code_mismatch:
        lines.append(
            f"Exit code mismatch: expected {result.expected_exit_code}, "
            f"got {result.exit_code}"
        )
    if result.validation_errors:
        if lines:
            lines.append("")
        lines.append(f"Validation Errors ({len(result.validation_errors)}):")
        lines.extend(
            f"[{i}] {error.path}: {error.message}"
            for i, error in enumerate(result.validation_errors, start=1)
        )
    if result.normalization_errors:
        lines.append("")
        lines.append(f"Normalization Errors ({len(result.normalization_errors)}):")
        lines.extend(f"- {error}" for error in result.normalization_errors)
    return "\n".join(lines) + "\n" if lines else ""


def _format_junit(summary: TestSummary) -> str:
    suite = ET.Element(
        "testsuite",
        {
            "name": JUNIT_SUITE_NAME,
            "tests": str(summary.total),
            "failures": str(summary.failed),
            "errors": str(summary.errors),
            "skipped": str(summary.skipped),
            "time": _seconds(summary.duration),
        },
    )

    for result in summary.tests:
        case = ET.SubElement(
            suite,
            "testcase",
            {
                "name": result.name,
                "classname": JUNIT_CLASS_NAME,
                "time": _seconds(result.duration),
            },
        )
        match result.status:
            case TestStatus.FAILED:
                failure = ET.SubElement(
                    case,
                    "failure",
                    {"message": result.failure_message(), "type": JUNIT_FAILURE_TYPE},
                )
                failure.text = _failure_content(result)
            case TestStatus.ERROR:
                error = ET.SubElement(
                    case,
                    "error",
                    {"message": result.failure_message(), "type": "Error"},
                )
                error.text = result.error_message or ""
            case TestStatus.SKIPPED:
                ET.SubElement(case, "skipped", {"message": "Test marked as skipped"})

    ET.indent(suite, space="  ")
    return XML_HEADER + ET.tostring(suite, encoding="unicode")

"""Tests for machine-readable result formats."""

import json
import xml.etree.ElementTree as ET

import pytest
import yaml

from koncur.errors import KoncurError
from koncur.reporting import OutputFormat, TestResult, TestStatus, TestSummary, format_results
from koncur.results import Discrepancy


@pytest.fixture
def summary() -> TestSummary:
    """A run with one test of each status."""
    return TestSummary.from_results(
        [
            TestResult(name="passes", status=TestStatus.PASSED, duration=1.25),
            TestResult(
                name="drifts",
                status=TestStatus.FAILED,
                duration=2.0,
                exit_code=0,
                expected_exit_code=0,
                validation_errors=[
                    Discrepancy(path="rs/tags/java", message="missing"),
                    Discrepancy(path="ruleset/extra", message="unexpected ruleset found"),
                ],
            ),
            TestResult(
                name="crashes",
                status=TestStatus.ERROR,
                error_message="Failed to parse analysis output",
            ),
            TestResult(name="later", status=TestStatus.SKIPPED),
        ],
        duration=4.5,
    )


class TestTestSummary:
    """Test summary aggregation."""

    def test_counts_results_by_status(self, summary):
        """Test that each status is counted."""
        assert (summary.total, summary.passed, summary.failed) == (4, 1, 1)
        assert (summary.errors, summary.skipped) == (1, 1)
        assert not summary.successful

    def test_duration_defaults_to_sum_of_tests(self):
        """Test that the run duration falls back to the test durations."""
        result = TestSummary.from_results(
            [
                TestResult(name="a", status=TestStatus.PASSED, duration=1.0),
                TestResult(name="b", status=TestStatus.PASSED, duration=2.5),
            ]
        )

        assert result.duration == 3.5
        assert result.successful


class TestFormatResults:
    """Test format_results."""

    def test_json_uses_camel_case_keys(self, summary):
        """Test that JSON output uses camelCase and omits unset fields."""
        document = json.loads(format_results(summary, OutputFormat.JSON))

        drifted = document["tests"][1]
        assert drifted["validationErrors"][0]["path"] == "rs/tags/java"
        assert drifted["expectedExitCode"] == 0
        assert "errorMessage" not in drifted
        assert document["tests"][2]["errorMessage"] == "Failed to parse analysis output"

    def test_yaml_round_trips_to_same_document(self, summary):
        """Test that YAML output carries the same data as JSON."""
        as_yaml = yaml.safe_load(format_results(summary, "yaml"))
        as_json = json.loads(format_results(summary, "json"))

        assert as_yaml == as_json

    def test_junit_structure(self, summary):
        """Test the JUnit suite attributes and test cases."""
        text = format_results(summary, OutputFormat.JUNIT)

        assert text.startswith('<?xml version="1.0" encoding="UTF-8"?>\n')
        suite = ET.fromstring(text.split("\n", 1)[1])
        assert suite.tag == "testsuite"
        assert suite.get("name") == "koncur-tests"
        assert (suite.get("tests"), suite.get("failures")) == ("4", "1")
        assert (suite.get("errors"), suite.get("skipped")) == ("1", "1")
        assert suite.get("time") == "4.500"
        cases = suite.findall("testcase")
        assert [case.get("name") for case in cases] == [
            "passes",
            "drifts",
            "crashes",
            "later",
        ]
        assert {case.get("classname") for case in cases} == {"koncur"}
        assert cases[0].get("time") == "1.250"

    def test_junit_failure_lists_numbered_discrepancies(self, summary):
        """Test the failure element content for a failed test."""
        suite = ET.fromstring(format_results(summary, "junit").split("\n", 1)[1])

        failure = suite.findall("testcase")[1].find("failure")

        assert failure is not None
        assert failure.get("type") == "ValidationError"
        assert failure.get("message") == "2 validation error(s)"
        assert "[1] rs/tags/java: missing" in failure.text
        assert "[2] ruleset/extra: unexpected ruleset found" in failure.text

    def test_junit_error_and_skip_elements(self, summary):
        """Test that errored and skipped tests get their own elements."""
        suite = ET.fromstring(format_results(summary, "junit").split("\n", 1)[1])
        cases = suite.findall("testcase")

        assert cases[2].find("error").get("message") == "Failed to parse analysis output"
        assert cases[3].find("skipped").get("message") == "Test marked as skipped"
        assert cases[0].find("failure") is None

    def test_junit_reports_exit_code_mismatch(self):
        """Test that an exit code mismatch is described in the failure."""
        summary = TestSummary.from_results(
            [
                TestResult(
                    name="exit",
                    status=TestStatus.FAILED,
                    exit_code=1,
                    expected_exit_code=0,
                    error_message="Exit code mismatch: expected 0, got 1",
                )
            ]
        )

        suite = ET.fromstring(format_results(summary, "junit").split("\n", 1)[1])
        failure = suite.find("testcase").find("failure")

        assert failure.get("message") == "Exit code mismatch: expected 0, got 1"
        assert failure.text.startswith("Exit code mismatch: expected 0, got 1")

    def test_console_has_no_text_rendering(self, summary):
        """Test that the console format is rejected."""
        with pytest.raises(KoncurError, match="Unsupported output format"):
            format_results(summary, OutputFormat.CONSOLE)

"""Per-test and per-run result records."""

from __future__ import annotations

from collections.abc import Sequence
from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from koncur.results import Discrepancy

__all__ = ["TestResult", "TestStatus", "TestSummary"]


class TestStatus(StrEnum):
    """Outcome of a single test."""

    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"
    SKIPPED = "skipped"


class _ReportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TestResult(_ReportModel):
    """Result of running one test definition."""

    __test__: ClassVar[bool] = False

    name: str
    test_file: str = ""
    status: TestStatus
    duration: float = Field(default=0.0, ge=0, description="Seconds")
    exit_code: int | None = None
    expected_exit_code: int | None = None
    validation_errors: list[Discrepancy] = Field(default_factory=list)
    normalization_errors: list[str] = Field(default_factory=list)
    error_message: str | None = None
    rulesets_count: int | None = None
    filtered_from: int | None = None

    @property
    def exit_code_mismatch(self) -> bool:
        """True when both exit codes are known and differ."""
        return (
            self.exit_code is not None
            and self.expected_exit_code is not None
            and self.exit_code != self.expected_exit_code
        )

    def failure_message(self) -> str:
        """Short reason for a failed or errored test."""
        if self.error_message:
            return self.error_message
        if self.validation_errors:
            return f"{len(self.validation_errors)} validation error(s)"
        if self.exit_code_mismatch:
            return (
                f"exit code mismatch: expected {self.expected_exit_code}, "
                f"got {self.exit_code}"
            )
        return ""


class TestSummary(_ReportModel):
    """Aggregate of all test results in a run."""

    __test__: ClassVar[bool] = False

    total: int = 0
    passed: int = 0
    failed: int = 0
    errors: int = 0
    skipped: int = 0
    duration: float = Field(default=0.0, ge=0, description="Seconds")
    tests: list[TestResult] = Field(default_factory=list)

    @classmethod
    def from_results(
        cls, results: Sequence[TestResult], duration: float | None = None
    ) -> TestSummary:
        """Build a summary, counting results by status.

        Args:
            results: Individual test results
            duration: Wall-clock run time; defaults to the sum of test durations

        """
        counts = {status: 0 for status in TestStatus}
        for result in results:
            counts[result.status] += 1
        return cls(
            total=len(results),
            passed=counts[TestStatus.PASSED],
            failed=counts[TestStatus.FAILED],
            errors=counts[TestStatus.ERROR],
            skipped=counts[TestStatus.SKIPPED],
            duration=duration if duration is not None else sum(r.duration for r in results),
            tests=list(results),
        )

    @property
    def successful(self) -> bool:
        """True when no test failed or errored."""
        return self.failed == 0 and self.errors == 0

"""Evaluates a backend execution against a test definition."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from pathlib import Path
from typing import ClassVar

from koncur.comparers import BackendKind, comparer_for
from koncur.definitions import TestDefinition, TestDefinitionLoader, is_test_skipped
from koncur.errors import KoncurError, ParseError
from koncur.execution import ExecutionResult, Target
from koncur.loader import OutputLoader
from koncur.paths import PathNormalizer
from koncur.reporting.models import TestResult, TestStatus, TestSummary
from koncur.validator import Validator

logger = logging.getLogger(__name__)

__all__ = ["TestRunner"]


class TestRunner:
    """Turns an execution result into a pass/fail/error verdict.

    Structural problems (no output, unreadable output, a test without an
    expectation) produce ``error``; a wrong exit code or any discrepancy
    produces ``failed``.
    """

    __test__: ClassVar[bool] = False

    def __init__(
        self,
        backend_kind: BackendKind | str | None = None,
        normalizer: PathNormalizer | None = None,
    ) -> None:
        """Initialise the runner.

        Args:
            backend_kind: Backend to compare for when the execution does not
                say which backend produced it
            normalizer: Path normaliser; defaults to the built-in rules

        """
        self.backend_kind = backend_kind
        self.normalizer = normalizer

    def run(
        self,
        test: TestDefinition,
        execution: ExecutionResult,
        test_file: Path | None = None,
    ) -> TestResult:
        """Evaluate ``execution`` against ``test``.

        Args:
            test: Loaded test definition with its expected output
            execution: What the backend produced
            test_file: Test file path to record; defaults to the definition's source

        Returns:
            The test result

        Raises:
            UnknownBackendError: If the backend kind is not recognised

        """
        source = test_file or test.source_path
        result = TestResult(
            name=test.name,
            test_file=str(source) if source else "",
            status=TestStatus.ERROR,
            duration=execution.duration_seconds,
            exit_code=execution.exit_code,
            expected_exit_code=test.expect.exit_code,
        )
        comparer = comparer_for(execution.backend_kind or self.backend_kind)

        if execution.error:
            return self._errored(result, f"Execution failed: {execution.error}")

        if result.exit_code_mismatch:
            logger.info(
                "Test %s: exit code mismatch (expected %d, got %d)",
                test.name,
                test.expect.exit_code,
                execution.exit_code,
            )
            return result.model_copy(
                update={
                    "status": TestStatus.FAILED,
                    "error_message": (
                        f"Exit code mismatch: expected {test.expect.exit_code}, "
                        f"got {execution.exit_code}"
                    ),
                }
            )

        if test.expect.output.result is None:
            return self._errored(
                result, f"Expected output was not loaded: {test.expect.output.file}"
            )

        try:
            raw = execution.read_output()
        except OSError as e:
            return self._errored(result, f"Cannot read analysis output: {e}")
        if raw is None:
            return self._errored(result, "Analysis produced no output")

        loader = OutputLoader(working_dir=test.test_dir, normalizer=self.normalizer)
        try:
            actual = loader.load(raw)
        except ParseError as e:
            return self._errored(result, f"Failed to parse analysis output: {e}")
        expected = loader.prepare(test.expect.output.rulesets)

        validation = Validator(comparer).validate(
            expected.rulesets,
            actual.rulesets,
            [*expected.normalization_errors, *actual.normalization_errors],
        )

        status = TestStatus.PASSED if validation.passed else TestStatus.FAILED
        logger.info(
            "Test %s %s (%d discrepancies, comparer %s)",
            test.name,
            status,
            len(validation.discrepancies),
            comparer.name,
        )
        return result.model_copy(
            update={
                "status": status,
                "validation_errors": validation.discrepancies,
                "normalization_errors": validation.normalization_errors,
                "rulesets_count": len(actual.rulesets),
                "filtered_from": actual.total_rulesets,
            }
        )

    @staticmethod
    def _errored(result: TestResult, message: str) -> TestResult:
        logger.error("Test %s errored: %s", result.name, message)
        return result.model_copy(
            update={"status": TestStatus.ERROR, "error_message": message}
        )

    def run_safely(
        self,
        test: TestDefinition,
        execution: ExecutionResult,
        test_file: Path | None = None,
    ) -> TestResult:
        """Like ``run`` but reports koncur errors as an ``error`` result."""
        try:
            return self.run(test, execution, test_file)
        except KoncurError as e:
            source = test_file or test.source_path
            return self._errored(
                TestResult(
                    name=test.name,
                    test_file=str(source) if source else "",
                    status=TestStatus.ERROR,
                    duration=execution.duration_seconds,
                ),
                str(e),
            )

    def run_tests(self, test_files: Sequence[Path], target: Target) -> TestSummary:
        """Execute and evaluate every test file against ``target``.

        Tests marked as skipped are reported without being loaded. A test that
        cannot be loaded or executed becomes an ``error`` result and the run
        carries on with the next one.

        Args:
            test_files: Test definition files, usually from ``find_test_files``
            target: Backend that executes each test

        Returns:
            Summary of all results with the wall-clock duration of the run

        """
        started = time.perf_counter()
        results = []
        for index, test_file in enumerate(test_files, start=1):
            logger.info("[%d/%d] Running %s", index, len(test_files), test_file)
            results.append(self._run_test_file(test_file, target))
        return TestSummary.from_results(
            results, duration=time.perf_counter() - started
        )

    def _run_test_file(self, test_file: Path, target: Target) -> TestResult:
        case_name = test_file.parent.name
        if is_test_skipped(test_file):
            logger.info("Skipping %s: marked as skipped", case_name)
            return TestResult(
                name=case_name, test_file=str(test_file), status=TestStatus.SKIPPED
            )

        try:
            test = TestDefinitionLoader.load(test_file)
            execution = target.execute(test)
        except KoncurError as e:
            return self._errored(
                TestResult(
                    name=case_name, test_file=str(test_file), status=TestStatus.ERROR
                ),
                str(e),
            )
        return self.run_safely(test, execution, test_file)

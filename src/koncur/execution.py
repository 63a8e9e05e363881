"""Contract between backend executors and the comparison engine.

Executors run an analysis (a local binary, a hub task, an IDE extension) and
hand back the exit code plus the raw findings document. Running them is not
part of this package; only the shape of what they return is.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

from koncur.comparers import BackendKind
from koncur.definitions import TestDefinition
from koncur.errors import ConfigError

__all__ = ["OUTPUT_FILE_NAME", "ExecutionResult", "RecordedOutputTarget", "Target"]

OUTPUT_FILE_NAME = "output.yaml"


class ExecutionResult(BaseModel):
    """Outcome of one backend execution."""

    exit_code: int = Field(description="Process or task exit code")
    output: bytes | None = Field(
        default=None, description="Raw findings document, if one was produced"
    )
    output_file: Path | None = Field(
        default=None, description="Where the findings document was read from"
    )
    backend_kind: BackendKind | None = Field(
        default=None, description="Backend that produced the output"
    )
    work_dir: Path | None = Field(
        default=None, description="Directory the execution ran in"
    )
    duration_seconds: float = Field(default=0.0, ge=0)
    stdout: str = ""
    stderr: str = ""
    error: str | None = Field(
        default=None, description="Execution failure reported by the backend"
    )

    def read_output(self) -> bytes | None:
        """Return the findings document, reading ``output_file`` if needed.

        Raises:
            OSError: If ``output_file`` is set but cannot be read

        """
        if self.output is not None:
            return self.output
        if self.output_file is not None:
            return self.output_file.read_bytes()
        return None


@runtime_checkable
class Target(Protocol):
    """A backend able to execute a test definition."""

    @property
    def name(self) -> str:
        """Backend name, e.g. 'kantra'."""
        ...

    def execute(self, test: TestDefinition) -> ExecutionResult:
        """Run the analysis described by ``test``."""
        ...


class RecordedOutputTarget:
    """Serves findings documents that a backend has already written to disk.

    The output directory mirrors the test tree: the test at
    ``<tests_root>/<case>/test.yaml`` is answered by
    ``<output_root>/<case>/output.yaml``.
    """

    def __init__(
        self,
        output_root: Path,
        tests_root: Path,
        backend_kind: BackendKind | None = None,
        exit_code: int = 0,
    ) -> None:
        """Initialise the target.

        Args:
            output_root: Directory holding one recorded output per test case
            tests_root: Directory the test definitions were discovered in
            backend_kind: Backend that produced the recorded outputs
            exit_code: Exit code the recorded runs finished with

        """
        self.output_root = output_root
        self.tests_root = tests_root.resolve()
        self.backend_kind = backend_kind
        self.exit_code = exit_code

    @property
    def name(self) -> str:
        """Backend the outputs were recorded from."""
        return str(self.backend_kind or "recorded")

    def output_path_for(self, test: TestDefinition) -> Path:
        """Return where the recorded output for ``test`` is expected.

        Raises:
            ConfigError: If the test was not loaded from below ``tests_root``

        """
        test_dir = test.test_dir
        if test_dir is None or not test_dir.is_relative_to(self.tests_root):
            raise ConfigError(f"Test {test.name} is not under {self.tests_root}")
        case_dir = test_dir.relative_to(self.tests_root)
        return self.output_root / case_dir / OUTPUT_FILE_NAME

    def execute(self, test: TestDefinition) -> ExecutionResult:
        """Return the recorded output for ``test``, or an execution error if none exists."""
        output_file = self.output_path_for(test)
        if not output_file.is_file():
            return ExecutionResult(
                exit_code=self.exit_code,
                backend_kind=self.backend_kind,
                work_dir=test.test_dir,
                error=f"No recorded output at {output_file}",
            )
        return ExecutionResult(
            exit_code=self.exit_code,
            output_file=output_file,
            backend_kind=self.backend_kind,
            work_dir=test.test_dir,
        )

"""Test definitions and target configuration with Pydantic validation.

A test definition names the application to analyse, how to analyse it and the
expected outcome: an exit code plus the expected findings document, either
inline (``result``) or in a file next to the test (``file``). Target
configuration selects the execution backend that produces the actual output.
"""

from __future__ import annotations

import logging
import re
from datetime import timedelta
from enum import StrEnum
from pathlib import Path
from typing import Any, ClassVar

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from koncur.comparers import BackendKind
from koncur.errors import ConfigError, ConfigLoadError, ConfigValidationError, ParseError
from koncur.loader import load_output_file
from koncur.schemas import RuleSet

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_TIMEOUT",
    "DEFAULT_WORK_DIR",
    "AnalysisConfig",
    "AnalysisMode",
    "ExpectConfig",
    "ExpectedOutput",
    "TargetConfig",
    "TargetConfigLoader",
    "TestDefinition",
    "TestDefinitionLoader",
    "find_test_files",
    "is_test_skipped",
    "parse_duration",
]

DEFAULT_TIMEOUT = timedelta(minutes=5)
DEFAULT_WORK_DIR = ".koncur/output"
TEST_FILE_NAME = "test.yaml"
SKIP_MARKERS = ("SKIPPED:", "# SKIPPED")
SKIP_MARKER_WINDOW = 500

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|us|µs|ns|h|m|s)")
_DURATION_UNITS = {
    "h": timedelta(hours=1),
    "m": timedelta(minutes=1),
    "s": timedelta(seconds=1),
    "ms": timedelta(milliseconds=1),
    "us": timedelta(microseconds=1),
    "µs": timedelta(microseconds=1),
    "ns": timedelta(microseconds=0.001),
}


def parse_duration(value: str) -> timedelta:
    """Parse a duration string such as ``90s``, ``5m`` or ``1h30m``.

    Raises:
        ValueError: If the string is not a sequence of number+unit parts

    """
    text = value.strip()
    if not text:
        raise ValueError("empty duration")

    total = timedelta()
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position != len(text):
        raise ValueError(f"invalid duration: {value!r}")
    return total


class _ConfigModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AnalysisMode(StrEnum):
    """Depth of the analysis run."""

    FULL = "full"
    SOURCE_ONLY = "source-only"


class AnalysisConfig(_ConfigModel):
    """What to analyse."""

    application: str = Field(
        min_length=1, description="Application path or git repository URL"
    )
    label_selector: str | None = Field(
        default=None, alias="labelSelector", description="Rule label selector"
    )
    analysis_mode: AnalysisMode = Field(alias="analysisMode", description="Analysis mode")


class ExpectedOutput(_ConfigModel):
    """Expected findings document, inline or by file reference."""

    result: list[RuleSet] | None = Field(
        default=None, description="Inline expected rulesets"
    )
    file: str | None = Field(
        default=None, description="Path to a YAML file holding the expected rulesets"
    )
    resolved_file: Path | None = Field(
        default=None,
        exclude=True,
        description="Absolute path the inline result was loaded from",
    )

    @model_validator(mode="after")
    def validate_exactly_one_source(self) -> ExpectedOutput:
        """Ensure exactly one of ``result`` or ``file`` is set."""
        has_result = self.result is not None
        has_file = bool(self.file)
        if not has_result and not has_file:
            raise ValueError("expected output must specify either 'result' or 'file'")
        if has_result and has_file and self.resolved_file is None:
            raise ValueError("expected output cannot specify both 'result' and 'file'")
        return self

    @property
    def rulesets(self) -> list[RuleSet]:
        """The materialised expected rulesets."""
        return self.result or []


class ExpectConfig(_ConfigModel):
    """Expected outcome of a test."""

    exit_code: int = Field(default=0, alias="exitCode", description="Expected exit code")
    output: ExpectedOutput = Field(description="Expected findings document")


class TestDefinition(_ConfigModel):
    """A single analysis test case."""

    __test__: ClassVar[bool] = False

    name: str = Field(min_length=1, description="Test name")
    description: str = Field(default="", description="What the test covers")
    analysis: AnalysisConfig = Field(description="What to analyse")
    timeout: timedelta | None = Field(
        default=None, description="Execution timeout, e.g. '10m'"
    )
    work_dir: str | None = Field(
        default=None, alias="workDir", description="Directory for execution artefacts"
    )
    expect: ExpectConfig = Field(description="Expected outcome")
    source_path: Path | None = Field(
        default=None, exclude=True, description="File the definition was loaded from"
    )

    @field_validator("timeout", mode="before")
    @classmethod
    def parse_timeout(cls, value: Any) -> Any:  # noqa: ANN401
        """Accept duration strings like '90s' or '1h30m'."""
        if isinstance(value, str):
            return parse_duration(value)
        return value

    def get_timeout(self) -> timedelta:
        """Return the execution timeout, defaulting to five minutes."""
        return self.timeout if self.timeout is not None else DEFAULT_TIMEOUT

    def get_work_dir(self) -> str:
        """Return the work directory, defaulting to ``.koncur/output``."""
        return self.work_dir or DEFAULT_WORK_DIR

    @property
    def test_dir(self) -> Path | None:
        """Absolute directory of the test file, stripped from incident paths."""
        if self.source_path is None:
            return None
        return self.source_path.resolve().parent


class TargetConfig(_ConfigModel):
    """Execution backend selection.

    Backend-specific sections are carried through for the execution layer and
    are not interpreted here.
    """

    type: BackendKind = Field(description="Execution backend")
    kantra: dict[str, Any] | None = None
    tackle_hub: dict[str, Any] | None = Field(default=None, alias="tackleHub")
    tackle_ui: dict[str, Any] | None = Field(default=None, alias="tackleUI")
    kai_rpc: dict[str, Any] | None = Field(default=None, alias="kaiRPC")
    vscode: dict[str, Any] | None = None


def _format_validation_error(error: ValidationError) -> str:
    details: list[str] = []
    for item in error.errors():
        location = " -> ".join(str(part) for part in item["loc"]) if item["loc"] else "root"
        details.append(f"  {location}: {item['msg']}")
    return "\n".join(details)


def _load_yaml_mapping(file_path: Path) -> dict[str, Any]:
    try:
        with open(file_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Invalid YAML in {file_path}: {e}") from e
    except OSError as e:
        raise ConfigLoadError(f"Cannot read file {file_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigValidationError(f"{file_path} must contain a YAML mapping")
    return data


class TestDefinitionLoader:
    """Loads YAML test definitions into validated models."""

    __test__: ClassVar[bool] = False

    @classmethod
    def load(cls, path: Path, skip_expected_output: bool = False) -> TestDefinition:
        """Load and validate a test definition.

        A ``file`` expectation is resolved relative to the test file and loaded
        into ``result``.

        Args:
            path: Path to the test YAML file
            skip_expected_output: Leave a ``file`` expectation unloaded, for
                callers that are about to generate it

        Returns:
            Validated test definition

        Raises:
            ConfigLoadError: If the test or its expected output cannot be read
            ConfigValidationError: If the test definition is invalid

        """
        logger.debug("Loading test definition from: %s", path)
        raw = _load_yaml_mapping(path)

        if not skip_expected_output:
            cls._materialise_expected_output(raw, path)

        try:
            test = TestDefinition.model_validate({**raw, "source_path": path})
        except ValidationError as e:
            raise ConfigValidationError(
                f"Test definition validation failed ({path}):\n"
                + _format_validation_error(e)
            ) from e

        logger.info("Loaded test definition: %s", test.name)
        return test

    @staticmethod
    def _materialise_expected_output(raw: dict[str, Any], path: Path) -> None:
        expect = raw.get("expect")
        if not isinstance(expect, dict):
            return
        output = expect.get("output")
        if not isinstance(output, dict) or not output.get("file"):
            return

        expected_path = Path(str(output["file"]))
        if not expected_path.is_absolute():
            expected_path = path.parent / expected_path

        try:
            rulesets = load_output_file(expected_path)
        except ParseError as e:
            raise ConfigLoadError(
                f"Failed to load expected output from {output['file']}: {e}"
            ) from e

        logger.debug("Loaded %d expected rulesets from %s", len(rulesets), expected_path)
        expect["output"] = {
            **output,
            "result": rulesets,
            "resolved_file": expected_path.resolve(),
        }


class TargetConfigLoader:
    """Loads YAML target configuration."""

    @classmethod
    def load(cls, path: Path) -> TargetConfig:
        """Load and validate a target configuration file.

        Raises:
            ConfigLoadError: If the file cannot be read or parsed
            ConfigValidationError: If the configuration is invalid

        """
        raw = _load_yaml_mapping(path)
        try:
            return TargetConfig.model_validate(raw)
        except ValidationError as e:
            raise ConfigValidationError(
                f"Target configuration validation failed ({path}):\n"
                + _format_validation_error(e)
            ) from e


def find_test_files(directory: Path) -> list[Path]:
    """Recursively find ``test.yaml`` files below ``directory``.

    Raises:
        ConfigError: If ``directory`` is not a directory

    """
    if not directory.is_dir():
        raise ConfigError(f"Not a directory: {directory}")
    return sorted(directory.rglob(TEST_FILE_NAME))


def is_test_skipped(path: Path) -> bool:
    """Check for a SKIPPED marker near the top of a test file."""
    try:
        head = path.read_text(encoding="utf-8", errors="replace")[:SKIP_MARKER_WINDOW]
    except OSError:
        return False
    return any(marker in head for marker in SKIP_MARKERS)

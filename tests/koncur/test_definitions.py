"""Tests for test definition and target configuration loading."""

from datetime import timedelta
from pathlib import Path

import pytest

from koncur.comparers import BackendKind
from koncur.definitions import (
    DEFAULT_TIMEOUT,
    DEFAULT_WORK_DIR,
    AnalysisMode,
    TargetConfigLoader,
    TestDefinitionLoader,
    find_test_files,
    is_test_skipped,
    parse_duration,
)
from koncur.errors import ConfigError, ConfigLoadError, ConfigValidationError

INLINE_TEST = """
name: inline-expectation
analysis:
  application: /apps/petclinic
  analysisMode: full
expect:
  exitCode: 0
  output:
    result:
      - name: cloud-readiness
        tags: [Servlet]
"""


def _write(directory: Path, content: str, name: str = "test.yaml") -> Path:
    path = directory / name
    path.write_text(content)
    return path


class TestParseDuration:
    """Test duration string parsing."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("90s", timedelta(seconds=90)),
            ("5m", timedelta(minutes=5)),
            ("1h30m", timedelta(hours=1, minutes=30)),
            ("1.5h", timedelta(minutes=90)),
            ("250ms", timedelta(milliseconds=250)),
        ],
    )
    def test_parses_duration_strings(self, text, expected):
        """Test that unit-suffixed durations are parsed."""
        assert parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "10", "5 minutes", "m5"])
    def test_rejects_invalid_durations(self, text):
        """Test that malformed durations raise ValueError."""
        with pytest.raises(ValueError):
            parse_duration(text)


class TestTestDefinitionLoader:
    """Test TestDefinitionLoader."""

    def test_loads_file_expectation_relative_to_test(self, fixtures_dir):
        """Test that an expected output file is resolved next to the test."""
        test = TestDefinitionLoader.load(fixtures_dir / "servlet" / "test.yaml")

        assert test.name == "servlet-session"
        assert test.analysis.analysis_mode is AnalysisMode.SOURCE_ONLY
        assert test.analysis.label_selector == "konveyor.io/target=cloud-readiness"
        assert test.get_timeout() == timedelta(minutes=10)
        assert [rs.name for rs in test.expect.output.rulesets] == ["cloud-readiness"]
        assert test.expect.output.resolved_file == (
            fixtures_dir / "servlet" / "expected.yaml"
        ).resolve()
        assert test.test_dir == (fixtures_dir / "servlet").resolve()

    def test_loads_inline_expectation_with_defaults(self, tmp_path):
        """Test inline results and default timeout and work directory."""
        test = TestDefinitionLoader.load(_write(tmp_path, INLINE_TEST))

        assert test.expect.output.rulesets[0].tags == ["Servlet"]
        assert test.get_timeout() == DEFAULT_TIMEOUT
        assert test.get_work_dir() == DEFAULT_WORK_DIR

    def test_skip_expected_output_leaves_file_unloaded(self, tmp_path):
        """Test that a missing expected file is tolerated when skipping it."""
        path = _write(
            tmp_path,
            INLINE_TEST.replace(
                "result:\n      - name: cloud-readiness\n        tags: [Servlet]",
                "file: not-generated-yet.yaml",
            ),
        )

        test = TestDefinitionLoader.load(path, skip_expected_output=True)

        assert test.expect.output.result is None
        assert test.expect.output.file == "not-generated-yet.yaml"

    def test_missing_expected_file_raises_load_error(self, tmp_path):
        """Test that an unreadable expected output file is reported."""
        path = _write(
            tmp_path,
            INLINE_TEST.replace(
                "result:\n      - name: cloud-readiness\n        tags: [Servlet]",
                "file: missing.yaml",
            ),
        )

        with pytest.raises(ConfigLoadError, match="missing.yaml"):
            TestDefinitionLoader.load(path)

    def test_result_and_file_together_are_rejected(self, tmp_path):
        """Test that only one expectation source may be given."""
        path = _write(
            tmp_path,
            INLINE_TEST.replace("output:\n", "output:\n    file: expected.yaml\n"),
        )

        with pytest.raises(ConfigValidationError, match="cannot specify both"):
            TestDefinitionLoader.load(path, skip_expected_output=True)

    def test_missing_expectation_is_rejected(self, tmp_path):
        """Test that an expectation without result or file is invalid."""
        path = _write(
            tmp_path,
            "name: t\nanalysis:\n  application: /a\n  analysisMode: full\n"
            "expect:\n  output: {}\n",
        )

        with pytest.raises(ConfigValidationError, match="either 'result' or 'file'"):
            TestDefinitionLoader.load(path)

    def test_validation_errors_name_the_field(self, tmp_path):
        """Test that validation details point at the offending field."""
        path = _write(tmp_path, INLINE_TEST.replace("analysisMode: full", "analysisMode: deep"))

        with pytest.raises(ConfigValidationError) as exc_info:
            TestDefinitionLoader.load(path)

        assert "analysis -> analysisMode" in str(exc_info.value)

    def test_invalid_yaml_raises_load_error(self, tmp_path):
        """Test that unparsable YAML is a load error."""
        with pytest.raises(ConfigLoadError, match="Invalid YAML"):
            TestDefinitionLoader.load(_write(tmp_path, "name: [broken"))

    def test_non_mapping_document_is_rejected(self, tmp_path):
        """Test that a test file must hold a mapping."""
        with pytest.raises(ConfigValidationError, match="YAML mapping"):
            TestDefinitionLoader.load(_write(tmp_path, "- just\n- a list\n"))


class TestTargetConfigLoader:
    """Test TargetConfigLoader."""

    def test_loads_backend_type_and_section(self, fixtures_dir):
        """Test that the backend type and its settings are loaded."""
        config = TargetConfigLoader.load(fixtures_dir / "target-hub.yaml")

        assert config.type is BackendKind.TACKLE_HUB
        assert config.tackle_hub == {"url": "http://localhost:8080/hub"}

    def test_unknown_type_is_rejected(self, tmp_path):
        """Test that only known backends are accepted."""
        with pytest.raises(ConfigValidationError, match="type"):
            TargetConfigLoader.load(_write(tmp_path, "type: eclipse\n", "target.yaml"))


class TestTestDiscovery:
    """Test test file discovery and skip markers."""

    def test_finds_test_files_recursively(self, tmp_path):
        """Test that nested test.yaml files are found in sorted order."""
        (tmp_path / "b" / "nested").mkdir(parents=True)
        (tmp_path / "a").mkdir()
        _write(tmp_path / "b" / "nested", INLINE_TEST)
        _write(tmp_path / "a", INLINE_TEST)
        _write(tmp_path / "a", "ignored", "other.yaml")

        found = find_test_files(tmp_path)

        assert found == [
            tmp_path / "a" / "test.yaml",
            tmp_path / "b" / "nested" / "test.yaml",
        ]

    def test_find_requires_directory(self, tmp_path):
        """Test that a non-directory is rejected."""
        with pytest.raises(ConfigError, match="Not a directory"):
            find_test_files(tmp_path / "missing")

    @pytest.mark.parametrize(
        ("header", "skipped"),
        [
            ("# SKIPPED: waiting on analyser fix\n", True),
            ("description: 'SKIPPED: flaky'\n", True),
            ("", False),
        ],
    )
    def test_skip_marker_detection(self, tmp_path, header, skipped):
        """Test that SKIPPED markers near the top of the file are detected."""
        assert is_test_skipped(_write(tmp_path, header + INLINE_TEST)) is skipped

    def test_skip_marker_beyond_window_is_ignored(self, tmp_path):
        """Test that only the start of the file is inspected."""
        content = INLINE_TEST + "#" * 600 + "\n# SKIPPED\n"

        assert is_test_skipped(_write(tmp_path, content)) is False

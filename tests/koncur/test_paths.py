"""Tests for file reference normalisation."""

import re

import pytest

from koncur.errors import NormalizationError
from koncur.paths import DEFAULT_RULES, NormalizationRule, PathNormalizer, normalize_uri


class TestPathNormalizer:
    """Test PathNormalizer rewriting rules."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (
                "file:///root/.m2/repository/org/acme/lib/1.0/lib-1.0.jar",
                "file:///m2/org/acme/lib/1.0/lib-1.0.jar",
            ),
            ("/cache/m2/org/acme/lib.jar", "/m2/org/acme/lib.jar"),
            ("/addon/.m2/repository/org/acme/lib.jar", "/m2/org/acme/lib.jar"),
            ("file:///shared/source/src/App.java", "file:///source/src/App.java"),
            ("file:///opt/input/source/src/App.java", "file:///source/src/App.java"),
            (
                "file:///tmp/java-bin-1234567/com/acme/App.java",
                "file:///source/com/acme/App.java",
            ),
            (
                "/var/folders/xy/T/java-bin-42/com/acme/App.java",
                "/source/com/acme/App.java",
            ),
        ],
    )
    def test_rewrites_backend_paths_to_canonical_form(self, raw, expected):
        """Test that each known backend location maps to its canonical form."""
        assert PathNormalizer().normalize(raw) == expected

    def test_strips_working_directory(self):
        """Test that the execution working directory is removed from paths."""
        result = PathNormalizer().normalize(
            "file:///home/ci/run-7/source/App.java", working_dir="/home/ci/run-7/"
        )

        assert result == "file:///source/App.java"

    def test_leaves_canonical_paths_untouched(self):
        """Test that already canonical paths pass through unchanged."""
        assert normalize_uri("file:///source/App.java") == "file:///source/App.java"

    @pytest.mark.parametrize(
        "raw",
        [
            "file:///root/.m2/repository/org/acme/lib.jar",
            "/cache/m2/org/acme/lib.jar",
            "file:///opt/input/source/src/App.java",
            "file:///shared/source/src/App.java",
            "file:///tmp/java-bin-99/App.java",
            "file:///shared/opt/input/source/App.java",
            "file:///tmp/java-bin-1/shared/source/App.java",
            "file:///src/MyServlet.java",
            "relative/path/App.java",
        ],
    )
    def test_normalisation_is_idempotent(self, raw):
        """Test that normalising a normalised path changes nothing."""
        once = normalize_uri(raw)

        assert normalize_uri(once) == once

    def test_rewrites_that_expose_an_earlier_pattern_are_resolved(self):
        """Test that the rule table is reapplied until the path settles."""
        assert (
            normalize_uri("file:///shared/opt/input/source/App.java")
            == "file:///source/App.java"
        )

    def test_rule_table_that_never_settles_raises(self):
        """Test that a rule which keeps growing the path is reported."""
        normalizer = PathNormalizer((NormalizationRule.literal("grow", "a", "aa"),))

        with pytest.raises(NormalizationError, match="did not settle"):
            normalizer.normalize("file:///a")

    def test_empty_input_raises_normalization_error(self):
        """Test that an empty reference is rejected rather than passed through."""
        with pytest.raises(NormalizationError) as exc_info:
            normalize_uri("")

        assert exc_info.value.uri == ""

    def test_path_emptied_by_working_directory_raises(self):
        """Test that a reference consisting only of the working dir is an error."""
        with pytest.raises(NormalizationError, match="went to empty"):
            normalize_uri("/work/dir", working_dir="/work/dir")


class TestNormalizationRules:
    """Test rule table customisation."""

    def test_default_rules_are_applied_in_order(self):
        """Test that cache rules precede source rules and the scratch rule is last."""
        names = [rule.name for rule in DEFAULT_RULES]

        assert names.index("local-maven-repo") < names.index("shared-volume-source")
        assert names[-1] == "ephemeral-java-bin"

    def test_with_rules_appends_extra_rules(self):
        """Test that extra rules run after the built-in ones."""
        normalizer = PathNormalizer().with_rules(
            NormalizationRule.literal("ide-workspace", "/workspace/project", "/source")
        )

        assert normalizer.normalize("/workspace/project/App.java") == "/source/App.java"
        assert len(normalizer.rules) == len(DEFAULT_RULES) + 1

    def test_custom_regex_rule(self):
        """Test that a regex rule rewrites every match."""
        rule = NormalizationRule("versions", re.compile(r"-\d+\.\d+"), "-X")

        assert rule.apply("lib-1.0/lib-2.3.jar") == "lib-X/lib-X.jar"

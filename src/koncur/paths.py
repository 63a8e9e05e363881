"""Normalisation of backend-specific file references.

Each execution backend reports incident locations relative to wherever it ran
the analysis: a temporary build directory, a container mount point or a shared
dependency cache. The rules below rewrite all of those into one canonical form
so the same logical file compares equal whichever backend produced it.

Rules are applied in order, and the whole table is reapplied until the path
stops changing, so normalising an already normalised path is a no-op.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from koncur.errors import NormalizationError

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_RULES",
    "NormalizationRule",
    "PathNormalizer",
    "normalize_uri",
]

# Upper bound on table passes; every default rule shortens the path
MAX_PASSES = 10


@dataclass(frozen=True, slots=True)
class NormalizationRule:
    """A single rewrite: every match of ``pattern`` becomes ``replacement``."""

    name: str
    pattern: re.Pattern[str]
    replacement: str

    @classmethod
    def literal(cls, name: str, old: str, new: str) -> NormalizationRule:
        """Build a rule that replaces a literal substring."""
        return cls(name=name, pattern=re.compile(re.escape(old)), replacement=new)

    def apply(self, value: str) -> str:
        """Apply this rule to ``value``."""
        return self.pattern.sub(self.replacement, value)


DEFAULT_RULES: tuple[NormalizationRule, ...] = (
    # Dependency caches
    NormalizationRule.literal("local-maven-repo", "/root/.m2/repository/", "/m2/"),
    NormalizationRule.literal("shared-maven-cache", "/cache/m2/", "/m2/"),
    NormalizationRule.literal("addon-maven-repo", "/addon/.m2/repository/", "/m2/"),
    # Source mounts
    NormalizationRule.literal("shared-volume-source", "/shared/source", "/source"),
    NormalizationRule.literal("container-input-source", "/opt/input/source", "/source"),
    # Ephemeral build directories, whatever temp root they live under
    NormalizationRule(
        name="ephemeral-java-bin",
        pattern=re.compile(r"^(?P<scheme>file://)?.*/java-bin-\d+/"),
        replacement=r"\g<scheme>/source/",
    ),
)


class PathNormalizer:
    """Rewrites file references into their canonical project form."""

    def __init__(self, rules: Sequence[NormalizationRule] = DEFAULT_RULES) -> None:
        """Initialise the normaliser.

        Args:
            rules: Ordered rule table; defaults to the built-in backend rules

        """
        self._rules = tuple(rules)

    @property
    def rules(self) -> tuple[NormalizationRule, ...]:
        """The ordered rule table."""
        return self._rules

    def with_rules(self, *extra: NormalizationRule) -> PathNormalizer:
        """Return a normaliser that applies ``extra`` after the current rules."""
        return PathNormalizer((*self._rules, *extra))

    def normalize(self, uri: str, working_dir: str | None = None) -> str:
        """Normalise a single file reference.

        Args:
            uri: Raw URI or path produced by a backend
            working_dir: Execution working directory to strip, if any

        Returns:
            The canonical file reference

        Raises:
            NormalizationError: If the input is empty, normalises to nothing or
                never settles

        """
        if not uri:
            raise NormalizationError("cannot normalise an empty file reference", uri)

        normalized = uri
        if working_dir:
            normalized = normalized.replace(working_dir.rstrip("/"), "")

        for _ in range(MAX_PASSES):
            rewritten = self._apply_rules(normalized)
            if rewritten == normalized:
                break
            normalized = rewritten
        else:
            raise NormalizationError(
                f"file reference did not settle after {MAX_PASSES} passes: {uri}", uri
            )

        if not normalized:
            raise NormalizationError(f"file reference went to empty: {uri}", uri)

        return normalized

    def _apply_rules(self, value: str) -> str:
        for rule in self._rules:
            rewritten = rule.apply(value)
            if rewritten != value:
                logger.debug("Rule %s rewrote %s -> %s", rule.name, value, rewritten)
            value = rewritten
        return value


_DEFAULT_NORMALIZER = PathNormalizer()


def normalize_uri(uri: str, working_dir: str | None = None) -> str:
    """Normalise ``uri`` with the built-in rule table.

    Args:
        uri: Raw URI or path produced by a backend
        working_dir: Execution working directory to strip, if any

    Returns:
        The canonical file reference

    Raises:
        NormalizationError: If the input is empty or normalises to nothing

    """
    return _DEFAULT_NORMALIZER.normalize(uri, working_dir)

"""Result model for document comparisons.

Discrepancies are data: the validator never raises on finding one, it records
it and carries on, so a single mismatch never masks others.
"""

from __future__ import annotations

import difflib
from collections.abc import Sequence
from typing import Any, override

from pydantic import BaseModel, ConfigDict, Field

from koncur.schemas import RuleSet, dump_rulesets

__all__ = ["Discrepancy", "ValidationResult", "unified_diff"]


class Discrepancy(BaseModel):
    """One reported difference between the expected and actual documents."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(
        description="Slash-delimited location, e.g. 'my-ruleset/violations/rule-007'"
    )
    message: str = Field(description="Human-readable description of the difference")
    expected: Any = Field(default=None, description="Expected value, if relevant")
    actual: Any = Field(default=None, description="Actual value, if relevant")
    details: tuple[str, ...] = Field(
        default=(), description="Individual detail mismatches grouped under this path"
    )

    @override
    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


class ValidationResult(BaseModel):
    """Outcome of comparing one actual document against its expectation."""

    discrepancies: list[Discrepancy] = Field(default_factory=list)
    normalization_errors: list[str] = Field(
        default_factory=list,
        description="Incident paths that could not be normalised before comparison",
    )

    @property
    def passed(self) -> bool:
        """True when no discrepancies were found."""
        return not self.discrepancies

    @property
    def reliable(self) -> bool:
        """False when some incident paths could not be normalised."""
        return not self.normalization_errors


def unified_diff(
    expected: Sequence[RuleSet],
    actual: Sequence[RuleSet],
    context: int = 3,
) -> str:
    """Render a unified text diff of two normalised documents.

    Kept for callers that still report differences as text rather than as
    path-addressed discrepancies. Mapping keys are sorted so that map ordering
    does not show up as a difference.

    Args:
        expected: Expected rulesets
        actual: Actual rulesets
        context: Lines of context around each change

    Returns:
        Diff text, empty when the renderings are identical

    """
    expected_lines = dump_rulesets(
        sorted(expected, key=lambda rs: rs.name), sort_keys=True
    ).splitlines(keepends=True)
    actual_lines = dump_rulesets(
        sorted(actual, key=lambda rs: rs.name), sort_keys=True
    ).splitlines(keepends=True)
    return "".join(
        difflib.unified_diff(
            expected_lines, actual_lines, fromfile="expected", tofile="actual", n=context
        )
    )

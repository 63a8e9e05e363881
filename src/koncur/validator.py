"""Diff engine comparing actual findings against an expectation.

The validator walks the ruleset -> violation/insight -> incident hierarchy and
asks the active comparer which differences matter for the backend that
produced the actual document. The output is a flat list of path-addressed
discrepancies; the document passes iff that list is empty.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from koncur.comparers import Comparer, FindingKind, StrictComparer
from koncur.errors import NormalizationError
from koncur.loader import filter_rulesets
from koncur.results import Discrepancy, ValidationResult
from koncur.schemas import RuleSet

logger = logging.getLogger(__name__)

__all__ = ["Validator", "validate"]


def _under(prefix: str, discrepancies: Iterable[Discrepancy]) -> list[Discrepancy]:
    return [
        discrepancy.model_copy(update={"path": f"{prefix}/{discrepancy.path}"})
        for discrepancy in discrepancies
    ]


class Validator:
    """Compares findings documents using one comparer strategy."""

    def __init__(self, comparer: Comparer | None = None) -> None:
        """Initialise the validator.

        Args:
            comparer: Tolerance policy for the backend; defaults to strict

        """
        self.comparer = comparer or StrictComparer()

    def validate(
        self,
        expected: Sequence[RuleSet],
        actual: Sequence[RuleSet],
        normalization_errors: Iterable[NormalizationError] = (),
    ) -> ValidationResult:
        """Compare ``actual`` against ``expected``.

        Empty rulesets are dropped from both sides first, so emptiness never
        produces a mismatch on its own.

        Args:
            expected: Expected rulesets
            actual: Actual rulesets, already normalised
            normalization_errors: Path failures collected while loading

        Returns:
            All discrepancies found; never raises on a discrepancy

        """
        expected = filter_rulesets(expected)
        actual = filter_rulesets(actual)

        actual_by_name: dict[str, RuleSet] = {}
        for ruleset in actual:
            actual_by_name.setdefault(ruleset.name, ruleset)
        expected_names = {ruleset.name for ruleset in expected}

        discrepancies: list[Discrepancy] = []
        for expected_ruleset in expected:
            actual_ruleset = actual_by_name.get(expected_ruleset.name)
            if actual_ruleset is None:
                logger.info("Ruleset %s not found in actual output", expected_ruleset.name)
                discrepancies.append(
                    Discrepancy(
                        path=f"ruleset/{expected_ruleset.name}",
                        message="missing",
                        expected=expected_ruleset.name,
                    )
                )
                continue
            discrepancies.extend(self.compare_ruleset(expected_ruleset, actual_ruleset))

        for actual_ruleset in actual:
            if actual_ruleset.name not in expected_names:
                discrepancies.append(
                    Discrepancy(
                        path=f"ruleset/{actual_ruleset.name}",
                        message="unexpected ruleset found",
                        actual=actual_ruleset.name,
                    )
                )

        result = ValidationResult(
            discrepancies=discrepancies,
            normalization_errors=[str(error) for error in normalization_errors],
        )
        logger.info(
            "Validation with %s %s: %d discrepancies",
            self.comparer.name,
            "passed" if result.passed else "failed",
            len(discrepancies),
        )
        return result

    def compare_ruleset(self, expected: RuleSet, actual: RuleSet) -> list[Discrepancy]:
        """Compare two rulesets that share a name.

        Returns:
            Discrepancies with paths prefixed by the ruleset name

        """
        comparer = self.comparer
        name = expected.name
        discrepancies: list[Discrepancy] = []

        discrepancies.extend(
            _under(f"{name}/errors", comparer.compare_errors(expected.errors, actual.errors))
        )
        discrepancies.extend(
            _under(f"{name}/tags", comparer.compare_tags(expected.tags, actual.tags))
        )
        for kind, expected_map, actual_map in (
            (FindingKind.INSIGHT, expected.insights, actual.insights),
            (FindingKind.VIOLATION, expected.violations, actual.violations),
        ):
            discrepancies.extend(
                _under(
                    f"{name}/{kind.section}",
                    comparer.compare_violation_map(expected_map, actual_map, kind),
                )
            )
        discrepancies.extend(
            _under(
                f"{name}/unmatched",
                comparer.compare_unmatched(expected.unmatched, actual.unmatched),
            )
        )
        discrepancies.extend(
            _under(
                f"{name}/skipped",
                comparer.compare_skipped(expected.skipped, actual.skipped),
            )
        )

        if discrepancies:
            logger.debug("Ruleset %s: %d discrepancies", name, len(discrepancies))
        return discrepancies


def validate(
    expected: Sequence[RuleSet],
    actual: Sequence[RuleSet],
    comparer: Comparer | None = None,
) -> ValidationResult:
    """Compare ``actual`` against ``expected`` with ``comparer``.

    Convenience wrapper around ``Validator``.
    """
    return Validator(comparer).validate(expected, actual)

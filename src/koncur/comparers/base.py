"""Abstract comparer strategy.

A comparer decides which fields of a findings document are authoritative for
one execution backend. The generic algorithms (set and map comparison, the
incident matching scan) live here; concrete strategies only override the
capability methods whose tolerance differs for their backend.

All comparer methods return discrepancies with paths relative to the section
being compared; the validator prefixes them with the owning ruleset.
"""

from __future__ import annotations

import abc
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import ClassVar

from koncur.comparers.types import BackendKind, FindingKind, IncidentField
from koncur.results import Discrepancy
from koncur.schemas import Incident, Link, Violation

logger = logging.getLogger(__name__)


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))


def describe_incident(incident: Incident) -> str:
    """Return the identifying ``uri:line`` form of an incident."""
    return f"{incident.uri}:{incident.line_number or 0}"


def _describe_link(link: Link) -> str:
    return f"{link.title} ({link.url})"


class Comparer(abc.ABC):
    """Backend-specific tolerance policy for findings comparison."""

    backend_kinds: ClassVar[tuple[BackendKind, ...]] = ()

    @property
    def name(self) -> str:
        """Strategy name for logging and reporting."""
        return type(self).__name__

    # ------------------------------------------------------------------
    # Ruleset-level capabilities
    # ------------------------------------------------------------------

    def compare_tags(
        self, expected: Sequence[str], actual: Sequence[str]
    ) -> list[Discrepancy]:
        """Compare ruleset tags as sets."""
        return self.compare_string_sets(expected, actual, noun="tag")

    def compare_unmatched(
        self, expected: Sequence[str], actual: Sequence[str]
    ) -> list[Discrepancy]:
        """Compare unmatched rule ids as sets."""
        return self.compare_string_sets(expected, actual, noun="unmatched rule")

    def compare_skipped(
        self, expected: Sequence[str], actual: Sequence[str]
    ) -> list[Discrepancy]:
        """Compare skipped rule ids as sets."""
        return self.compare_string_sets(expected, actual, noun="skipped rule")

    def compare_errors(
        self, expected: Mapping[str, str], actual: Mapping[str, str]
    ) -> list[Discrepancy]:
        """Compare rule evaluation errors keyed by rule id."""
        discrepancies: list[Discrepancy] = []
        for rule_id, expected_error in expected.items():
            if rule_id not in actual:
                discrepancies.append(
                    Discrepancy(path=rule_id, message="missing error", expected=expected_error)
                )
            elif actual[rule_id] != expected_error:
                discrepancies.append(
                    Discrepancy(
                        path=rule_id,
                        message=f"error mismatch: expected {expected_error!r}, got {actual[rule_id]!r}",
                        expected=expected_error,
                        actual=actual[rule_id],
                    )
                )
        for rule_id, actual_error in actual.items():
            if rule_id not in expected:
                discrepancies.append(
                    Discrepancy(
                        path=rule_id, message="unexpected error found", actual=actual_error
                    )
                )
        return discrepancies

    def compare_violation_map(
        self,
        expected: Mapping[str, Violation],
        actual: Mapping[str, Violation],
        kind: FindingKind,
    ) -> list[Discrepancy]:
        """Compare violations (or insights) keyed by rule id.

        Every expected id missing from ``actual`` and every actual id missing
        from ``expected`` yields exactly one discrepancy. Ids present on both
        sides get at most one discrepancy grouping all their detail mismatches.
        """
        discrepancies: list[Discrepancy] = []
        for rule_id, expected_violation in expected.items():
            actual_violation = actual.get(rule_id)
            if actual_violation is None:
                discrepancies.append(
                    Discrepancy(
                        path=rule_id, message=f"missing {kind}", expected=expected_violation
                    )
                )
                continue

            details = self.compare_violation_details(expected_violation, actual_violation)
            if details:
                logger.debug("%s %s differs in %d detail(s)", kind, rule_id, len(details))
                discrepancies.append(
                    Discrepancy(
                        path=rule_id,
                        message=f"{kind} does not match expected:\n"
                        + "\n".join(f"  - {line}" for line in details),
                        expected=expected_violation,
                        actual=actual_violation,
                        details=tuple(details),
                    )
                )

        for rule_id, actual_violation in actual.items():
            if rule_id not in expected:
                discrepancies.append(
                    Discrepancy(
                        path=rule_id,
                        message=f"unexpected {kind} found",
                        actual=actual_violation,
                    )
                )
        return discrepancies

    # ------------------------------------------------------------------
    # Violation-level capabilities
    # ------------------------------------------------------------------

    def compare_violation_details(
        self, expected: Violation, actual: Violation
    ) -> list[str]:
        """Compare the fields of one violation present on both sides.

        Returns:
            One line per detail mismatch, empty when the violations agree

        """
        details: list[str] = []
        details.extend(self.compare_category(expected, actual))
        details.extend(self.compare_effort(expected, actual))
        details.extend(self.compare_links(expected.links, actual.links))
        details.extend(self.compare_labels(expected.labels, actual.labels))
        details.extend(self.compare_incidents(expected, actual))
        return details

    def compare_category(self, expected: Violation, actual: Violation) -> list[str]:
        """Compare violation categories."""
        if expected.category != actual.category:
            return [
                f"category mismatch: expected {_category(expected)}, got {_category(actual)}"
            ]
        return []

    def compare_effort(self, expected: Violation, actual: Violation) -> list[str]:
        """Compare efforts; an absent effort on either side is not enforced."""
        if expected.effort is None or actual.effort is None:
            return []
        if expected.effort != actual.effort:
            return [f"effort mismatch: expected {expected.effort}, got {actual.effort}"]
        return []

    def compare_links(
        self, expected: Sequence[Link], actual: Sequence[Link]
    ) -> list[str]:
        """Compare links as a set of ``(title, url)`` pairs."""
        expected_keys = {(link.title, link.url) for link in expected}
        actual_keys = {(link.title, link.url) for link in actual}
        details: list[str] = []
        seen: set[tuple[str, str]] = set()
        for link in expected:
            key = (link.title, link.url)
            if key not in actual_keys and key not in seen:
                details.append(f"missing link: {_describe_link(link)}")
            seen.add(key)
        for link in actual:
            key = (link.title, link.url)
            if key not in expected_keys and key not in seen:
                details.append(f"unexpected link found: {_describe_link(link)}")
            seen.add(key)
        return details

    def compare_labels(
        self, expected: Sequence[str], actual: Sequence[str]
    ) -> list[str]:
        """Compare labels as sets."""
        actual_labels = set(actual)
        expected_labels = set(expected)
        details = [
            f"missing label: {label}"
            for label in _unique(expected)
            if label not in actual_labels
        ]
        details.extend(
            f"unexpected label found: {label}"
            for label in _unique(actual)
            if label not in expected_labels
        )
        return details

    # ------------------------------------------------------------------
    # Incident-level capabilities
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def match_incident(self, expected: Incident, actual: Incident) -> IncidentField | None:
        """Check whether ``actual`` is a counterpart of ``expected``.

        Returns:
            None on a match, otherwise the first authoritative field that failed

        """

    def reports_unexpected_incidents(self, expected: Violation) -> bool:
        """Whether actual incidents without a counterpart are reported."""
        return True

    def compare_incidents(self, expected: Violation, actual: Violation) -> list[str]:
        """Match incidents as sets, using ``match_incident`` as the equality.

        For each expected incident, actual incidents are scanned for the first
        match. When none matches, the field reported as the cause is the one
        the closest candidate failed on, in ``IncidentField`` order.
        """
        details: list[str] = []
        for incident in expected.incidents:
            failures: list[IncidentField] = []
            for candidate in actual.incidents:
                failed_field = self.match_incident(incident, candidate)
                if failed_field is None:
                    break
                failures.append(failed_field)
            else:
                details.append(_missing_incident(incident, failures))

        if not self.reports_unexpected_incidents(expected):
            return details

        for candidate in actual.incidents:
            if not any(
                self.match_incident(incident, candidate) is None
                for incident in expected.incidents
            ):
                details.append(
                    f"unexpected incident found: {describe_incident(candidate)}"
                )
        return details

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def compare_string_sets(
        expected: Sequence[str], actual: Sequence[str], noun: str
    ) -> list[Discrepancy]:
        """Compare two string collections as sets.

        An item only in ``expected`` yields one "missing" discrepancy, an item
        only in ``actual`` yields one "unexpected" discrepancy.
        """
        actual_items = set(actual)
        expected_items = set(expected)
        discrepancies = [
            Discrepancy(path=item, message="missing", expected=item)
            for item in _unique(expected)
            if item not in actual_items
        ]
        discrepancies.extend(
            Discrepancy(path=item, message=f"unexpected {noun} found", actual=item)
            for item in _unique(actual)
            if item not in expected_items
        )
        return discrepancies


def _category(violation: Violation) -> str:
    return violation.category.value if violation.category else "none"


def _missing_incident(incident: Incident, failures: list[IncidentField]) -> str:
    location = describe_incident(incident)
    if not failures:
        return f"missing incident {location} (no actual incidents to match)"
    return f"missing incident {location} (failed to match on: {max(failures).label})"

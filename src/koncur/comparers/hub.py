"""Comparer for backends that persist findings through a hub API.

The hub stores a reduced view of the analysis: it keeps no unmatched or
skipped rule lists, reports incident paths under its own source root, drops
line numbers for informational findings and cannot be configured to capture
code snippets consistently.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import ClassVar, override

from koncur.comparers.strict import StrictComparer
from koncur.comparers.types import BackendKind, IncidentField
from koncur.results import Discrepancy
from koncur.schemas import Incident, Violation

logger = logging.getLogger(__name__)

SOURCE_ROOT = "/source"


def _file_path(uri: str) -> str:
    return uri.removeprefix("file://")


def project_tail(uri: str) -> str:
    """Return the part of ``uri`` below the canonical source root.

    The path is sliced as written, so the tail is always a substring of the
    original reference. Paths outside the source root are returned whole and
    the root itself gives an empty tail.
    """
    path = _file_path(uri)
    if path == SOURCE_ROOT or path.startswith(f"{SOURCE_ROOT}/"):
        return path.removeprefix(SOURCE_ROOT).lstrip("/")
    return path


class HubComparer(StrictComparer):
    """Relaxed comparison for hub-backed execution."""

    backend_kinds: ClassVar[tuple[BackendKind, ...]] = (BackendKind.TACKLE_HUB,)

    @override
    def compare_unmatched(
        self, expected: Sequence[str], actual: Sequence[str]
    ) -> list[Discrepancy]:
        return []

    @override
    def compare_skipped(
        self, expected: Sequence[str], actual: Sequence[str]
    ) -> list[Discrepancy]:
        return []

    @staticmethod
    def is_insight(violation: Violation) -> bool:
        """Entries without an effort are informational and not enforced."""
        return violation.effort is None

    @override
    def compare_category(self, expected: Violation, actual: Violation) -> list[str]:
        if self.is_insight(expected):
            return []
        return super().compare_category(expected, actual)

    @override
    def compare_effort(self, expected: Violation, actual: Violation) -> list[str]:
        if self.is_insight(expected):
            return []
        return super().compare_effort(expected, actual)

    @override
    def reports_unexpected_incidents(self, expected: Violation) -> bool:
        return not self.is_insight(expected)

    @override
    def match_incident(self, expected: Incident, actual: Incident) -> IncidentField | None:
        if expected.uri and actual.uri:
            tail = project_tail(expected.uri)
            if tail and tail not in _file_path(actual.uri):
                return IncidentField.URI
        if (
            expected.line_number is not None
            and actual.line_number is not None
            and expected.line_number != actual.line_number
        ):
            logger.debug(
                "Line number mismatch: expected %d, actual %d",
                expected.line_number,
                actual.line_number,
            )
            return IncidentField.LINE_NUMBER
        if expected.message != actual.message:
            return IncidentField.MESSAGE
        if expected.variables and expected.variables != actual.variables:
            return IncidentField.VARIABLES
        return None

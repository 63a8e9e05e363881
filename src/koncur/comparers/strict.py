"""Strict comparer: every field is authoritative."""

from __future__ import annotations

from typing import ClassVar, override

from koncur.comparers.base import Comparer
from koncur.comparers.types import BackendKind, IncidentField
from koncur.schemas import Incident


class StrictComparer(Comparer):
    """Exact comparison for backends that report findings at full fidelity.

    Incidents match when URI, line number (absent treated as 0) and message are
    equal and the variables are equal when the expectation declares any. Code
    snippets are never compared because they vary between runs.
    """

    backend_kinds: ClassVar[tuple[BackendKind, ...]] = (
        BackendKind.KANTRA,
        BackendKind.KAI_RPC,
        BackendKind.VSCODE,
    )

    @override
    def match_incident(self, expected: Incident, actual: Incident) -> IncidentField | None:
        if expected.uri != actual.uri:
            return IncidentField.URI
        if (expected.line_number or 0) != (actual.line_number or 0):
            return IncidentField.LINE_NUMBER
        if expected.message != actual.message:
            return IncidentField.MESSAGE
        if expected.variables and expected.variables != actual.variables:
            return IncidentField.VARIABLES
        return None

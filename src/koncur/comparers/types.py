"""Shared enums for comparer strategies."""

from enum import IntEnum, StrEnum


class BackendKind(StrEnum):
    """Execution backends that can produce findings documents."""

    KANTRA = "kantra"
    TACKLE_HUB = "tackle-hub"
    TACKLE_UI = "tackle-ui"
    KAI_RPC = "kai-rpc"
    VSCODE = "vscode"


class FindingKind(StrEnum):
    """Whether a rule id lives in a ruleset's violations or insights map."""

    VIOLATION = "violation"
    INSIGHT = "insight"

    @property
    def section(self) -> str:
        """Path segment of the ruleset section holding this kind."""
        return f"{self.value}s"


class IncidentField(IntEnum):
    """Incident fields in the order they are checked when matching.

    A higher value means a candidate got further through the checks before
    failing, which makes it the closest candidate to report on.
    """

    URI = 0
    LINE_NUMBER = 1
    MESSAGE = 2
    VARIABLES = 3

    @property
    def label(self) -> str:
        """Human-readable field name."""
        return self.name.lower().replace("_", " ")

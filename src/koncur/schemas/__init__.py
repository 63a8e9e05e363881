"""Findings document schemas."""

from koncur.schemas.output import (
    RULESETS_ADAPTER,
    Category,
    Incident,
    Link,
    RuleSet,
    Violation,
    dump_rulesets,
)

__all__ = [
    "RULESETS_ADAPTER",
    "Category",
    "Incident",
    "Link",
    "RuleSet",
    "Violation",
    "dump_rulesets",
]

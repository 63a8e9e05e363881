"""Entity model for analyser findings documents.

A findings document is an ordered list of rulesets. The wire format uses the
analyser's camelCase keys (``lineNumber``, ``codeSnip``); the models accept
both the wire alias and the Python field name.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import StrEnum
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class Category(StrEnum):
    """Enforcement category of a violation."""

    POTENTIAL = "potential"
    OPTIONAL = "optional"
    MANDATORY = "mandatory"


class _WireModel(BaseModel):
    """Shared configuration for wire-format models."""

    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", coerce_numbers_to_str=True
    )


class Link(_WireModel):
    """External reference attached to a violation."""

    url: str = Field(default="", description="Link target")
    title: str = Field(default="", description="Human-readable link title")


class Incident(_WireModel):
    """One concrete occurrence of a finding at a file location."""

    uri: str = Field(default="", description="File reference, normalised on load")
    message: str = Field(default="", description="Incident message")
    code_snip: str | None = Field(
        default=None, alias="codeSnip", description="Source excerpt around the incident"
    )
    line_number: int | None = Field(
        default=None, alias="lineNumber", description="1-based line number, if known"
    )
    variables: dict[str, Any] = Field(
        default_factory=dict, description="Free-form variables captured by the rule"
    )

    @field_validator("variables", mode="before")
    @classmethod
    def _none_as_empty_variables(cls, value: Any) -> Any:  # noqa: ANN401
        return {} if value is None else value


class Violation(_WireModel):
    """An enforced finding, or an insight when it carries no effort."""

    description: str = Field(default="", description="Rule description")
    category: Category | None = Field(default=None, description="Enforcement category")
    labels: list[str] = Field(default_factory=list, description="Rule labels")
    incidents: list[Incident] = Field(
        default_factory=list, description="Occurrences of this finding"
    )
    links: list[Link] = Field(default_factory=list, description="External references")
    extras: Any = Field(default=None, description="Opaque analyser extras")
    effort: int | None = Field(
        default=None, description="Severity weight; absent for informational findings"
    )

    @field_validator("labels", "incidents", "links", mode="before")
    @classmethod
    def _none_as_empty_list(cls, value: Any) -> Any:  # noqa: ANN401
        return [] if value is None else value


class RuleSet(_WireModel):
    """Named group of analysis findings for one rule category."""

    name: str = Field(description="Ruleset name, unique within a document")
    description: str = Field(default="", description="Ruleset description")
    tags: list[str] = Field(default_factory=list, description="Discovered tags")
    violations: dict[str, Violation] = Field(
        default_factory=dict, description="Violations keyed by rule id"
    )
    insights: dict[str, Violation] = Field(
        default_factory=dict, description="Insights keyed by rule id"
    )
    errors: dict[str, str] = Field(
        default_factory=dict, description="Rule evaluation errors keyed by rule id"
    )
    unmatched: list[str] = Field(
        default_factory=list, description="Rule ids that matched nothing"
    )
    skipped: list[str] = Field(
        default_factory=list, description="Rule ids that were not evaluated"
    )

    @field_validator("tags", "unmatched", "skipped", mode="before")
    @classmethod
    def _none_as_empty_list(cls, value: Any) -> Any:  # noqa: ANN401
        return [] if value is None else value

    @field_validator("violations", "insights", "errors", mode="before")
    @classmethod
    def _none_as_empty_mapping(cls, value: Any) -> Any:  # noqa: ANN401
        if value is None:
            return {}
        # YAML reads unquoted numeric rule ids as ints
        if isinstance(value, dict):
            return {str(key): item for key, item in value.items()}
        return value

    def is_empty(self) -> bool:
        """Return True when the ruleset has no violations, no insights and no tags."""
        return not (self.violations or self.insights or self.tags)


RULESETS_ADAPTER: TypeAdapter[list[RuleSet]] = TypeAdapter(list[RuleSet])


def dump_rulesets(rulesets: Sequence[RuleSet], sort_keys: bool = False) -> str:
    """Serialise rulesets to YAML in wire format.

    Args:
        rulesets: Rulesets to serialise
        sort_keys: Sort mapping keys for a stable, order-independent rendering

    Returns:
        YAML document text

    """
    data = [
        ruleset.model_dump(
            mode="json", by_alias=True, exclude_none=True, exclude_defaults=True
        )
        for ruleset in rulesets
    ]
    return yaml.safe_dump(data, sort_keys=sort_keys, allow_unicode=True)

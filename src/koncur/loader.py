"""Loading of analyser findings documents.

The loader turns raw backend output into rulesets ready for comparison:

1. parse the YAML/JSON document into the entity model (all-or-nothing)
2. drop empty rulesets, which carry nothing worth comparing
3. normalise every incident URI so backend-specific paths compare equal

Parsing failures abort with ``ParseError``. Normalisation failures are
collected per incident and handed back alongside the rulesets, because one bad
path must not hide every other finding in the document.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from pydantic import ValidationError

from koncur.errors import NormalizationError, NormalizationErrors, ParseError
from koncur.paths import PathNormalizer
from koncur.schemas import RULESETS_ADAPTER, Incident, RuleSet, Violation

logger = logging.getLogger(__name__)

__all__ = [
    "LoadedOutput",
    "NormalizedOutput",
    "OutputLoader",
    "filter_rulesets",
    "load_output_file",
    "normalize_rulesets",
    "parse_output",
]


@dataclass(frozen=True, slots=True)
class NormalizedOutput:
    """Rulesets with normalised paths plus any per-incident failures."""

    rulesets: list[RuleSet]
    errors: list[NormalizationError] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class LoadedOutput:
    """Result of loading one findings document."""

    rulesets: list[RuleSet]
    total_rulesets: int
    normalization_errors: list[NormalizationError] = field(default_factory=list)

    @property
    def filtered_out(self) -> int:
        """Number of empty rulesets removed before comparison."""
        return self.total_rulesets - len(self.rulesets)


def _format_validation_error(error: ValidationError) -> str:
    details: list[str] = []
    for item in error.errors():
        location = " -> ".join(str(part) for part in item["loc"]) if item["loc"] else "root"
        details.append(f"  {location}: {item['msg']}")
    return "\n".join(details)


def parse_output(raw: bytes | str) -> list[RuleSet]:
    """Parse a findings document.

    Args:
        raw: Document content, YAML or JSON

    Returns:
        Rulesets in document order

    Raises:
        ParseError: If the content is not a well-formed findings document

    """
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ParseError(f"Invalid YAML in findings document: {e}") from e

    if data is None:
        logger.debug("Findings document is empty")
        return []

    if not isinstance(data, list):
        raise ParseError(
            f"Findings document must be a list of rulesets, got {type(data).__name__}"
        )

    try:
        rulesets = RULESETS_ADAPTER.validate_python(data)
    except ValidationError as e:
        raise ParseError(
            "Findings document validation failed:\n" + _format_validation_error(e)
        ) from e

    logger.debug("Parsed %d rulesets", len(rulesets))
    return rulesets


def load_output_file(path: Path) -> list[RuleSet]:
    """Read and parse a findings document from disk.

    Args:
        path: Path to the document

    Returns:
        Rulesets in document order

    Raises:
        ParseError: If the file cannot be read or is not a findings document

    """
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ParseError(f"Cannot read findings document {path}: {e}") from e
    return parse_output(raw)


def filter_rulesets(rulesets: Sequence[RuleSet]) -> list[RuleSet]:
    """Drop rulesets with no violations, no insights and no tags."""
    return [ruleset for ruleset in rulesets if not ruleset.is_empty()]


def _normalize_incident(
    incident: Incident,
    normalizer: PathNormalizer,
    working_dir: str | None,
    errors: list[NormalizationError],
) -> Incident:
    try:
        uri = normalizer.normalize(incident.uri, working_dir)
    except NormalizationError as e:
        errors.append(e)
        return incident
    return incident.model_copy(update={"uri": uri})


def _normalize_violations(
    violations: dict[str, Violation],
    normalizer: PathNormalizer,
    working_dir: str | None,
    errors: list[NormalizationError],
) -> dict[str, Violation]:
    normalized: dict[str, Violation] = {}
    for rule_id, violation in violations.items():
        incidents = [
            _normalize_incident(incident, normalizer, working_dir, errors)
            for incident in violation.incidents
        ]
        normalized[rule_id] = violation.model_copy(update={"incidents": incidents})
    return normalized


def normalize_rulesets(
    rulesets: Sequence[RuleSet],
    working_dir: str | None = None,
    normalizer: PathNormalizer | None = None,
) -> NormalizedOutput:
    """Normalise every incident URI in ``rulesets``.

    Incidents whose URI fails to normalise keep their raw URI; the failure is
    recorded in the returned ``errors`` list instead of being raised.

    Args:
        rulesets: Rulesets to normalise
        working_dir: Execution working directory to strip from paths
        normalizer: Path normaliser; defaults to the built-in rules

    Returns:
        Normalised copies of the rulesets and the collected failures

    """
    normalizer = normalizer or PathNormalizer()
    errors: list[NormalizationError] = []
    normalized: list[RuleSet] = []

    for ruleset in rulesets:
        normalized.append(
            ruleset.model_copy(
                update={
                    "violations": _normalize_violations(
                        ruleset.violations, normalizer, working_dir, errors
                    ),
                    "insights": _normalize_violations(
                        ruleset.insights, normalizer, working_dir, errors
                    ),
                }
            )
        )

    if errors:
        logger.warning("%d incident path(s) failed to normalise", len(errors))

    return NormalizedOutput(rulesets=normalized, errors=errors)


class OutputLoader:
    """Parses, filters and normalises findings documents."""

    def __init__(
        self,
        working_dir: str | Path | None = None,
        normalizer: PathNormalizer | None = None,
        strict_paths: bool = False,
    ) -> None:
        """Initialise the loader.

        Args:
            working_dir: Execution working directory to strip from incident paths
            normalizer: Path normaliser; defaults to the built-in rules
            strict_paths: Raise instead of collecting normalisation failures

        """
        self._working_dir = str(working_dir) if working_dir else None
        self._normalizer = normalizer or PathNormalizer()
        self._strict_paths = strict_paths

    def load(self, raw: bytes | str) -> LoadedOutput:
        """Load a findings document from raw content.

        Args:
            raw: Document content, YAML or JSON

        Returns:
            Normalised, non-empty rulesets with load statistics

        Raises:
            ParseError: If the content is not a well-formed findings document
            NormalizationErrors: If ``strict_paths`` is set and any incident
                path failed to normalise

        """
        return self.prepare(parse_output(raw))

    def load_file(self, path: Path) -> LoadedOutput:
        """Load a findings document from disk.

        Raises:
            ParseError: If the file cannot be read or is not a findings document
            NormalizationErrors: If ``strict_paths`` is set and any incident
                path failed to normalise

        """
        logger.debug("Loading findings document from: %s", path)
        return self.prepare(load_output_file(path))

    def prepare(self, rulesets: Sequence[RuleSet]) -> LoadedOutput:
        """Filter and normalise already parsed rulesets."""
        filtered = filter_rulesets(rulesets)
        normalized = normalize_rulesets(filtered, self._working_dir, self._normalizer)
        if self._strict_paths and normalized.errors:
            raise NormalizationErrors(normalized.errors)

        logger.info(
            "Loaded %d rulesets (filtered from %d)", len(filtered), len(rulesets)
        )
        return LoadedOutput(
            rulesets=normalized.rulesets,
            total_rulesets=len(rulesets),
            normalization_errors=normalized.errors,
        )

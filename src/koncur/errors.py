"""Error classes for koncur.

This module provides:
- KoncurError: Base exception class for all koncur errors
- ParseError: Malformed or undecodable findings document
- NormalizationError, NormalizationErrors: Path normalisation failures
- ConfigError, ConfigLoadError, ConfigValidationError: Test definition errors
- UnknownBackendError: Unrecognised execution backend
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import override


class KoncurError(Exception):
    """Base exception for all koncur errors."""

    pass


class ParseError(KoncurError):
    """Raised when a findings document cannot be decoded into rulesets.

    A document is all-or-nothing: a parse failure means the run cannot be
    evaluated at all, so it is never reported as a passing or failing comparison.
    """

    pass


class NormalizationError(KoncurError):
    """Raised when a file reference cannot be normalised into a usable path."""

    def __init__(self, message: str, uri: str = "") -> None:
        """Initialise normalisation error.

        Args:
            message: Human-readable description of the failure
            uri: The raw URI that failed to normalise

        """
        super().__init__(message)
        self.uri = uri


class NormalizationErrors(KoncurError):
    """Aggregate of per-incident normalisation failures for one document."""

    def __init__(self, errors: Sequence[NormalizationError]) -> None:
        """Initialise aggregate error.

        Args:
            errors: The individual normalisation failures

        """
        self.errors = list(errors)
        super().__init__(f"{len(self.errors)} incident path(s) failed to normalise")

    @override
    def __str__(self) -> str:
        """Return the summary followed by each individual failure."""
        lines = [super().__str__()]
        lines.extend(f"  - {error}" for error in self.errors)
        return "\n".join(lines)


class ConfigError(KoncurError):
    """Base exception for test definition and target configuration errors."""

    pass


class ConfigLoadError(ConfigError):
    """Raised when a configuration file cannot be read or parsed."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when a configuration file is structurally invalid."""

    pass


class UnknownBackendError(KoncurError):
    """Raised when no comparer exists for the requested backend kind."""

    pass

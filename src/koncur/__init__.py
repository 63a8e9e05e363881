"""koncur: compares static-analysis findings documents against expectations."""

from koncur.comparers import BackendKind, Comparer, comparer_for
from koncur.errors import KoncurError, NormalizationError, ParseError
from koncur.loader import OutputLoader, parse_output
from koncur.paths import PathNormalizer, normalize_uri
from koncur.results import Discrepancy, ValidationResult
from koncur.validator import Validator, validate

__version__ = "0.1.0"

__all__ = [
    "BackendKind",
    "Comparer",
    "Discrepancy",
    "KoncurError",
    "NormalizationError",
    "OutputLoader",
    "ParseError",
    "PathNormalizer",
    "ValidationResult",
    "Validator",
    "__version__",
    "comparer_for",
    "normalize_uri",
    "parse_output",
    "validate",
]

"""Backend-specific comparer strategies.

The strategy is chosen once per comparison from the backend kind and passed
explicitly to the validator.
"""

from __future__ import annotations

from koncur.comparers.base import Comparer, describe_incident
from koncur.comparers.hub import HubComparer
from koncur.comparers.strict import StrictComparer
from koncur.comparers.tag_agnostic import TagAgnosticComparer
from koncur.comparers.types import BackendKind, FindingKind, IncidentField
from koncur.errors import UnknownBackendError

__all__ = [
    "BackendKind",
    "Comparer",
    "FindingKind",
    "HubComparer",
    "IncidentField",
    "StrictComparer",
    "TagAgnosticComparer",
    "comparer_for",
    "describe_incident",
]

_STRATEGIES: tuple[type[Comparer], ...] = (
    StrictComparer,
    HubComparer,
    TagAgnosticComparer,
)


def comparer_for(backend_kind: BackendKind | str | None = None) -> Comparer:
    """Create the comparer for a backend.

    Args:
        backend_kind: Backend identifier; None selects the strict comparer

    Returns:
        A new comparer instance

    Raises:
        UnknownBackendError: If the backend kind is not recognised

    """
    if backend_kind is None:
        return StrictComparer()

    try:
        kind = BackendKind(backend_kind)
    except ValueError as e:
        available = [k.value for k in BackendKind]
        raise UnknownBackendError(
            f"Unknown backend '{backend_kind}'. Available: {available}"
        ) from e

    for strategy in _STRATEGIES:
        if kind in strategy.backend_kinds:
            return strategy()

    raise UnknownBackendError(f"No comparer registered for backend '{kind}'")

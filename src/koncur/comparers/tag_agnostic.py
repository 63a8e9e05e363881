"""Comparer for backends that do not expose tag metadata reliably."""

from __future__ import annotations

from collections.abc import Sequence
from typing import ClassVar, override

from koncur.comparers.strict import StrictComparer
from koncur.comparers.types import BackendKind
from koncur.results import Discrepancy


class TagAgnosticComparer(StrictComparer):
    """Strict comparison, except that tags are never diffed."""

    backend_kinds: ClassVar[tuple[BackendKind, ...]] = (BackendKind.TACKLE_UI,)

    @override
    def compare_tags(
        self, expected: Sequence[str], actual: Sequence[str]
    ) -> list[Discrepancy]:
        return []

"""
Generation-state inference.

Reduces a snapshot to busy/idle: busy as soon as any predicate matches,
idle only when none does. Over-reporting busy merely delays a send;
under-reporting it sends into a page that is still generating.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..core.models import BUSY, IDLE

if TYPE_CHECKING:
    from ..core.models import EnvironmentSnapshot, PredicateMatch, Verdict
    from .predicates import EvidencePredicate

log = logging.getLogger("promptqueue.inference")


class InferenceEngine:
    """Stateless OR over an ordered list of evidence predicates."""

    def __init__(self, predicates: "list[EvidencePredicate] | None" = None) -> None:
        if predicates is None:
            from . import get_predicates
            predicates = get_predicates()
        self._predicates = list(predicates)

    @property
    def predicates(self) -> "list[EvidencePredicate]":
        return list(self._predicates)

    def explain(self, snapshot: "EnvironmentSnapshot") -> "PredicateMatch | None":
        """First matching predicate, or None if the snapshot looks idle."""
        for predicate in self._predicates:
            result = predicate.evaluate(snapshot)
            if result.matched:
                return result
        return None

    def infer(self, snapshot: "EnvironmentSnapshot") -> "Verdict":
        match = self.explain(snapshot)
        if match is None:
            return IDLE
        log.debug("Busy  predicate=%s label=%s", match.predicate, match.label)
        return BUSY

    def __repr__(self) -> str:
        names = ",".join(p.name for p in self._predicates)
        return f"InferenceEngine(predicates=[{names}])"

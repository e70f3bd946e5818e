"""
Evidence predicate registry for the inference engine.

Order matters only for cost: the cheapest, most reliable signals run first
so the common busy case short-circuits early. The verdict is the same in
any order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .predicates import EvidencePredicate


def get_predicates() -> "list[EvidencePredicate]":
    """Return the default ordered predicate set."""
    from .predicates import (
        AnimationPredicate,
        EllipsisPredicate,
        MarkerAttributePredicate,
        StatusLexiconPredicate,
        StopControlPredicate,
    )
    return [
        StopControlPredicate(),
        StatusLexiconPredicate(),
        MarkerAttributePredicate(),
        EllipsisPredicate(),
        AnimationPredicate(),
    ]

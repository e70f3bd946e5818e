"""
Evidence predicates for generation-state inference.

Each predicate looks at one kind of signal in an EnvironmentSnapshot and
returns a diagnostic label when it matches. match() raises
EvidenceUnavailable when the structure it needs is missing; evaluate()
turns that, and any other error, into "not matched".
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

from ..core.errors import EvidenceUnavailable
from ..core.models import PredicateMatch

if TYPE_CHECKING:
    from ..core.models import EnvironmentSnapshot

log = logging.getLogger("promptqueue.inference")

_STOP_RE = re.compile(r"stop( generating)?", re.IGNORECASE)
_BUSY_LEXICON_RE = re.compile(r"generating|thinking|loading|stream|receiving", re.IGNORECASE)
_ELLIPSIS_RE = re.compile(r"^(?:\.{3,}|…+|loading|streaming)[.…]*$", re.IGNORECASE)
_ANIMATED_CLASS_RE = re.compile(r"spinner|loading|animate-spin|animate-pulse|dots|stream", re.IGNORECASE)

MARKER_ATTRIBUTES = ("data-streaming", "data-generating")


def _label(text: str, max_len: int = 80) -> str:
    return text.strip()[:max_len]


class EvidencePredicate(ABC):
    """One independent busy signal."""

    name: ClassVar[str]

    @abstractmethod
    def match(self, snapshot: "EnvironmentSnapshot") -> str | None:
        """Return a diagnostic label if the signal is present, else None."""
        ...

    def evaluate(self, snapshot: "EnvironmentSnapshot") -> PredicateMatch:
        try:
            label = self.match(snapshot)
        except EvidenceUnavailable as e:
            log.debug("Predicate unavailable  predicate=%s error=%s", self.name, e)
            return PredicateMatch(predicate=self.name, matched=False)
        except Exception as e:
            log.warning("Predicate failed  predicate=%s error=%r", self.name, e)
            return PredicateMatch(predicate=self.name, matched=False)
        return PredicateMatch(predicate=self.name, matched=label is not None, label=label)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class StopControlPredicate(EvidencePredicate):
    """A button whose text or aria-label means "stop generating"."""

    name = "stop_control"

    def match(self, snapshot: "EnvironmentSnapshot") -> str | None:
        for el in snapshot.by_tag("button"):
            text = f"{el.text} {el.aria_label}"
            if _STOP_RE.search(text):
                return _label(text)
        return None


class StatusLexiconPredicate(EvidencePredicate):
    """role=status region saying generating / thinking / loading / ..."""

    name = "status_lexicon"

    def match(self, snapshot: "EnvironmentSnapshot") -> str | None:
        for el in snapshot.by_role("status"):
            text = el.text.strip()
            if text and _BUSY_LEXICON_RE.search(text):
                return _label(text)
        return None


class MarkerAttributePredicate(EvidencePredicate):
    name = "marker_attribute"

    def match(self, snapshot: "EnvironmentSnapshot") -> str | None:
        for el in snapshot.evidence():
            for attr in MARKER_ATTRIBUTES:
                if el.attributes.get(attr, "").lower() == "true":
                    return f'{attr}="true"'
        return None


class EllipsisPredicate(EvidencePredicate):
    """A visible div/span whose whole text is a loading glyph."""

    name = "ellipsis"

    def match(self, snapshot: "EnvironmentSnapshot") -> str | None:
        for el in snapshot.by_tag("div", "span"):
            if not el.visible:
                continue
            text = el.text.strip()
            if text and _ELLIPSIS_RE.match(text):
                return _label(text)
        return None


class AnimationPredicate(EvidencePredicate):
    """Spinner/pulse/stream class names, or any running CSS animation."""

    name = "animation"

    def match(self, snapshot: "EnvironmentSnapshot") -> str | None:
        for el in snapshot.evidence():
            if el.class_name and _ANIMATED_CLASS_RE.search(el.class_name):
                return f"class={_label(el.class_name, 60)}"
            animation = el.animation_name.strip()
            if animation and animation != "none":
                return f"animation={animation}"
        return None

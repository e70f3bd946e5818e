"""
Pure Pydantic data models for promptqueue.

No logic beyond formatting, no I/O:
- Evidence snapshots read from the chat page
- Results returned by the dispatch controller
- The queue view rendered by the panel
"""

from __future__ import annotations

from typing import Final, Literal

from pydantic import BaseModel, Field

from .errors import EvidenceUnavailable


Verdict = Literal["busy", "idle"]
BUSY: Final = "busy"
IDLE: Final = "idle"


# ── Evidence ─────────────────────────────────────────────────────────────────


class ElementEvidence(BaseModel):
    """One element of the page as seen by the evidence collector."""
    tag: str = ""                     # lower-case tag name, e.g. "button"
    text: str = ""                    # innerText, trimmed and capped
    aria_label: str = ""
    role: str = ""
    class_name: str = ""
    animation_name: str = "none"      # computed style animation-name
    visible: bool = True              # offsetParent != null
    attributes: dict[str, str] = {}   # only the marker attributes we care about


class EnvironmentSnapshot(BaseModel):
    """Queryable picture of the page at one instant. Empty means no evidence.

    collected is False when the page could not be read at all; queries on
    such a snapshot raise EvidenceUnavailable.
    """
    elements: list[ElementEvidence] = []
    taken_at: float = 0.0
    collected: bool = True

    def evidence(self) -> list[ElementEvidence]:
        if not self.collected:
            raise EvidenceUnavailable("Page could not be read")
        return self.elements

    def by_tag(self, *tags: str) -> list[ElementEvidence]:
        return [e for e in self.evidence() if e.tag in tags]

    def by_role(self, role: str) -> list[ElementEvidence]:
        return [e for e in self.evidence() if e.role == role]


class PredicateMatch(BaseModel):
    predicate: str
    matched: bool
    label: str | None = None          # diagnostic, e.g. the matching text


# ── Controller results ───────────────────────────────────────────────────────


ActionReason = Literal[
    "not_busy",
    "empty_text",
    "empty_queue",
    "out_of_range",
    "adapter_unavailable",
]


class ActionResult(BaseModel):
    """Outcome of a controller operation. Failures are values, not exceptions."""
    ok: bool
    text: str | None = None           # the item involved, if any
    reason: ActionReason | None = None
    warning: str | None = None        # non-fatal, e.g. persistence failed
    length: int = 0                   # queue length after the operation


# ── Panel ────────────────────────────────────────────────────────────────────


class QueueView(BaseModel):
    """Everything the panel needs to render the queue."""
    count: int
    items: list[str] = []
    next_preview: str | None = None
    summary: str
    expanded: bool = False
    debug: bool = False

    @classmethod
    def from_items(cls, items: list[str], expanded: bool = False, debug: bool = False) -> "QueueView":
        if not items:
            return cls(count=0, summary="No prompts queued", expanded=expanded, debug=debug)
        preview = truncate_first_line(items[0], 60)
        plural = "s" if len(items) > 1 else ""
        return cls(
            count=len(items),
            items=list(items),
            next_preview=preview,
            summary=f'{len(items)} prompt{plural} queued (next: "{preview}")',
            expanded=expanded,
            debug=debug,
        )


class StateView(BaseModel):
    verdict: Verdict
    pending_edge: bool = False
    queued: int = Field(default=0, ge=0)


def truncate_first_line(text: str, max_len: int = 80) -> str:
    """First line of text, with an ellipsis if it was cut or more lines follow."""
    first = text.split("\n")[0].strip()
    if len(first) <= max_len:
        return first + ("…" if "\n" in text else "")
    return first[:max_len - 1] + "…"

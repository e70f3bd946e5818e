"""
Error taxonomy for promptqueue.

None of these are fatal. The dispatch controller turns adapter and
persistence errors into failed ActionResults; evidence errors never leave
the predicate that raised them.
"""

from __future__ import annotations

from typing import Any


class PromptQueueError(Exception):
    """Base class for all promptqueue errors."""


class EmptyQueue(PromptQueueError, IndexError):
    """pop_head() on an empty queue."""

    def __init__(self, message: str = "Queue is empty") -> None:
        super().__init__(message)


class AdapterUnavailable(PromptQueueError):
    """No input surface or submission trigger could be located."""


class EvidenceUnavailable(PromptQueueError):
    """A predicate could not evaluate the snapshot. Treated as not matched."""


class PersistenceFailure(PromptQueueError):
    """A write to the persistence store failed.

    The in-memory queue has already been mutated and stays authoritative.
    `value` carries whatever the mutating call would have returned
    (e.g. the popped item) so the caller can carry on.
    """

    def __init__(self, message: str, value: Any = None) -> None:
        super().__init__(message)
        self.value = value

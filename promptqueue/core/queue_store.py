"""
Ordered, write-through persisted list of pending prompts.

Index 0 is the head (next to send). Every mutation saves the whole list
before returning. Owned by the DispatchController; everything else reads
through it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .errors import EmptyQueue, PersistenceFailure
from .persistence import QUEUE_KEY

if TYPE_CHECKING:
    from .persistence import PersistenceStore

log = logging.getLogger("promptqueue.queue")


class QueueStore:

    def __init__(self, persistence: "PersistenceStore", key: str = QUEUE_KEY) -> None:
        self._persistence = persistence
        self._key = key
        self._items: list[str] = []

    async def load(self) -> None:
        """Replace the in-memory queue with whatever was persisted."""
        stored = await self._persistence.load(self._key)
        if isinstance(stored, list):
            self._items = [str(item) for item in stored]
        else:
            self._items = []
        log.debug("Loaded  length=%d", len(self._items))

    # ── Mutations ─────────────────────────────────────────────────────────────

    async def append(self, text: str) -> None:
        if not text.strip():
            raise ValueError("Cannot queue empty text")
        self._items.append(text)
        log.debug("Appended  length=%d", len(self._items))
        await self._persist(value=text)

    async def remove_at(self, index: int) -> str | None:
        """Remove and return the item at index. Out of range is a no-op."""
        if not 0 <= index < len(self._items):
            log.debug("Remove ignored  index=%d length=%d", index, len(self._items))
            return None
        removed = self._items.pop(index)
        log.debug("Removed  index=%d length=%d", index, len(self._items))
        await self._persist(value=removed)
        return removed

    async def insert_at(self, index: int, text: str) -> None:
        """Put text back at index, clamped to the current bounds."""
        index = max(0, min(index, len(self._items)))
        self._items.insert(index, text)
        log.debug("Inserted  index=%d length=%d", index, len(self._items))
        await self._persist(value=text)

    async def pop_head(self) -> str:
        if not self._items:
            raise EmptyQueue()
        # Removed before the save is awaited: a concurrent reader sees the next head
        head = self._items.pop(0)
        await self._persist(value=head)
        return head

    async def _persist(self, value: str | None = None) -> None:
        try:
            await self._persistence.save(self._key, list(self._items))
        except Exception as e:
            log.warning("Save failed  length=%d error=%s", len(self._items), e)
            raise PersistenceFailure(f"Queue not saved: {e}", value=value) from e

    # ── Reads ─────────────────────────────────────────────────────────────────

    def peek_head(self) -> str | None:
        return self._items[0] if self._items else None

    def length(self) -> int:
        return len(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def to_list(self) -> list[str]:
        return list(self._items)

    def __repr__(self) -> str:
        return f"QueueStore(length={len(self._items)})"

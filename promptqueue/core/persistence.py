"""
PersistenceStore ABC and implementations.

Key/value, last write wins. The queue lives under QUEUE_KEY as a plain
list of strings; the debug toggle under DEBUG_KEY as a bool.
Swap FilePersistenceStore ↔ MemoryPersistenceStore in tests.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

log = logging.getLogger("promptqueue.persistence")

QUEUE_KEY = "promptqueue_items_v1"
DEBUG_KEY = "promptqueue_debug_v1"


class PersistenceStore(ABC):
    """Persistence abstraction for the queue and the debug flag."""

    @abstractmethod
    async def load(self, key: str) -> Any | None: ...

    @abstractmethod
    async def save(self, key: str, value: Any) -> None: ...


class MemoryPersistenceStore(PersistenceStore):
    """In-memory store, no disk I/O. Use in tests."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = {}
        for key, value in (initial or {}).items():
            self._data[key] = json.loads(json.dumps(value))
        self.writes = 0

    async def load(self, key: str) -> Any | None:
        if key not in self._data:
            return None
        # Copy so callers never share state with the store
        return json.loads(json.dumps(self._data[key]))

    async def save(self, key: str, value: Any) -> None:
        self._data[key] = json.loads(json.dumps(value))
        self.writes += 1


class FilePersistenceStore(PersistenceStore):
    """All keys in one JSON file, e.g. ~/.promptqueue/data/state.json."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.warning("Failed to read state file %s: %s", self._path.name, e)
            return {}
        return data if isinstance(data, dict) else {}

    async def load(self, key: str) -> Any | None:
        return self._read().get(key)

    async def save(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        # Atomic write via temp file
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        tmp.replace(self._path)

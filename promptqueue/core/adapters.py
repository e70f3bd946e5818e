"""
Collaborator ABCs the core depends on, plus mock implementations for tests.

  - SnapshotProvider:   current evidence from the chat page (never raises)
  - InputSurface:       the prompt editor
  - SubmissionTrigger:  whatever makes the page send the editor content
  - Presenter:          the panel, fed read-only queue snapshots

The Playwright implementations live in promptqueue/browser/page.py.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Protocol

from .errors import AdapterUnavailable

if TYPE_CHECKING:
    from .models import EnvironmentSnapshot


class SnapshotProvider(ABC):

    @abstractmethod
    async def snapshot(self) -> "EnvironmentSnapshot":
        """Current evidence. Absent structure yields an empty snapshot, never an error."""
        ...


class InputSurface(ABC):
    """The editor prompts are written into. Raises AdapterUnavailable when it cannot be found."""

    @abstractmethod
    async def available(self) -> bool: ...

    @abstractmethod
    async def read_text(self) -> str: ...

    @abstractmethod
    async def write_text(self, text: str) -> None:
        """Replace the editor content and notify the page as if the user typed it."""
        ...

    @abstractmethod
    async def focus(self) -> None: ...


class SubmissionTrigger(ABC):

    @abstractmethod
    async def available(self) -> bool: ...

    @abstractmethod
    async def trigger(self) -> str:
        """Submit the editor content. Returns the method used."""
        ...


class Presenter(Protocol):
    async def queue_changed(self, items: list[str], debug: bool = False) -> None: ...

    async def dispatched(self, text: str, remaining: int) -> None: ...

    async def warning(self, message: str) -> None: ...


# ── Test doubles ──────────────────────────────────────────────────────────────


class StaticSnapshotProvider(SnapshotProvider):
    """Returns whatever snapshot was last set."""

    def __init__(self, snapshot: "EnvironmentSnapshot | None" = None) -> None:
        from .models import EnvironmentSnapshot
        self.current = snapshot or EnvironmentSnapshot()
        self.calls = 0

    async def snapshot(self) -> "EnvironmentSnapshot":
        self.calls += 1
        return self.current


class MockInputSurface(InputSurface):
    """Scripted editor for tests. Set present=False to simulate a missing editor."""

    def __init__(self, text: str = "", present: bool = True) -> None:
        self.text = text
        self.present = present
        self.writes: list[str] = []
        self.focused = 0

    async def available(self) -> bool:
        return self.present

    def _require(self) -> None:
        if not self.present:
            raise AdapterUnavailable("No editor found")

    async def read_text(self) -> str:
        self._require()
        return self.text

    async def write_text(self, text: str) -> None:
        self._require()
        self.text = text
        self.writes.append(text)

    async def focus(self) -> None:
        self._require()
        self.focused += 1


class MockSubmissionTrigger(SubmissionTrigger):
    """Records every trigger call together with the editor content at that moment."""

    def __init__(self, surface: MockInputSurface | None = None, present: bool = True) -> None:
        self._surface = surface
        self.present = present
        self.sent: list[str] = []

    async def available(self) -> bool:
        return self.present

    async def trigger(self) -> str:
        if not self.present:
            raise AdapterUnavailable("No submit control found")
        self.sent.append(self._surface.text if self._surface is not None else "")
        return "mock"

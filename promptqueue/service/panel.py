"""
Panel presenter: renders queue snapshots and pushes them to connected panels.

Holds no business state beyond the expand/collapse flag. Mutations go
through the DispatchController.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..core.events import DispatchedEvent, QueueEvent, StateEvent, WarningEvent
from ..core.models import QueueView

if TYPE_CHECKING:
    from ..api.websocket.manager import ConnectionManager
    from ..core.events import PanelEvent
    from ..core.models import Verdict

log = logging.getLogger("promptqueue.panel")


class PanelPresenter:

    def __init__(self, connections: "ConnectionManager | None" = None) -> None:
        self._connections = connections
        self._expanded = False
        self._view = QueueView.from_items([])

    def render(self, items: list[str], debug: bool = False) -> QueueView:
        # Collapse automatically once there is nothing left to show
        if not items:
            self._expanded = False
        self._view = QueueView.from_items(items, expanded=self._expanded, debug=debug)
        return self._view

    # ── Presenter protocol ────────────────────────────────────────────────────

    async def queue_changed(self, items: list[str], debug: bool = False) -> None:
        view = self.render(items, debug)
        log.debug("Render  %s", view.summary)
        await self._push(QueueEvent(view=view))

    async def dispatched(self, text: str, remaining: int) -> None:
        await self._push(DispatchedEvent(text=text, remaining=remaining))

    async def warning(self, message: str) -> None:
        await self._push(WarningEvent(message=message))

    async def state_changed(self, verdict: "Verdict") -> None:
        await self._push(StateEvent(verdict=verdict))

    # ── Expand / collapse ─────────────────────────────────────────────────────

    async def expand(self) -> QueueView:
        self._expanded = True
        return await self._rerender()

    async def collapse(self) -> QueueView:
        self._expanded = False
        return await self._rerender()

    async def toggle(self) -> QueueView:
        self._expanded = not self._expanded
        return await self._rerender()

    async def _rerender(self) -> QueueView:
        view = self.render(self._view.items, self._view.debug)
        await self._push(QueueEvent(view=view))
        return view

    async def _push(self, event: "PanelEvent") -> None:
        if self._connections is not None:
            await self._connections.broadcast(event.model_dump())

    @property
    def view(self) -> QueueView:
        return self._view

    @property
    def expanded(self) -> bool:
        return self._expanded

"""
Dispatch controller: owns the queue and sends one item per idle edge.

submit() queues only while the page is busy; an idle-time submission
belongs to the normal send path. on_became_idle() pops the head, writes
it into the editor and triggers submission. Adapter and persistence
problems come back as failed ActionResults, never as exceptions.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .errors import AdapterUnavailable, EmptyQueue, PersistenceFailure
from .models import ActionResult, QueueView
from .persistence import DEBUG_KEY

if TYPE_CHECKING:
    from .adapters import InputSurface, Presenter, SubmissionTrigger
    from .events import BecameIdleEvent
    from .monitor import GenerationMonitor
    from .persistence import PersistenceStore
    from .queue_store import QueueStore

log = logging.getLogger("promptqueue.dispatch")


class DispatchController:

    def __init__(
        self,
        store: "QueueStore",
        monitor: "GenerationMonitor",
        surface: "InputSurface",
        trigger: "SubmissionTrigger",
        persistence: "PersistenceStore | None" = None,
        presenter: "Presenter | None" = None,
    ) -> None:
        self._store = store
        self._monitor = monitor
        self._surface = surface
        self._trigger = trigger
        self._persistence = persistence
        self._presenter = presenter
        self._debug = False

    async def start(self) -> None:
        """Restore the persisted queue and debug flag."""
        await self._store.load()
        if self._persistence is not None:
            self._debug = bool(await self._persistence.load(DEBUG_KEY))
            self._apply_debug()
        log.info("Controller started  queued=%d debug=%s", len(self._store), self._debug)
        await self._notify()

    # ── Intents ───────────────────────────────────────────────────────────────

    async def submit(self, text: str) -> ActionResult:
        """Queue text if the page is generating; reject otherwise."""
        if not self._monitor.busy:
            log.debug("Submit rejected  reason=not_busy")
            return self._result(False, reason="not_busy")
        text = text.strip()
        if not text:
            return self._result(False, reason="empty_text")

        warning = None
        try:
            await self._store.append(text)
        except PersistenceFailure as e:
            warning = await self._warn(e)
        log.info("Queued  length=%d", len(self._store))
        await self._notify()
        return self._result(True, text=text, warning=warning)

    async def queue_from_editor(self, text: str) -> ActionResult:
        """Queue-key handler: submit the editor content and clear the editor if queued."""
        result = await self.submit(text)
        if result.ok:
            try:
                await self._surface.write_text("")
            except AdapterUnavailable as e:
                log.debug("Editor not cleared  error=%s", e)
        return result

    async def on_became_idle(self, event: "BecameIdleEvent | None" = None) -> ActionResult:
        """Send the head item. One dispatch per edge; edges are not queued."""
        if not len(self._store):
            log.debug("Idle edge  queue empty")
            return self._result(False, reason="empty_queue")
        if event is not None:
            log.debug("Idle edge  observed_at=%.3f fired_at=%.3f", event.observed_at, event.fired_at)
        return await self.dispatch_next()

    async def dispatch_next(self) -> ActionResult:
        """Send the head item now. Also the manual resend path."""
        if not len(self._store):
            return self._result(False, reason="empty_queue")
        if not (await self._surface.available() and await self._trigger.available()):
            # Leave the queue alone so the next edge or a manual resend can retry
            log.debug("Dispatch aborted  reason=adapter_unavailable queued=%d", len(self._store))
            return self._result(False, reason="adapter_unavailable")

        warning = None
        try:
            text = await self._store.pop_head()
        except EmptyQueue:
            return self._result(False, reason="empty_queue")
        except PersistenceFailure as e:
            text = e.value
            warning = await self._warn(e)

        await self._notify()
        log.info("Dispatching  length=%d remaining=%d", len(text), len(self._store))

        try:
            await self._surface.write_text(text)
            await self._surface.focus()
            method = await self._trigger.trigger()
        except AdapterUnavailable as e:
            # Popped but not sent: the item goes back to the head for a retry
            log.debug("Dispatch aborted after pop, restoring head  error=%s", e)
            try:
                await self._store.insert_at(0, text)
            except PersistenceFailure as pe:
                await self._warn(pe)
            await self._notify()
            return self._result(False, text=text, reason="adapter_unavailable")

        log.info("Dispatched  method=%s remaining=%d", method, len(self._store))
        if self._presenter is not None:
            await self._presenter.dispatched(text, len(self._store))
        return self._result(True, text=text, warning=warning)

    async def edit_requested(self, index: int) -> ActionResult:
        """Move the item at index back into the editor, after any unsent text."""
        text = self._item_at(index)
        if text is None:
            return self._result(False, reason="out_of_range")
        if not await self._surface.available():
            log.debug("Edit aborted  reason=adapter_unavailable index=%d", index)
            return self._result(False, reason="adapter_unavailable")

        # The item leaves the queue only once it is safely in the editor
        try:
            existing = await self._surface.read_text()
            if existing.strip():
                await self._surface.write_text(existing + "\n\n" + text)
            else:
                await self._surface.write_text(text)
        except AdapterUnavailable as e:
            log.debug("Edit aborted  reason=adapter_unavailable index=%d error=%s", index, e)
            return self._result(False, reason="adapter_unavailable")

        warning = None
        try:
            await self._store.remove_at(index)
        except PersistenceFailure as e:
            warning = await self._warn(e)
        await self._notify()

        try:
            await self._surface.focus()
        except AdapterUnavailable as e:
            log.debug("Editor not focused  error=%s", e)

        log.info("Loaded into editor  index=%d remaining=%d", index, len(self._store))
        return self._result(True, text=text, warning=warning)

    async def delete_requested(self, index: int) -> ActionResult:
        warning = None
        try:
            removed = await self._store.remove_at(index)
        except PersistenceFailure as e:
            removed = e.value
            warning = await self._warn(e)
        if removed is None:
            return self._result(False, reason="out_of_range")
        log.info("Deleted  index=%d remaining=%d", index, len(self._store))
        await self._notify()
        return self._result(True, text=removed, warning=warning)

    # ── Debug flag ────────────────────────────────────────────────────────────

    async def set_debug(self, enabled: bool) -> ActionResult:
        self._debug = bool(enabled)
        self._apply_debug()
        warning = None
        if self._persistence is not None:
            try:
                await self._persistence.save(DEBUG_KEY, self._debug)
            except Exception as e:
                warning = await self._warn(PersistenceFailure(f"Debug flag not saved: {e}"))
        log.info("Debug  enabled=%s", self._debug)
        await self._notify()
        return self._result(True, warning=warning)

    async def toggle_debug(self) -> ActionResult:
        return await self.set_debug(not self._debug)

    def _apply_debug(self) -> None:
        from ..logging_config import apply_debug
        apply_debug(self._debug)

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _item_at(self, index: int) -> str | None:
        items = self._store.to_list()
        return items[index] if 0 <= index < len(items) else None

    def _result(self, ok: bool, **kwargs) -> ActionResult:
        return ActionResult(ok=ok, length=len(self._store), **kwargs)

    async def _warn(self, error: Exception) -> str:
        message = str(error)
        log.warning("Not saved  error=%s", message)
        if self._presenter is not None:
            await self._presenter.warning(message)
        return message

    async def _notify(self) -> None:
        if self._presenter is not None:
            await self._presenter.queue_changed(self._store.to_list(), self._debug)

    # ── Properties ────────────────────────────────────────────────────────────

    @property
    def items(self) -> list[str]:
        return self._store.to_list()

    @property
    def debug(self) -> bool:
        return self._debug

    @property
    def monitor(self) -> "GenerationMonitor":
        return self._monitor

    def view(self, expanded: bool = False) -> QueueView:
        return QueueView.from_items(self._store.to_list(), expanded=expanded, debug=self._debug)

    def __repr__(self) -> str:
        return f"DispatchController(queued={len(self._store)}, busy={self._monitor.busy})"

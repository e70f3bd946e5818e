"""
Generation monitor: two-state machine (busy/idle) over inference verdicts.

One inbound event (an observation tick) and one outbound event
(BecameIdleEvent). A busy→idle change does not emit straight away: it arms
a pending edge with a cancellable deadline (the settle delay). A busy
verdict inside the window disarms it. stop() disarms it for good.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from .events import BecameIdleEvent
from .models import BUSY, IDLE

if TYPE_CHECKING:
    from ..inference.engine import InferenceEngine
    from .adapters import SnapshotProvider
    from .clock import Clock, TimerHandle
    from .models import Verdict

log = logging.getLogger("promptqueue.monitor")

DEFAULT_SETTLE_DELAY = 0.15

IdleCallback = Callable[[BecameIdleEvent], "Awaitable[Any] | None"]


class _PendingEdge:
    """A busy→idle change waiting out the settle delay."""

    def __init__(self, observed_at: float, deadline: float, handle: "TimerHandle") -> None:
        self.observed_at = observed_at
        self.deadline = deadline
        self.handle = handle

    def cancel(self) -> None:
        self.handle.cancel()


class GenerationMonitor:

    def __init__(
        self,
        engine: "InferenceEngine",
        snapshots: "SnapshotProvider",
        clock: "Clock",
        on_became_idle: IdleCallback,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
    ) -> None:
        self._engine = engine
        self._snapshots = snapshots
        self._clock = clock
        self._on_became_idle = on_became_idle
        self._settle_delay = settle_delay
        # Assume idle until proven otherwise so startup never blocks
        self._state: "Verdict" = IDLE
        self._pending: _PendingEdge | None = None
        self._stopped = False
        self._inflight: set[asyncio.Future] = set()
        self._listeners: list[Callable[["Verdict"], None]] = []

    # ── Inbound ───────────────────────────────────────────────────────────────

    async def tick(self) -> "Verdict":
        """Take a snapshot, infer, and feed the verdict to the state machine."""
        if self._stopped:
            return self._state
        snapshot = await self._snapshots.snapshot()
        verdict = self._engine.infer(snapshot)
        self.observe(verdict)
        return verdict

    def observe(self, verdict: "Verdict") -> None:
        if self._stopped:
            return
        previous = self._state
        self._state = verdict

        if verdict == BUSY:
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None
                log.debug("Settle cancelled  reason=busy_again")
            if previous == IDLE:
                log.debug("Became busy")
                self._notify_state(verdict)
            return

        if previous == BUSY and self._pending is None:
            now = self._clock.now()
            handle = self._clock.call_later(self._settle_delay, self._fire)
            self._pending = _PendingEdge(now, now + self._settle_delay, handle)
            log.debug("Idle observed  settle=%.3fs", self._settle_delay)

    def add_listener(self, listener: Callable[["Verdict"], None]) -> None:
        """Register a callback for busy/idle changes (idle reported once the edge fires)."""
        self._listeners.append(listener)

    # ── Outbound ──────────────────────────────────────────────────────────────

    def _fire(self) -> None:
        pending = self._pending
        self._pending = None
        if self._stopped or pending is None:
            return
        event = BecameIdleEvent(observed_at=pending.observed_at, fired_at=self._clock.now())
        log.info("Became idle  observed_at=%.3f fired_at=%.3f", event.observed_at, event.fired_at)
        self._notify_state(IDLE)
        result = self._on_became_idle(event)
        if inspect.isawaitable(result):
            future = asyncio.ensure_future(result)
            self._inflight.add(future)
            future.add_done_callback(self._inflight.discard)

    def _notify_state(self, verdict: "Verdict") -> None:
        for listener in self._listeners:
            try:
                listener(verdict)
            except Exception as e:
                log.warning("State listener failed  error=%s", e)

    async def drain(self) -> None:
        """Wait for every dispatch started by an edge to finish."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    def stop(self) -> None:
        """Tear down: no callback fires after this returns."""
        self._stopped = True
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        log.info("Monitor stopped")

    # ── Properties ────────────────────────────────────────────────────────────

    @property
    def state(self) -> "Verdict":
        return self._state

    @property
    def busy(self) -> bool:
        return self._state == BUSY

    @property
    def pending(self) -> bool:
        return self._pending is not None

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def settle_delay(self) -> float:
        return self._settle_delay

    def __repr__(self) -> str:
        return f"GenerationMonitor(state={self._state!r}, pending={self.pending})"

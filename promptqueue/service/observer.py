"""
Observation loop: turns page mutations into monitor ticks.

Mutations arrive in bursts. notify() never runs two ticks at once: a
mutation that lands while a tick is running causes exactly one more tick
once it finishes.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.monitor import GenerationMonitor

log = logging.getLogger("promptqueue.observer")


class ObservationLoop:

    def __init__(self, monitor: "GenerationMonitor") -> None:
        self._monitor = monitor
        self._task: asyncio.Task | None = None
        self._dirty = False
        self._running = True
        self.ticks = 0

    def notify(self) -> None:
        """Mutation callback. Schedules a tick, coalescing with one in flight."""
        if not self._running:
            return
        if self._task is not None and not self._task.done():
            self._dirty = True
            return
        self._task = asyncio.ensure_future(self._run())

    async def tick(self) -> None:
        """Run one tick now (used by the polling fallback)."""
        if not self._running:
            return
        if self._task is not None and not self._task.done():
            self._dirty = True
            return
        self._task = asyncio.ensure_future(self._run())
        await self._task

    async def _run(self) -> None:
        while self._running:
            self._dirty = False
            try:
                await self._monitor.tick()
                self.ticks += 1
            except Exception as e:
                log.error("Tick failed  error=%s", e, exc_info=True)
            if not self._dirty:
                break

    async def wait(self) -> None:
        """Wait for the in-flight tick (and its coalesced follow-up) to finish."""
        if self._task is not None:
            await self._task

    def stop(self) -> None:
        self._running = False
        if self._task is not None and not self._task.done():
            self._task.cancel()
        log.info("Observation stopped  ticks=%d", self.ticks)

"""
APScheduler setup for promptqueue.

Mutation-driven ticks are the primary signal. A fixed-interval job ticks
the monitor as a degraded fallback, in case the page stops reporting
mutations (e.g. the observer was lost on a soft navigation).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

if TYPE_CHECKING:
    from ..config import Config
    from .observer import ObservationLoop

log = logging.getLogger("promptqueue.scheduler")

POLL_JOB_ID = "poll-generation-state"


def setup_scheduler(config: "Config", observer: "ObservationLoop") -> AsyncIOScheduler | None:
    """
    Create an AsyncIOScheduler with the polling fallback job.
    Returns the scheduler (not yet started), or None if polling is disabled.
    """
    if not config.poll_fallback:
        log.info("Polling fallback disabled")
        return None

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        observer.tick,
        trigger=IntervalTrigger(seconds=config.poll_interval),
        id=POLL_JOB_ID,
        name=POLL_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    log.info("Polling fallback registered  interval=%.3fs", config.poll_interval)
    return scheduler


def start_scheduler(scheduler: AsyncIOScheduler | None) -> None:
    if scheduler is not None:
        scheduler.start()
        log.info("Scheduler started")


def stop_scheduler(scheduler: AsyncIOScheduler | None) -> None:
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        log.info("Scheduler stopped")

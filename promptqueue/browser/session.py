"""
Browser session for promptqueue.

Requires playwright. Install with: playwright install chromium

Uses a persistent Chromium profile under ~/.promptqueue/browser so the
chat login survives restarts.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from playwright.async_api import async_playwright

from .page import PageHooks, PageInputSurface, PageSnapshotProvider, PageSubmissionTrigger

if TYPE_CHECKING:
    from playwright.async_api import BrowserContext, Page, Playwright

    from ..config import Config

log = logging.getLogger("promptqueue.browser")


class BrowserSession:
    """Owns the Playwright context and the chat page."""

    def __init__(self, config: "Config") -> None:
        self._config = config
        self._pw: "Playwright | None" = None
        self._context: "BrowserContext | None" = None
        self._page: "Page | None" = None

    async def start(self) -> "Page":
        self._pw = await async_playwright().start()
        self._context = await self._pw.chromium.launch_persistent_context(
            str(self._config.browser_dir),
            headless=self._config.browser_headless,
        )
        pages = self._context.pages
        self._page = pages[0] if pages else await self._context.new_page()
        await self._page.goto(self._config.browser_url, timeout=30000)
        log.info("Browser started  url=%s headless=%s", self._page.url, self._config.browser_headless)
        return self._page

    async def stop(self) -> None:
        try:
            if self._context is not None:
                await self._context.close()
        except Exception as e:
            log.warning("Browser close failed: %s", e)
        finally:
            if self._pw is not None:
                await self._pw.stop()
            self._context = None
            self._page = None
            self._pw = None
        log.info("Browser stopped")

    @property
    def page(self) -> "Page":
        if self._page is None:
            raise RuntimeError("Browser session not started")
        return self._page

    # ── Adapters ──────────────────────────────────────────────────────────────

    def snapshot_provider(self) -> PageSnapshotProvider:
        return PageSnapshotProvider(self.page)

    def input_surface(self) -> PageInputSurface:
        return PageInputSurface(self.page)

    def submission_trigger(self) -> PageSubmissionTrigger:
        return PageSubmissionTrigger(self.page)

    def hooks(self) -> PageHooks:
        return PageHooks(self.page)

    def __repr__(self) -> str:
        return f"BrowserSession(url={self._config.browser_url!r})"

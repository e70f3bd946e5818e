"""
FastAPI application entry point for promptqueue.

Startup: configure logging, load config, open the chat page, wire the
monitor and dispatch controller, start observing.
Shutdown: stop observing, stop the scheduler, close the browser.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.models import BUSY

if TYPE_CHECKING:
    from .core.models import Verdict

log = logging.getLogger("promptqueue.server")


def state_listener(presenter, hooks, background: set) -> Callable[["Verdict"], None]:
    """Monitor listener: push the verdict to the panel and into the page.

    The listener is sync; the pushes run as tasks held in background until done.
    """
    def on_state(verdict: "Verdict") -> None:
        for coro in (presenter.state_changed(verdict), hooks.set_busy(verdict == BUSY)):
            task = asyncio.ensure_future(coro)
            background.add(task)
            task.add_done_callback(background.discard)

    return on_state


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 1. Load config
    from .config import get_config
    config = get_config()

    # 2. Configure logging
    from .logging_config import configure_logging
    log_file = configure_logging(config)
    logger = logging.getLogger("promptqueue.server")

    # 3. Persistence + queue store
    from .core.persistence import FilePersistenceStore
    from .core.queue_store import QueueStore
    persistence = FilePersistenceStore(config.state_file)
    store = QueueStore(persistence)

    # 4. Browser page and adapters
    from .browser.session import BrowserSession
    browser = BrowserSession(config)
    await browser.start()

    # 5. Monitor → controller → panel
    from .api.websocket.manager import get_connection_manager
    from .core.clock import LoopClock
    from .core.dispatch import DispatchController
    from .core.monitor import GenerationMonitor
    from .inference.engine import InferenceEngine
    from .service.panel import PanelPresenter

    presenter = PanelPresenter(get_connection_manager())
    controller: DispatchController | None = None

    async def on_became_idle(event):
        if controller is not None:
            await controller.on_became_idle(event)

    monitor = GenerationMonitor(
        engine=InferenceEngine(),
        snapshots=browser.snapshot_provider(),
        clock=LoopClock(),
        on_became_idle=on_became_idle,
        settle_delay=config.settle_delay,
    )
    controller = DispatchController(
        store=store,
        monitor=monitor,
        surface=browser.input_surface(),
        trigger=browser.submission_trigger(),
        persistence=persistence,
        presenter=presenter,
    )
    await controller.start()

    hooks = browser.hooks()
    background: set[asyncio.Future] = set()
    monitor.add_listener(state_listener(presenter, hooks, background))

    # 6. Observe: mutations first, polling as fallback
    from .service.observer import ObservationLoop
    from .service.scheduler import setup_scheduler, start_scheduler, stop_scheduler
    observer = ObservationLoop(monitor)
    await hooks.install(
        on_mutation=observer.notify,
        on_queue_key=controller.queue_from_editor,
    )
    scheduler = setup_scheduler(config, observer)
    start_scheduler(scheduler)
    await observer.tick()

    logger.info("Started  host=%s port=%d log=%s", config.host, config.port, log_file.name)
    logger.info("Queue restored  count=%d settle=%.3fs", len(store), config.settle_delay)

    # Store refs in app state
    app.state.config = config
    app.state.store = store
    app.state.monitor = monitor
    app.state.controller = controller
    app.state.presenter = presenter

    yield

    # Shutdown
    logger.info("Shutting down...")
    observer.stop()
    monitor.stop()
    stop_scheduler(scheduler)
    for task in list(background):
        task.cancel()
    await browser.stop()
    logger.info("Shutdown complete")


def create_app(with_lifespan: bool = True) -> FastAPI:
    app = FastAPI(title="promptqueue", version="1.0.0", lifespan=lifespan if with_lifespan else None)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health endpoint
    @app.get("/health")
    async def health():
        return {"status": "ok"}

    # API routes
    from .api.routes.queue import router as queue_router
    from .api.websocket.handlers import router as ws_router

    app.include_router(queue_router, prefix="/api")
    app.include_router(ws_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    from .config import get_config
    config = get_config()
    uvicorn.run(
        "promptqueue.server:app",
        host=config.host,
        port=config.port,
    )

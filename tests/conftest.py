"""
Shared pytest fixtures for promptqueue tests.
"""

import pytest
from types import SimpleNamespace


@pytest.fixture
def tmp_config(tmp_path):
    """A Config instance using tmp_path as base_dir."""
    from promptqueue.config import Config
    return Config(base_dir=tmp_path)


@pytest.fixture
def clock():
    from promptqueue.core.clock import ManualClock
    return ManualClock()


@pytest.fixture
def persistence():
    from promptqueue.core.persistence import MemoryPersistenceStore
    return MemoryPersistenceStore()


@pytest.fixture
def surface():
    from promptqueue.core.adapters import MockInputSurface
    return MockInputSurface()


@pytest.fixture
def trigger(surface):
    from promptqueue.core.adapters import MockSubmissionTrigger
    return MockSubmissionTrigger(surface)


class RecordingPresenter:
    """Presenter that records what it was told, for assertions."""

    def __init__(self) -> None:
        self.renders: list[list[str]] = []
        self.sent: list[str] = []
        self.warnings: list[str] = []

    async def queue_changed(self, items, debug=False):
        self.renders.append(list(items))

    async def dispatched(self, text, remaining):
        self.sent.append(text)

    async def warning(self, message):
        self.warnings.append(message)


@pytest.fixture
def presenter():
    return RecordingPresenter()


@pytest.fixture
def system(clock, persistence, surface, trigger, presenter):
    """Monitor + controller wired together the way the server wires them."""
    from promptqueue.core.adapters import StaticSnapshotProvider
    from promptqueue.core.dispatch import DispatchController
    from promptqueue.core.monitor import GenerationMonitor
    from promptqueue.core.queue_store import QueueStore
    from promptqueue.inference.engine import InferenceEngine

    ns = SimpleNamespace(edges=[], results=[])

    async def on_became_idle(event):
        ns.edges.append(event)
        ns.results.append(await ns.controller.on_became_idle(event))

    ns.snapshots = StaticSnapshotProvider()
    ns.monitor = GenerationMonitor(
        engine=InferenceEngine(),
        snapshots=ns.snapshots,
        clock=clock,
        on_became_idle=on_became_idle,
        settle_delay=0.15,
    )
    ns.store = QueueStore(persistence)
    ns.controller = DispatchController(
        store=ns.store,
        monitor=ns.monitor,
        surface=surface,
        trigger=trigger,
        persistence=persistence,
        presenter=presenter,
    )
    ns.clock = clock
    ns.surface = surface
    ns.trigger = trigger
    ns.persistence = persistence
    ns.presenter = presenter
    return ns

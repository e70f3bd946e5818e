"""Tests for QueueStore and the persistence stores."""

import json

import pytest

from promptqueue.core.errors import EmptyQueue, PersistenceFailure
from promptqueue.core.persistence import (
    DEBUG_KEY,
    QUEUE_KEY,
    FilePersistenceStore,
    MemoryPersistenceStore,
    PersistenceStore,
)
from promptqueue.core.queue_store import QueueStore


class FailingStore(PersistenceStore):
    """Loads fine, refuses every write."""

    async def load(self, key):
        return None

    async def save(self, key, value):
        raise OSError("disk full")


@pytest.mark.asyncio
async def test_append_is_fifo(persistence):
    store = QueueStore(persistence)
    for text in ["first", "second", "third"]:
        await store.append(text)
    assert store.to_list() == ["first", "second", "third"]
    assert store.peek_head() == "first"
    assert len(store) == store.length() == 3


@pytest.mark.asyncio
async def test_append_rejects_blank(persistence):
    store = QueueStore(persistence)
    with pytest.raises(ValueError):
        await store.append("   \n ")
    assert len(store) == 0
    assert persistence.writes == 0


@pytest.mark.asyncio
async def test_append_allows_duplicates(persistence):
    store = QueueStore(persistence)
    await store.append("same")
    await store.append("same")
    assert store.to_list() == ["same", "same"]


@pytest.mark.asyncio
async def test_every_mutation_persists(persistence):
    store = QueueStore(persistence)
    await store.append("a")
    await store.append("b")
    assert await persistence.load(QUEUE_KEY) == ["a", "b"]
    await store.pop_head()
    assert await persistence.load(QUEUE_KEY) == ["b"]
    await store.remove_at(0)
    assert await persistence.load(QUEUE_KEY) == []
    assert persistence.writes == 4


@pytest.mark.asyncio
async def test_remove_at_out_of_range_is_noop(persistence):
    store = QueueStore(persistence)
    await store.append("a")
    writes = persistence.writes
    assert await store.remove_at(5) is None
    assert await store.remove_at(-1) is None
    assert store.to_list() == ["a"]
    assert persistence.writes == writes


@pytest.mark.asyncio
async def test_remove_at_middle(persistence):
    store = QueueStore(persistence)
    for text in ["a", "b", "c"]:
        await store.append(text)
    assert await store.remove_at(1) == "b"
    assert store.to_list() == ["a", "c"]


@pytest.mark.asyncio
async def test_pop_head_order(persistence):
    store = QueueStore(persistence)
    await store.append("a")
    await store.append("b")
    assert await store.pop_head() == "a"
    assert await store.pop_head() == "b"


@pytest.mark.asyncio
async def test_insert_at_restores_head_and_persists(persistence):
    store = QueueStore(persistence)
    await store.append("a")
    await store.append("b")
    head = await store.pop_head()
    await store.insert_at(0, head)
    assert store.to_list() == ["a", "b"]
    assert await persistence.load(QUEUE_KEY) == ["a", "b"]

    await store.insert_at(99, "z")
    assert store.peek_head() == "a"
    assert store.to_list()[-1] == "z"


@pytest.mark.asyncio
async def test_pop_head_empty_raises(persistence):
    store = QueueStore(persistence)
    with pytest.raises(EmptyQueue):
        await store.pop_head()
    assert store.peek_head() is None


@pytest.mark.asyncio
async def test_to_list_is_a_copy(persistence):
    store = QueueStore(persistence)
    await store.append("a")
    snapshot = store.to_list()
    snapshot.append("mutated")
    assert store.to_list() == ["a"]


@pytest.mark.asyncio
async def test_load_restores_queue():
    persistence = MemoryPersistenceStore({QUEUE_KEY: ["x", "y"]})
    store = QueueStore(persistence)
    await store.load()
    assert store.to_list() == ["x", "y"]


@pytest.mark.asyncio
async def test_load_ignores_garbage():
    persistence = MemoryPersistenceStore({QUEUE_KEY: {"not": "a list"}})
    store = QueueStore(persistence)
    await store.load()
    assert store.to_list() == []


@pytest.mark.asyncio
async def test_persistence_failure_keeps_memory_authoritative():
    store = QueueStore(FailingStore())
    with pytest.raises(PersistenceFailure) as exc:
        await store.append("a")
    assert exc.value.value == "a"
    assert store.to_list() == ["a"]

    with pytest.raises(PersistenceFailure) as exc:
        await store.pop_head()
    assert exc.value.value == "a"
    assert store.to_list() == []


# ── Persistence stores ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_memory_store_roundtrip():
    store = MemoryPersistenceStore()
    await store.save(QUEUE_KEY, ["a", "b", "c"])
    assert await store.load(QUEUE_KEY) == ["a", "b", "c"]
    assert await store.load("missing") is None


@pytest.mark.asyncio
async def test_memory_store_returns_copies():
    store = MemoryPersistenceStore()
    value = ["a"]
    await store.save(QUEUE_KEY, value)
    value.append("b")
    loaded = await store.load(QUEUE_KEY)
    loaded.append("c")
    assert await store.load(QUEUE_KEY) == ["a"]


@pytest.mark.asyncio
async def test_file_store_roundtrip(tmp_path):
    store = FilePersistenceStore(tmp_path / "data" / "state.json")
    await store.save(QUEUE_KEY, ["a", "b", "c"])
    await store.save(DEBUG_KEY, True)
    assert await store.load(QUEUE_KEY) == ["a", "b", "c"]
    assert await store.load(DEBUG_KEY) is True

    # A fresh instance reads the same file
    again = FilePersistenceStore(tmp_path / "data" / "state.json")
    assert await again.load(QUEUE_KEY) == ["a", "b", "c"]
    data = json.loads((tmp_path / "data" / "state.json").read_text())
    assert set(data) == {QUEUE_KEY, DEBUG_KEY}


@pytest.mark.asyncio
async def test_file_store_last_write_wins(tmp_path):
    store = FilePersistenceStore(tmp_path / "state.json")
    await store.save(QUEUE_KEY, ["old"])
    await store.save(QUEUE_KEY, ["new"])
    assert await store.load(QUEUE_KEY) == ["new"]


@pytest.mark.asyncio
async def test_file_store_corrupt_file(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json")
    store = FilePersistenceStore(path)
    assert await store.load(QUEUE_KEY) is None
    await store.save(QUEUE_KEY, ["ok"])
    assert await store.load(QUEUE_KEY) == ["ok"]

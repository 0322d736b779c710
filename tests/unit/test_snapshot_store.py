"""Tests for snapshot and favorites persistence."""

from datetime import UTC, datetime

import pytest

from src.core.domain.ports.blob_store import BlobStoreError
from src.core.infrastructure.blob_store import InMemoryBlobStore
from src.modules.waits.domain.entities import DisplayRecord, LiveStatus, Snapshot
from src.modules.waits.infrastructure.favorites_repository import (
    BlobFavoritesRepository,
)
from src.modules.waits.infrastructure.snapshot_store import BlobSnapshotStore

pytestmark = pytest.mark.anyio


class _BrokenStore(InMemoryBlobStore):
    async def get(self, key: str) -> bytes | None:
        raise BlobStoreError("read failed")

    async def set(self, key: str, value: bytes) -> None:
        raise BlobStoreError("write failed")


def _snapshot(master_factory) -> Snapshot:
    status = LiveStatus.model_validate(
        {"current": 25, "min": 5, "max": 70, "scraped_at": "2025-06-01T10:00:00Z"}
    )
    return Snapshot(
        records=[
            DisplayRecord.from_status(master_factory("a", area="Hollywood"), status),
            DisplayRecord.placeholder(master_factory("b")),
        ],
        fetched_at=datetime(2025, 6, 1, 10, 5, tzinfo=UTC),
    )


async def test_snapshot_save_and_load(blob_store, blob_keys, master_factory) -> None:
    store = BlobSnapshotStore(blob_store, keys=blob_keys)
    snapshot = _snapshot(master_factory)

    await store.save(snapshot)
    loaded = await store.load()

    assert loaded == snapshot
    assert loaded.records[0].min_wait == 5
    assert loaded.records[0].max_wait == 70


async def test_snapshot_load_missing(blob_store, blob_keys) -> None:
    assert await BlobSnapshotStore(blob_store, keys=blob_keys).load() is None


async def test_snapshot_load_corrupt_returns_none(blob_store, blob_keys) -> None:
    await blob_store.set(blob_keys.snapshot, b'{"records": "nope"}')

    assert await BlobSnapshotStore(blob_store, keys=blob_keys).load() is None


async def test_snapshot_save_failure_is_swallowed(blob_keys, master_factory) -> None:
    store = BlobSnapshotStore(_BrokenStore(), keys=blob_keys)

    await store.save(_snapshot(master_factory))
    assert await store.load() is None


async def test_snapshot_clear(blob_store, blob_keys, master_factory) -> None:
    store = BlobSnapshotStore(blob_store, keys=blob_keys)
    await store.save(_snapshot(master_factory))

    await store.clear()

    assert await store.load() is None


async def test_snapshot_save_overwrites(blob_store, blob_keys, master_factory) -> None:
    store = BlobSnapshotStore(blob_store, keys=blob_keys)
    await store.save(_snapshot(master_factory))
    replacement = Snapshot(records=[], fetched_at=datetime(2025, 6, 2, tzinfo=UTC))

    await store.save(replacement)

    assert await store.load() == replacement


async def test_favorites_round_trip(blob_store, blob_keys) -> None:
    repo = BlobFavoritesRepository(blob_store, keys=blob_keys)

    await repo.save({"b", "a"})

    assert await repo.load() == {"a", "b"}
    assert await blob_store.get(blob_keys.favorites) == b'["a", "b"]'


async def test_favorites_load_tolerates_bad_data(blob_store, blob_keys) -> None:
    repo = BlobFavoritesRepository(blob_store, keys=blob_keys)

    assert await repo.load() == set()

    await blob_store.set(blob_keys.favorites, b'{"a": true}')
    assert await repo.load() == set()

    await blob_store.set(blob_keys.favorites, b'["a", 3, null]')
    assert await repo.load() == {"a"}


async def test_favorites_read_failure_returns_empty(blob_keys) -> None:
    repo = BlobFavoritesRepository(_BrokenStore(), keys=blob_keys)

    assert await repo.load() == set()


async def test_favorites_write_failure_propagates(blob_keys) -> None:
    repo = BlobFavoritesRepository(_BrokenStore(), keys=blob_keys)

    with pytest.raises(BlobStoreError):
        await repo.save({"a"})

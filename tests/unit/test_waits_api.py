"""API tests for the wait-time routes."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from src.core.config import settings
from src.core.domain.exceptions import TransportError
from src.modules.catalog.domain.catalog import MasterEntry
from src.modules.waits.application.refresh_service import RefreshService
from src.modules.waits.application.wait_board import UNAVAILABLE_MESSAGE, WaitBoard
from src.modules.waits.domain.entities import DisplayRecord, LiveStatus, Snapshot
from src.modules.waits.infrastructure.favorites_repository import (
    BlobFavoritesRepository,
)
from src.modules.waits.infrastructure.snapshot_store import BlobSnapshotStore

pytestmark = pytest.mark.anyio

PREFIX = f"{settings.API_V1_STR}/waits"


class _ScriptedFetcher:
    def __init__(self, script: dict):
        self.script = script

    async def fetch_status(self, entry: MasterEntry) -> LiveStatus:
        outcome = self.script[entry.id]
        if isinstance(outcome, Exception):
            raise outcome
        return LiveStatus(current=outcome)


def _board(blob_store, masters, script) -> WaitBoard:
    catalog = AsyncMock()
    catalog.load = AsyncMock(return_value=masters)
    catalog.clear_cache = AsyncMock()
    snapshot_store = BlobSnapshotStore(blob_store)
    return WaitBoard(
        catalog,
        RefreshService(_ScriptedFetcher(script), snapshot_store),
        snapshot_store,
        BlobFavoritesRepository(blob_store),
    )


async def test_get_board_before_first_refresh(api_client_factory, blob_store) -> None:
    client = api_client_factory(_board(blob_store, [], {}))

    response = await client.get(PREFIX)

    assert response.status_code == 200
    body = response.json()
    assert body["code"] == 200
    assert body["data"]["records"] == []
    assert body["data"]["last_fetch"] is None
    assert body["data"]["sort_ascending"] is True


async def test_get_board_picks_up_newer_snapshot(
    api_client_factory, blob_store, master_factory
) -> None:
    client = api_client_factory(_board(blob_store, [], {}))
    fetched_at = datetime(2025, 6, 1, 9, 30, tzinfo=UTC)
    await BlobSnapshotStore(blob_store).save(
        Snapshot(
            records=[
                DisplayRecord.from_status(master_factory("a"), LiveStatus(current=25))
            ],
            fetched_at=fetched_at,
        )
    )

    response = await client.get(PREFIX)

    data = response.json()["data"]
    assert [r["id"] for r in data["records"]] == ["a"]
    assert data["records"][0]["wait_minutes"] == 25
    assert data["last_fetch"].startswith("2025-06-01T09:30:00")


async def test_refresh_endpoint(api_client_factory, blob_store, master_factory) -> None:
    masters = [master_factory("a"), master_factory("b")]
    client = api_client_factory(_board(blob_store, masters, {"a": 45, "b": 10}))

    response = await client.post(f"{PREFIX}/refresh", json={"include_catalog": True})

    assert response.status_code == 200
    body = response.json()
    assert body["meta"]["skipped"] is False
    assert body["meta"]["healthy"] is True
    assert [r["id"] for r in body["data"]["records"]] == ["b", "a"]
    assert body["data"]["records"][0]["wait_minutes"] == 10
    assert body["data"]["records"][0]["status"] == "OPERATING"
    assert body["data"]["last_fetch"] is not None


async def test_refresh_without_body(api_client_factory, blob_store, master_factory) -> None:
    client = api_client_factory(_board(blob_store, [master_factory("a")], {"a": 5}))

    response = await client.post(f"{PREFIX}/refresh")

    assert response.status_code == 200
    assert [r["id"] for r in response.json()["data"]["records"]] == ["a"]


async def test_refresh_reports_degraded(
    api_client_factory, blob_store, master_factory
) -> None:
    client = api_client_factory(
        _board(blob_store, [master_factory("a")], {"a": TransportError("down")})
    )

    response = await client.post(f"{PREFIX}/refresh", json={})

    body = response.json()
    assert body["meta"]["healthy"] is False
    assert body["data"]["error_message"] == UNAVAILABLE_MESSAGE
    assert body["data"]["records"][0]["status"] == "UNKNOWN"


async def test_toggle_favorite_and_filter(
    api_client_factory, blob_store, master_factory
) -> None:
    board = _board(blob_store, [master_factory("a"), master_factory("b")], {"a": 1, "b": 2})
    await board.load_catalog_and_refresh()
    client = api_client_factory(board)

    response = await client.post(f"{PREFIX}/favorites/b/toggle")

    assert response.status_code == 200
    assert response.json()["data"] == {"id": "b", "is_favorite": True}

    filtered = await client.get(PREFIX, params={"favorites_only": "true"})
    records = filtered.json()["data"]["records"]
    assert [r["id"] for r in records] == ["b"]
    assert records[0]["is_favorite"] is True


async def test_toggle_unknown_favorite_is_404(
    api_client_factory, blob_store, master_factory
) -> None:
    board = _board(blob_store, [master_factory("a")], {"a": 1})
    await board.load_catalog_and_refresh()
    client = api_client_factory(board)

    response = await client.post(f"{PREFIX}/favorites/ghost/toggle")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


async def test_toggle_sort(api_client_factory, blob_store, master_factory) -> None:
    board = _board(blob_store, [master_factory("a"), master_factory("b")], {"a": 1, "b": 2})
    await board.load_catalog_and_refresh()
    client = api_client_factory(board)

    response = await client.post(f"{PREFIX}/sort/toggle", params={"refresh": "true"})

    body = response.json()
    assert body["data"]["sort_ascending"] is False
    assert [r["id"] for r in body["data"]["records"]] == ["b", "a"]
    assert body["meta"] == {"skipped": False}


async def test_get_catalog(api_client_factory, blob_store, master_factory) -> None:
    board = _board(blob_store, [master_factory("a", area="Lagoon")], {"a": 1})
    await board.load_catalog_and_refresh()
    client = api_client_factory(board)

    response = await client.get(f"{PREFIX}/catalog")

    entries = response.json()["data"]
    assert len(entries) == 1
    assert entries[0]["id"] == "a"
    assert entries[0]["area"] == "Lagoon"
    assert entries[0]["endpoint"] == "/api/wait?slug=a"


async def test_lifespan_closes_blob_store(monkeypatch) -> None:
    import main
    from src.core.infrastructure.blob_store import InMemoryBlobStore

    store = InMemoryBlobStore()
    store.close = AsyncMock()
    monkeypatch.setattr(main, "build_blob_store", lambda _settings: store)
    monkeypatch.setattr(main, "setup_logging", lambda: None)
    monkeypatch.setattr(settings, "REFRESH_ON_STARTUP", False)

    async with main.lifespan(main.app):
        assert main.app.state.blob_store is store
        store.close.assert_not_awaited()

    store.close.assert_awaited_once()

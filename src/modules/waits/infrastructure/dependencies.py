"""Wait-time module dependencies.

所有组件在进程启动时构建一次，通过构造函数传入，不使用进程级单例缓存。
"""

from fastapi import Request

from src.core.config import Settings, settings as default_settings
from src.core.domain.blob_keys import BlobKeys
from src.core.domain.ports.blob_store import BlobStore
from src.modules.catalog.infrastructure.catalog_loader import CatalogLoader
from src.modules.waits.application.refresh_service import RefreshService
from src.modules.waits.application.wait_board import WaitBoard
from src.modules.waits.infrastructure.favorites_repository import (
    BlobFavoritesRepository,
)
from src.modules.waits.infrastructure.snapshot_store import BlobSnapshotStore
from src.modules.waits.infrastructure.status_fetcher import HttpStatusFetcher


def build_wait_board(
    blob_store: BlobStore,
    config: Settings | None = None,
    *,
    sort_ascending: bool = True,
) -> WaitBoard:
    """组装完整的刷新管线。"""
    config = config or default_settings
    keys = BlobKeys(config.BLOB_KEY_PREFIX)

    catalog = CatalogLoader(
        blob_store,
        keys=keys,
        catalog_url=config.CATALOG_URL,
        timeout_sec=config.CATALOG_FETCH_TIMEOUT_SEC,
    )
    fetcher = HttpStatusFetcher(
        base_url=config.endpoint_base_url,
        timeout_sec=config.STATUS_FETCH_TIMEOUT_SEC,
    )
    snapshot_store = BlobSnapshotStore(blob_store, keys=keys)
    refresh_service = RefreshService(
        fetcher,
        snapshot_store,
        concurrency=config.STATUS_FETCH_CONCURRENCY,
    )
    return WaitBoard(
        catalog,
        refresh_service,
        snapshot_store,
        BlobFavoritesRepository(blob_store, keys=keys),
        sort_ascending=sort_ascending,
    )


async def get_wait_board(request: Request) -> WaitBoard:
    return request.app.state.wait_board

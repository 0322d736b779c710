"""Blob-backed favorites repository."""

import json

from loguru import logger

from src.core.config import settings
from src.core.domain.blob_keys import BlobKeys
from src.core.domain.ports.blob_store import BlobStore, BlobStoreError
from src.modules.waits.domain.ports import FavoritesRepository


class BlobFavoritesRepository(FavoritesRepository):
    """收藏列表以 JSON 数组保存，和刷新周期完全独立。"""

    def __init__(self, blob_store: BlobStore, keys: BlobKeys | None = None) -> None:
        self.blob_store = blob_store
        self.keys = keys or BlobKeys(settings.BLOB_KEY_PREFIX)

    async def load(self) -> set[str]:
        try:
            data = await self.blob_store.get(self.keys.favorites)
        except BlobStoreError as e:
            logger.warning(f"Failed to read favorites: {e}")
            return set()

        if data is None:
            return set()

        try:
            payload = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Discarding undecodable favorites: {e}")
            return set()

        if not isinstance(payload, list):
            logger.warning("Favorites payload is not a list, ignoring")
            return set()
        return {item for item in payload if isinstance(item, str)}

    async def save(self, favorites: set[str]) -> None:
        await self.blob_store.set(
            self.keys.favorites,
            json.dumps(sorted(favorites), ensure_ascii=False).encode("utf-8"),
        )

"""Blob-backed snapshot store.

快照只是展示缓存，不是数据源：
- 保存失败只记录日志
- 读取失败（不存在/损坏/结构不符）一律返回 None
"""

from loguru import logger
from pydantic import ValidationError

from src.core.config import settings
from src.core.domain.blob_keys import BlobKeys
from src.core.domain.ports.blob_store import BlobStore, BlobStoreError
from src.modules.waits.domain.entities import Snapshot
from src.modules.waits.domain.ports import SnapshotRepository


class BlobSnapshotStore(SnapshotRepository):
    """Persist the last completed refresh as JSON."""

    def __init__(self, blob_store: BlobStore, keys: BlobKeys | None = None) -> None:
        self.blob_store = blob_store
        self.keys = keys or BlobKeys(settings.BLOB_KEY_PREFIX)

    async def save(self, snapshot: Snapshot) -> None:
        try:
            await self.blob_store.set(
                self.keys.snapshot, snapshot.model_dump_json().encode("utf-8")
            )
        except BlobStoreError as e:
            logger.warning(f"Failed to save snapshot: {e}")

    async def load(self) -> Snapshot | None:
        try:
            data = await self.blob_store.get(self.keys.snapshot)
        except BlobStoreError as e:
            logger.warning(f"Failed to read snapshot: {e}")
            return None

        if data is None:
            return None

        try:
            return Snapshot.model_validate_json(data)
        except ValidationError as e:
            logger.warning(f"Discarding undecodable snapshot: {e}")
            return None

    async def clear(self) -> None:
        await self.blob_store.delete(self.keys.snapshot)

"""Blob store backends and factory.

- InMemoryBlobStore: 进程内 dict，本地开发与测试默认使用
- FileBlobStore: 每个 key 一个文件，写入时原子替换
- RedisBlobStore: 见 src.core.infrastructure.redis.blob_store
"""

from __future__ import annotations

import asyncio
import hashlib
import os
from pathlib import Path

from loguru import logger

from src.core.config import Settings
from src.core.domain.ports.blob_store import BlobStore, BlobStoreError
from src.core.infrastructure.health import BlobStoreHealthResult, HealthStatus
from src.core.infrastructure.redis.keys import RedisKeys


class InMemoryBlobStore(BlobStore):
    """Dict-backed blob store (process lifetime)."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._data: dict[str, bytes] = dict(initial or {})

    async def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class FileBlobStore(BlobStore):
    """One file per key under a base directory.

    文件名使用 key 的 sha1，避免 key 中的 ":" 等字符在不同文件系统上出问题。
    """

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = base_dir

    def _path_for(self, key: str) -> Path:
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
        return self._base_dir / f"{digest}.blob"

    async def get(self, key: str) -> bytes | None:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: bytes) -> None:
        await asyncio.to_thread(self._write, key, value)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._remove, key)

    def _read(self, key: str) -> bytes | None:
        path = self._path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise BlobStoreError(f"Failed to read blob {key}: {e}") from e

    def _write(self, key: str, value: bytes) -> None:
        path = self._path_for(key)
        tmp_path = path.with_suffix(".tmp")
        try:
            self._base_dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(value)
            os.replace(tmp_path, path)
        except OSError as e:
            raise BlobStoreError(f"Failed to write blob {key}: {e}") from e

    def _remove(self, key: str) -> None:
        try:
            self._path_for(key).unlink(missing_ok=True)
        except OSError as e:
            raise BlobStoreError(f"Failed to delete blob {key}: {e}") from e


def build_blob_store(settings: Settings) -> BlobStore:
    """根据配置创建 blob store。

    Args:
        settings: 应用配置

    Returns:
        BlobStore 实现
    """
    backend = settings.BLOB_STORE_BACKEND
    if backend == "redis":
        from src.core.infrastructure.redis import RedisBlobStore, RedisClient

        store: BlobStore = RedisBlobStore(RedisClient(url=settings.REDIS_URL))
    elif backend == "file":
        store = FileBlobStore(Path(settings.BLOB_STORE_DIR))
    else:
        store = InMemoryBlobStore()

    logger.info(f"Blob store backend: {backend}")
    return store


async def check_blob_store_health(
    store: BlobStore, backend: str
) -> BlobStoreHealthResult:
    """读一次不存在的 key 来确认后端可用。"""
    try:
        await store.get(RedisKeys.HEALTH_CHECK_KEY)
        return BlobStoreHealthResult(status=HealthStatus.OK, backend=backend)
    except BlobStoreError as e:
        return BlobStoreHealthResult(
            status=HealthStatus.ERROR,
            backend=backend,
            error=str(e),
        )

"""Blob store port.

不透明的 key -> bytes 存储，提供 get/set/delete 与 close。
用于 catalog 缓存（含 ETag）、展示快照和收藏列表。
"""

from typing import Protocol


class BlobStoreError(RuntimeError):
    """Blob 存储读写失败。"""


class BlobStore(Protocol):
    """Port for opaque byte-blob persistence (last-write-wins)."""

    async def get(self, key: str) -> bytes | None: ...

    async def set(self, key: str, value: bytes) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def close(self) -> None:
        """释放后端持有的连接（默认无资源）。"""
        return None

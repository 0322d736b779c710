"""Blob Key 命名规范。

Blob store 中保存的内容：
- Catalog: 原始 JSON 字节与对应的 ETag（必须成对写入/删除）
- Snapshot: 最近一次完成的刷新结果（冷启动展示用）
- Favorites: 用户收藏的 attraction id 列表
"""


class BlobKeys:
    """Blob Key 命名空间管理。"""

    # catalog:{bytes|etag}
    CATALOG_PREFIX = "catalog"

    # waits:{snapshot|favorites}
    WAITS_PREFIX = "waits"

    def __init__(self, prefix: str = "parkwait"):
        self._prefix = prefix.rstrip(":")

    def _key(self, *parts: str) -> str:
        return ":".join((self._prefix, *parts)) if self._prefix else ":".join(parts)

    @property
    def catalog_bytes(self) -> str:
        """catalog 原始字节。"""
        return self._key(self.CATALOG_PREFIX, "bytes")

    @property
    def catalog_etag(self) -> str:
        """产生 catalog_bytes 的那次响应的 ETag。"""
        return self._key(self.CATALOG_PREFIX, "etag")

    @property
    def snapshot(self) -> str:
        return self._key(self.WAITS_PREFIX, "snapshot")

    @property
    def favorites(self) -> str:
        return self._key(self.WAITS_PREFIX, "favorites")

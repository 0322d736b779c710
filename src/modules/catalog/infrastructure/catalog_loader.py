"""Infrastructure loader for the attraction catalog."""

from __future__ import annotations

import httpx
from loguru import logger

from src.core.config import settings
from src.core.domain.blob_keys import BlobKeys
from src.core.domain.exceptions import (
    DecodeError,
    FetchError,
    ProtocolError,
    TransportError,
)
from src.core.domain.ports.blob_store import BlobStore, BlobStoreError
from src.core.infrastructure.logging import BusinessEvents
from src.modules.catalog.domain.catalog import (
    CatalogFile,
    CatalogOrigin,
    CatalogProvider,
    MasterEntry,
    minimal_fallback,
)


class CatalogLoader(CatalogProvider):
    """Load the catalog cache-first, with an ETag conditional GET and fallback.

    加载策略：
    1. force=False 且缓存可解析 → 直接返回缓存，不访问网络
    2. 否则带 If-None-Match 发起条件请求
       - 304 → 使用缓存
       - 2xx → 宽容解析，成功后原始字节与 ETag 成对写入缓存
       - 其他 → 视为失败
    3. 失败 → 缓存 → 最小 fallback

    load() 永远不向外抛出异常。
    """

    def __init__(
        self,
        blob_store: BlobStore,
        *,
        keys: BlobKeys | None = None,
        catalog_url: str | None = None,
        timeout_sec: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.blob_store = blob_store
        self.keys = keys or BlobKeys(settings.BLOB_KEY_PREFIX)
        self.catalog_url = catalog_url or settings.CATALOG_URL
        self.timeout_sec = timeout_sec or settings.CATALOG_FETCH_TIMEOUT_SEC
        self._transport = transport
        self.last_loaded_from: CatalogOrigin | None = None

    async def load(self, force: bool = False) -> list[MasterEntry]:
        """Resolve the current active master entries."""
        logger.debug(f"Loading catalog (force={force})")

        if not force:
            cached = await self._load_from_cache()
            if cached is not None:
                return self._loaded(cached, "cache")

        try:
            entries, origin = await self._load_from_remote()
            return self._loaded(entries, origin)
        except FetchError as exc:
            logger.warning(f"Failed to load catalog remotely: {exc}")
            BusinessEvents.catalog_fetch_failed(
                error=str(exc),
                error_type=type(exc).__name__,
                catalog_url=self.catalog_url,
            )

        cached = await self._load_from_cache()
        if cached is not None:
            return self._loaded(cached, "cache")

        logger.warning("No catalog cache available, using minimal fallback")
        BusinessEvents.feature_degraded(
            feature="catalog",
            reason="remote and cache unavailable",
        )
        return self._loaded(minimal_fallback(), "fallback")

    async def clear_cache(self) -> None:
        """删除 catalog 缓存与 ETag（一起删除）。"""
        logger.info("Clearing catalog cache")
        try:
            await self.blob_store.delete(self.keys.catalog_bytes)
        finally:
            await self.blob_store.delete(self.keys.catalog_etag)

    def _loaded(
        self, entries: list[MasterEntry], origin: CatalogOrigin
    ) -> list[MasterEntry]:
        self.last_loaded_from = origin
        BusinessEvents.catalog_loaded(loaded_from=origin, entry_count=len(entries))
        return entries

    async def _load_from_cache(self) -> list[MasterEntry] | None:
        try:
            data = await self.blob_store.get(self.keys.catalog_bytes)
        except BlobStoreError as e:
            logger.warning(f"Failed to read catalog cache: {e}")
            return None

        if data is None:
            logger.debug("No catalog cache")
            return None

        try:
            catalog = CatalogFile.decode(data)
        except DecodeError as e:
            logger.warning(f"Cached catalog is not decodable: {e}")
            return None

        return catalog.active_entries()

    async def _read_etag(self) -> str | None:
        try:
            raw = await self.blob_store.get(self.keys.catalog_etag)
        except BlobStoreError as e:
            logger.warning(f"Failed to read catalog ETag: {e}")
            return None
        return raw.decode("utf-8") if raw else None

    async def _load_from_remote(self) -> tuple[list[MasterEntry], CatalogOrigin]:
        headers = {
            "User-Agent": settings.FETCHER_USER_AGENT,
            "Accept": "application/json",
        }
        etag = await self._read_etag()
        if etag:
            headers["If-None-Match"] = etag
            logger.debug(f"Conditional catalog request with ETag {etag}")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_sec,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(self.catalog_url, headers=headers)
        except httpx.TimeoutException as e:
            raise TransportError(f"Catalog request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Catalog request failed: {e}") from e

        logger.debug(f"Catalog response status: {response.status_code}")

        if response.status_code == httpx.codes.NOT_MODIFIED:
            cached = await self._load_from_cache()
            if cached is None:
                raise ProtocolError(304, "Catalog not modified but no usable cache")
            return cached, "not_modified"

        if not response.is_success:
            logger.debug(f"Catalog body preview: {response.text[:1000]}")
            raise ProtocolError(response.status_code)

        data = response.content
        catalog = CatalogFile.decode(data)
        await self._store(data, response.headers.get("ETag"))
        return catalog.active_entries(), "remote"

    async def _store(self, data: bytes, etag: str | None) -> None:
        """原始字节与 ETag 作为一个单元写入；任一失败则两者都撤销。"""
        try:
            await self.blob_store.set(self.keys.catalog_bytes, data)
            if etag:
                await self.blob_store.set(self.keys.catalog_etag, etag.encode("utf-8"))
                logger.debug(f"Stored catalog ETag {etag}")
            else:
                # 旧 ETag 不能与新字节配对
                await self.blob_store.delete(self.keys.catalog_etag)
        except BlobStoreError as e:
            logger.warning(f"Failed to persist catalog cache: {e}")
            try:
                await self.clear_cache()
            except BlobStoreError as rollback_error:
                logger.error(f"Failed to roll back catalog cache: {rollback_error}")

"""Wait board view state.

持有当前 master 列表、已排序的展示记录、上次刷新时间、降级提示、
收藏集合与排序方向，并对外提供刷新/收藏/排序操作。
"""

from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger

from src.core.domain.ports.blob_store import BlobStoreError
from src.core.infrastructure.logging import BusinessEvents
from src.modules.catalog.domain.catalog import CatalogProvider, MasterEntry
from src.modules.waits.application.refresh_service import RefreshResult, RefreshService
from src.modules.waits.domain.entities import DisplayRecord, sort_records
from src.modules.waits.domain.exceptions import AttractionNotFoundError
from src.modules.waits.domain.ports import FavoritesRepository, SnapshotRepository

DEGRADED_MESSAGE = "Update failed; showing previous values"
UNAVAILABLE_MESSAGE = "Update failed; wait times unavailable"


@dataclass(frozen=True)
class BoardView:
    """Read-only projection of the board for rendering."""

    records: list[DisplayRecord]
    last_fetch: datetime | None
    error_message: str | None
    sort_ascending: bool
    favorites: frozenset[str] = field(default_factory=frozenset)
    is_refreshing: bool = False


class WaitBoard:
    """View state over the refresh pipeline."""

    def __init__(
        self,
        catalog: CatalogProvider,
        refresh_service: RefreshService,
        snapshot_store: SnapshotRepository,
        favorites_repository: FavoritesRepository,
        *,
        sort_ascending: bool = True,
    ) -> None:
        self.catalog = catalog
        self.refresh_service = refresh_service
        self.snapshot_store = snapshot_store
        self.favorites_repository = favorites_repository

        self.masters: list[MasterEntry] = []
        self.records: list[DisplayRecord] = []
        self.last_fetch: datetime | None = None
        self.error_message: str | None = None
        self.favorites: set[str] = set()
        self.sort_ascending = sort_ascending

        self._refreshing = False
        # 最近一次采纳的刷新周期时间；保留旧值的降级周期不更新 last_fetch
        self._applied_at: datetime | None = None

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing or self.refresh_service.is_refreshing

    async def restore(self) -> None:
        """冷启动：从快照恢复记录与时间，并加载收藏。"""
        snapshot = await self.snapshot_store.load()
        if snapshot is not None:
            self.records = sort_records(snapshot.records, ascending=self.sort_ascending)
            self.last_fetch = snapshot.fetched_at
            self._applied_at = snapshot.fetched_at
            logger.info(
                f"Restored snapshot with {len(self.records)} records "
                f"from {snapshot.fetched_at.isoformat()}"
            )
        self.favorites = await self.favorites_repository.load()

    async def load_catalog_and_refresh(self, force: bool = False) -> RefreshResult | None:
        """加载 catalog 后刷新。"""
        if self.is_refreshing:
            BusinessEvents.refresh_skipped(reason="in_flight")
            return None

        self._refreshing = True
        try:
            self.masters = await self.catalog.load(force=force)
            return await self._run_refresh()
        finally:
            self._refreshing = False

    async def refresh(
        self,
        include_catalog: bool = False,
        wipe_caches: bool = False,
    ) -> RefreshResult | None:
        """手动刷新。

        in-flight 标志在第一次 await 之前设置，覆盖清缓存、catalog 加载与
        扇出全过程。

        Args:
            include_catalog: 是否强制重新检查 catalog（条件请求）
            wipe_caches: 是否先清空 catalog 缓存与快照

        Returns:
            RefreshResult；已有刷新在进行中时返回 None，状态保持不变
        """
        if self.is_refreshing:
            BusinessEvents.refresh_skipped(reason="in_flight")
            return None

        self._refreshing = True
        try:
            if wipe_caches:
                await self._wipe_caches()

            if include_catalog or wipe_caches or not self.masters:
                self.masters = await self.catalog.load(
                    force=include_catalog or wipe_caches
                )

            return await self._run_refresh()
        finally:
            self._refreshing = False

    async def sync_from_snapshot(self) -> bool:
        """采纳其他进程（周期任务）写入的、比当前状态更新的快照。

        Returns:
            是否采纳了新快照
        """
        if self.is_refreshing:
            return False

        snapshot = await self.snapshot_store.load()
        if snapshot is None or self.is_refreshing:
            return False
        if self._applied_at is not None and snapshot.fetched_at <= self._applied_at:
            return False

        healthy = self._apply_cycle(snapshot.records, snapshot.fetched_at)
        logger.info(
            f"Adopted snapshot from {snapshot.fetched_at.isoformat()} "
            f"({len(snapshot.records)} records, healthy={healthy})"
        )
        return True

    async def toggle_favorite(self, attraction_id: str) -> bool:
        """切换收藏并持久化，返回切换后的状态。

        Raises:
            AttractionNotFoundError: id 不在当前 master 列表或记录中
        """
        known_ids = {master.id for master in self.masters} | {
            record.id for record in self.records
        }
        if attraction_id not in known_ids:
            raise AttractionNotFoundError(attraction_id)

        if attraction_id in self.favorites:
            self.favorites.discard(attraction_id)
            is_favorite = False
        else:
            self.favorites.add(attraction_id)
            is_favorite = True

        try:
            await self.favorites_repository.save(self.favorites)
        except BlobStoreError as e:
            logger.warning(f"Failed to persist favorites: {e}")

        BusinessEvents.favorite_toggled(
            attraction_id=attraction_id, is_favorite=is_favorite
        )
        return is_favorite

    def toggle_sort(self) -> bool:
        """翻转排序方向并在本地重新排序，返回新的方向（True 为升序）。"""
        self.sort_ascending = not self.sort_ascending
        self.records = sort_records(self.records, ascending=self.sort_ascending)
        return self.sort_ascending

    def favorites_only(self, enabled: bool) -> list[DisplayRecord]:
        if not enabled:
            return list(self.records)
        return [record for record in self.records if record.id in self.favorites]

    def view(self, favorites_only: bool = False) -> BoardView:
        return BoardView(
            records=self.favorites_only(favorites_only),
            last_fetch=self.last_fetch,
            error_message=self.error_message,
            sort_ascending=self.sort_ascending,
            favorites=frozenset(self.favorites),
            is_refreshing=self.is_refreshing,
        )

    async def _run_refresh(self) -> RefreshResult | None:
        result = await self.refresh_service.refresh(
            self.masters, sort_ascending=self.sort_ascending
        )
        if result is None:
            return None

        if not self._apply_cycle(result.records, result.fetched_at):
            BusinessEvents.feature_degraded(
                feature="waits",
                reason="no attraction returned a wait time",
            )
        return result

    def _apply_cycle(self, records: list[DisplayRecord], fetched_at: datetime) -> bool:
        """采纳一次刷新周期的结果，返回该周期是否健康。

        全部失败时，若当前记录里还有等待时间则保留当前记录与 last_fetch，
        否则展示占位记录。
        """
        self._applied_at = fetched_at
        if any(record.wait_minutes is not None for record in records):
            self.records = sort_records(records, ascending=self.sort_ascending)
            self.last_fetch = fetched_at
            self.error_message = None
            return True

        if any(record.wait_minutes is not None for record in self.records):
            self.error_message = DEGRADED_MESSAGE
        else:
            self.records = sort_records(records, ascending=self.sort_ascending)
            self.last_fetch = fetched_at
            self.error_message = UNAVAILABLE_MESSAGE
        return False

    async def _wipe_caches(self) -> None:
        logger.info("Wiping catalog cache and snapshot")
        try:
            await self.catalog.clear_cache()
        except BlobStoreError as e:
            logger.warning(f"Failed to clear catalog cache: {e}")
        try:
            await self.snapshot_store.clear()
        except BlobStoreError as e:
            logger.warning(f"Failed to clear snapshot: {e}")

"""等待时间刷新服务。

一次刷新周期：
1. 为每个启用的 master 并发发起一次状态请求（fan-out）
2. 每个请求的失败只影响自己：失败 → 占位记录
3. 等待全部请求结束（join），结果按输入位置收集
4. 按等待时间排序（稳定排序）
5. 覆盖写入快照
6. 计算整体健康信号
"""

import asyncio
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from loguru import logger

from src.core.config import settings
from src.core.domain.exceptions import FetchError
from src.core.infrastructure.logging import BusinessEvents
from src.modules.catalog.domain.catalog import MasterEntry
from src.modules.waits.domain.entities import DisplayRecord, Snapshot, sort_records
from src.modules.waits.domain.ports import SnapshotRepository, StatusFetcher


@dataclass
class RefreshResult:
    """刷新结果。"""

    records: list[DisplayRecord]
    fetched_at: datetime
    succeeded: int
    failed: int
    duration_ms: int = 0

    @property
    def total(self) -> int:
        return len(self.records)

    @property
    def healthy(self) -> bool:
        """至少一条记录拿到了等待时间即视为健康。"""
        return any(record.wait_minutes is not None for record in self.records)


class RefreshService:
    """Refresh orchestrator.

    同一时刻最多只有一个刷新在执行；执行中再次调用直接返回 None（丢弃，不排队）。
    """

    def __init__(
        self,
        status_fetcher: StatusFetcher,
        snapshot_store: SnapshotRepository,
        *,
        concurrency: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.status_fetcher = status_fetcher
        self.snapshot_store = snapshot_store
        self.concurrency = max(1, concurrency or settings.STATUS_FETCH_CONCURRENCY)
        self._clock = clock or (lambda: datetime.now(UTC))
        self._in_flight = False

    @property
    def is_refreshing(self) -> bool:
        return self._in_flight

    async def refresh(
        self,
        masters: Sequence[MasterEntry],
        sort_ascending: bool = True,
    ) -> RefreshResult | None:
        """执行一次刷新周期。

        Args:
            masters: 本次使用的 master 列表
            sort_ascending: 是否按等待时间升序

        Returns:
            RefreshResult；已有刷新在进行中时返回 None
        """
        # 检查与置位之间没有 await，在事件循环内是原子的
        if self._in_flight:
            logger.info("Refresh already in flight, skipping")
            BusinessEvents.refresh_skipped(reason="in_flight")
            return None

        self._in_flight = True
        try:
            return await self._run_cycle(masters, sort_ascending)
        finally:
            self._in_flight = False

    async def _run_cycle(
        self,
        masters: Sequence[MasterEntry],
        sort_ascending: bool,
    ) -> RefreshResult:
        start_time = time.time()
        active = [master for master in masters if master.is_active]
        logger.info(f"Starting refresh for {len(active)} attractions")

        semaphore = asyncio.Semaphore(self.concurrency)
        # gather 按输入位置返回结果，每个槽位都填满后才继续
        outcomes = await asyncio.gather(
            *(self._fetch_one(master, semaphore) for master in active)
        )

        records = sort_records(
            (record for record, _ in outcomes), ascending=sort_ascending
        )
        succeeded = sum(1 for _, ok in outcomes if ok)
        fetched_at = self._clock()

        await self.snapshot_store.save(Snapshot(records=records, fetched_at=fetched_at))

        duration_ms = int((time.time() - start_time) * 1000)
        result = RefreshResult(
            records=records,
            fetched_at=fetched_at,
            succeeded=succeeded,
            failed=len(outcomes) - succeeded,
            duration_ms=duration_ms,
        )

        BusinessEvents.refresh_completed(
            total=result.total,
            succeeded=result.succeeded,
            failed=result.failed,
            healthy=result.healthy,
            duration_ms=duration_ms,
        )
        return result

    async def _fetch_one(
        self,
        master: MasterEntry,
        semaphore: asyncio.Semaphore,
    ) -> tuple[DisplayRecord, bool]:
        async with semaphore:
            try:
                status = await self.status_fetcher.fetch_status(master)
            except FetchError as e:
                logger.warning(f"Status fetch failed for {master.id}: {e}")
                BusinessEvents.status_fetch_failed(
                    attraction_id=master.id,
                    error=e.message,
                    error_type=type(e).__name__,
                )
                return DisplayRecord.placeholder(master), False
            except Exception as e:
                logger.exception(f"Unexpected error fetching {master.id}: {e}")
                BusinessEvents.status_fetch_failed(
                    attraction_id=master.id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return DisplayRecord.placeholder(master), False

        return DisplayRecord.from_status(master, status), True

"""等待时间 Celery 任务。

由 Celery Beat 按 REFRESH_INTERVAL_SEC 周期调用。
多个 worker 之间通过 Redis 锁互斥，进程内由 WaitBoard 的 in-flight 标志互斥。
结果写入共享 blob store，API 进程读取时采纳更新的快照，因此 memory 后端下不执行。
"""

from celery import shared_task
from loguru import logger

from src.core.config import settings
from src.core.infrastructure.celery.queues import Queues
from src.core.infrastructure.logging import BusinessEvents, get_business_logger
from src.core.infrastructure.redis import (
    RedisKeys,
    RedisUnavailableError,
    get_async_redis_client,
)


@shared_task(
    name="src.modules.waits.tasks.refresh_waits",
    bind=True,
    max_retries=0,  # 周期任务不重试，下个周期自然会再跑
    queue=Queues.WAITS,
)
def refresh_waits(_self: object, force_catalog: bool = False) -> dict | None:
    """执行一次完整的 catalog 加载 + 刷新。"""
    import asyncio

    return asyncio.run(_refresh_waits_async(force_catalog=force_catalog))


async def _refresh_waits_async(force_catalog: bool = False) -> dict | None:
    """异步版本的刷新逻辑。"""
    from src.core.infrastructure.blob_store import build_blob_store
    from src.modules.waits.infrastructure.dependencies import build_wait_board

    business_log = get_business_logger()

    if settings.BLOB_STORE_BACKEND == "memory":
        logger.warning(
            "Periodic refresh needs a shared blob store (file or redis), skipping"
        )
        BusinessEvents.refresh_skipped(reason="memory_backend")
        return None

    try:
        async with get_async_redis_client() as redis:
            acquired = await redis.acquire_lock(
                RedisKeys.WAITS_REFRESH_RESOURCE,
                ttl=settings.REFRESH_LOCK_TTL_SEC,
            )
            if not acquired:
                logger.info("Another worker holds the refresh lock, skipping")
                BusinessEvents.refresh_skipped(reason="locked")
                return None

            blob_store = build_blob_store(settings)
            try:
                board = build_wait_board(blob_store, settings)
                await board.restore()
                result = await board.load_catalog_and_refresh(force=force_catalog)
            finally:
                await blob_store.close()
                await redis.release_lock(RedisKeys.WAITS_REFRESH_RESOURCE)
    except RedisUnavailableError as e:
        logger.error(f"Redis unavailable, refresh skipped: {e}")
        BusinessEvents.feature_degraded(feature="refresh_lock", reason=str(e))
        return None

    if result is None:
        return None

    business_log.info(
        "periodic_refresh_finished",
        total=result.total,
        healthy=result.healthy,
        fetched_at=result.fetched_at.isoformat(),
    )
    return {
        "total": result.total,
        "succeeded": result.succeeded,
        "failed": result.failed,
        "healthy": result.healthy,
        "fetched_at": result.fetched_at.isoformat(),
    }

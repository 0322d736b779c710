"""Celery 应用配置。

- 使用 JSON 序列化
- 刷新任务独占 q_waits 队列
- 配置定时任务（Beat）
"""

from celery import Celery
from kombu import Exchange, Queue

from src.core.config import settings
from src.core.infrastructure.celery.queues import TASK_ROUTES, Queues

# 创建 Celery 应用
celery_app = Celery("parkwait")

# 基础配置
celery_app.conf.update(
    # Broker & Backend
    broker_url=settings.celery_broker_url,
    result_backend=settings.celery_result_backend,
    # 序列化配置
    task_serializer=settings.CELERY_TASK_SERIALIZER,
    result_serializer=settings.CELERY_RESULT_SERIALIZER,
    accept_content=settings.CELERY_ACCEPT_CONTENT,
    # 时区配置
    timezone=settings.TIMEZONE,
    enable_utc=True,
    # 任务配置
    task_track_started=True,
    task_time_limit=settings.REFRESH_LOCK_TTL_SEC,  # 硬超时不超过锁的 TTL
    task_soft_time_limit=max(settings.REFRESH_LOCK_TTL_SEC - 30, 30),
    task_acks_late=True,  # 任务完成后才确认
    task_reject_on_worker_lost=True,  # Worker 丢失时拒绝任务
    # 结果配置
    result_expires=3600,  # 结果保留 1 小时
    # Worker 配置
    worker_prefetch_multiplier=1,  # 一次只取一个任务
    worker_concurrency=1,  # 默认并发数，实际由启动参数控制
)

# 队列配置
default_exchange = Exchange("default", type="direct")
celery_app.conf.task_queues = (
    Queue(Queues.WAITS, default_exchange, routing_key=Queues.WAITS),
)

# 任务路由
celery_app.conf.task_routes = TASK_ROUTES

# 默认队列
celery_app.conf.task_default_queue = Queues.WAITS

# 定时任务配置（Celery Beat），memory 后端无法跨进程共享快照，不调度
celery_app.conf.beat_schedule = {}
if settings.BLOB_STORE_BACKEND != "memory":
    celery_app.conf.beat_schedule["refresh-waits"] = {
        "task": "src.modules.waits.tasks.refresh_waits",
        "schedule": float(settings.REFRESH_INTERVAL_SEC),
        "options": {"queue": Queues.WAITS},
    }

# 自动发现任务
celery_app.autodiscover_tasks(["src.modules.waits"], related_name="tasks")

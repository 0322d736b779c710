"""Celery 队列定义。

- q_waits: 等待时间刷新任务
"""

from enum import StrEnum


class Queues(StrEnum):
    """Celery 队列枚举。"""

    WAITS = "q_waits"

    @classmethod
    def all_queues(cls) -> list[str]:
        """返回所有队列名称列表。"""
        return [q.value for q in cls]


# 队列路由配置
# 任务名称模式 -> 队列
TASK_ROUTES = {
    "src.modules.waits.tasks.*": {"queue": Queues.WAITS},
}

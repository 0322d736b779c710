"""Redis Key 命名规范。

Redis 在本项目中用于：
- Blob store 后端（key 由 BlobKeys 生成，这里不重复定义）
- 分布式锁：防止多个 worker 同时执行刷新
- 健康检查
"""


class RedisKeys:
    """Redis Key 命名空间管理。"""

    # 锁
    # lock:{resource}
    LOCK_PREFIX = "lock"

    # 健康检查
    HEALTH_CHECK_KEY = "health:ping"

    # 刷新任务锁对应的资源名
    WAITS_REFRESH_RESOURCE = "waits_refresh"

    @classmethod
    def lock(cls, resource: str) -> str:
        """生成锁 key。

        Args:
            resource: 资源名称

        Returns:
            格式化的 Redis key
        """
        return f"{cls.LOCK_PREFIX}:{resource}"

"""Redis 客户端封装。"""

from src.core.infrastructure.redis.blob_store import RedisBlobStore
from src.core.infrastructure.redis.client import (
    RedisClient,
    RedisUnavailableError,
    get_async_redis_client,
)
from src.core.infrastructure.redis.keys import RedisKeys

__all__ = [
    "RedisBlobStore",
    "RedisClient",
    "RedisKeys",
    "RedisUnavailableError",
    "get_async_redis_client",
]

"""Redis-backed blob store."""

from redis.exceptions import RedisError

from src.core.domain.ports.blob_store import BlobStore, BlobStoreError
from src.core.infrastructure.redis.client import RedisClient


class RedisBlobStore(BlobStore):
    """Store blobs as plain Redis string values."""

    def __init__(self, redis_client: RedisClient):
        self._redis = redis_client

    async def get(self, key: str) -> bytes | None:
        try:
            return await self._redis.get(key)
        except RedisError as e:
            raise BlobStoreError(f"Redis get failed for {key}: {e}") from e

    async def set(self, key: str, value: bytes) -> None:
        try:
            await self._redis.set(key, value)
        except RedisError as e:
            raise BlobStoreError(f"Redis set failed for {key}: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(key)
        except RedisError as e:
            raise BlobStoreError(f"Redis delete failed for {key}: {e}") from e

    async def close(self) -> None:
        await self._redis.close()

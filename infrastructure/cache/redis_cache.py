from datetime import timedelta

from redis import asyncio as redis
from redis.exceptions import RedisError

from domain.exceptions.currency import CacheError
from infrastructure.cache.base import CacheStore


class RedisCacheStore(CacheStore):
    def __init__(self, redis_client: redis.Redis, key_prefix: str = 'rates:'):
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _make_key(self, key: str) -> str:
        return f'{self.key_prefix}{key}'

    async def get(self, key: str) -> str | None:
        try:
            data = await self.redis.get(self._make_key(key))
        except RedisError as e:
            raise CacheError(f'Redis get failed for {key}: {e}') from e

        if data is None:
            return None
        if isinstance(data, bytes):
            return data.decode('utf-8')
        return data

    async def set(self, key: str, value: str, ttl: timedelta) -> None:
        try:
            await self.redis.setex(self._make_key(key), ttl, value)
        except RedisError as e:
            raise CacheError(f'Redis set failed for {key}: {e}') from e

    async def close(self) -> None:
        await self.redis.aclose()

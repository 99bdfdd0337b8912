"""
Redis cache backend.
"""

import json
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..shared.errors import CacheError
from ..shared.logging import get_logger


class RedisCache:
    """Redis-backed cache; values are stored JSON-encoded."""

    def __init__(self, redis_url: Optional[str] = None, *, client: Optional[redis.Redis] = None):
        if redis_url is None and client is None:
            raise ValueError("RedisCache needs a redis_url or a client")
        self.redis_url = redis_url
        self.logger = get_logger("wechat.cache.redis")
        self.redis: Optional[redis.Redis] = client

    async def start(self):
        """Connect and verify the server answers."""
        try:
            if self.redis is None:
                self.redis = self._connect()
            await self.redis.ping()
            self.logger.info("Redis cache started")
        except RedisError as e:
            self.logger.error("Failed to start Redis cache", error=str(e))
            raise CacheError(f"Redis start failed: {e}") from e

    async def stop(self):
        """Close the connection pool."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            self.logger.info("Redis cache stopped")

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self._client().get(key)
        except RedisError as e:
            self.logger.error("Error reading cache", key=key, error=str(e))
            raise CacheError(f"Redis get failed: {e}", details={"key": key}) from e

        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            # Plain strings written by other clients sharing the key space
            return raw

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        payload = json.dumps(value)
        try:
            if ttl_seconds > 0:
                await self._client().set(key, payload, ex=max(1, int(ttl_seconds)))
            else:
                await self._client().set(key, payload)
        except RedisError as e:
            self.logger.error("Error writing cache", key=key, error=str(e))
            raise CacheError(f"Redis set failed: {e}", details={"key": key}) from e

        self.logger.debug("Cached value", key=key, ttl=ttl_seconds)

    async def delete(self, key: str) -> None:
        try:
            await self._client().delete(key)
        except RedisError as e:
            self.logger.error("Error deleting cache entry", key=key, error=str(e))
            raise CacheError(f"Redis delete failed: {e}", details={"key": key}) from e

    async def is_exist(self, key: str) -> bool:
        try:
            return bool(await self._client().exists(key))
        except RedisError as e:
            self.logger.error("Error checking cache entry", key=key, error=str(e))
            raise CacheError(f"Redis exists failed: {e}", details={"key": key}) from e

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            await self._client().ping()
            return True
        except RedisError:
            return False

    def _client(self) -> redis.Redis:
        if self.redis is None:
            self.redis = self._connect()
        return self.redis

    def _connect(self) -> redis.Redis:
        return redis.from_url(
            self.redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30
        )

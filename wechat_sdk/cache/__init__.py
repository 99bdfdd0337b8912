"""
Pluggable cache backends.
"""

from typing import Optional

from .base import Cache
from .memory import MemoryCache
from .redis_cache import RedisCache
from ..shared.config import SDKSettings, get_settings


def build_cache(settings: Optional[SDKSettings] = None) -> Cache:
    """Redis cache when a redis URL is configured, memory cache otherwise."""
    settings = settings or get_settings()
    if settings.redis_url:
        return RedisCache(settings.redis_url)
    return MemoryCache()


__all__ = ["Cache", "MemoryCache", "RedisCache", "build_cache"]

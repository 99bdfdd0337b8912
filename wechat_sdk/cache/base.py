"""
Cache capability shared by every backend.
"""

from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class Cache(Protocol):
    """Key/value store with per-entry expiry.

    Expired entries must read as absent. ``delete`` on a missing key is
    not an error. ``set`` raises ``CacheError`` when the backend fails.
    """

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def is_exist(self, key: str) -> bool:
        ...

"""
Credential capabilities and shared response handling.
"""

import asyncio
import threading
import weakref
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Protocol, Type, TypeVar, runtime_checkable

from pydantic import BaseModel, ValidationError

from ..context import RequestContext
from ..shared.errors import MalformedResponseError, RemoteAPIError

# Cache key prefixes, shared with other WeChat SDKs writing to the same cache
CACHE_KEY_OFFICIAL_ACCOUNT_PREFIX = "gowechat_officialaccount_"
CACHE_KEY_MINI_PROGRAM_PREFIX = "gowechat_miniprogram_"
CACHE_KEY_WORK_PREFIX = "gowechat_work_"

# Seconds shaved off a credential's lifetime before caching it
EXPIRY_SAFETY_MARGIN = 1500

R = TypeVar("R", bound="CommonError")


class CommonError(BaseModel):
    """errcode/errmsg pair every WeChat API response carries."""

    errcode: int = 0
    errmsg: str = ""


@runtime_checkable
class AccessTokenProvider(Protocol):
    """Supplies a bearer access token."""

    async def get_access_token(self, ctx: RequestContext) -> str:
        ...


def parse_response(model: Type[R], data: Dict[str, Any], api: str) -> R:
    """Validate a decoded response and raise on a non-zero errcode."""
    try:
        parsed = model.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(
            f"{api}: unexpected response shape",
            details={"errors": e.errors(include_url=False)}
        ) from e

    if parsed.errcode != 0:
        raise RemoteAPIError(parsed.errcode, parsed.errmsg, api=api)
    return parsed


def cache_ttl(expires_in: int) -> int:
    """Cache lifetime for a credential valid for ``expires_in`` seconds."""
    return max(0, expires_in - EXPIRY_SAFETY_MARGIN)


class RefreshLock:
    """Serializes credential refreshes on one fetcher.

    An ``asyncio.Lock`` belongs to a single event loop, so callers on
    different threads (each running its own loop) get one lock per loop.
    Refreshes are coalesced within a loop, not across loops.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock]" = (
            weakref.WeakKeyDictionary()
        )

    def for_running_loop(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        with self._guard:
            lock = self._locks.get(loop)
            if lock is None:
                lock = self._locks[loop] = asyncio.Lock()
            return lock

    @asynccontextmanager
    async def hold(self, ctx: RequestContext) -> AsyncIterator[None]:
        """Hold the lock for the running loop; the wait observes ``ctx``."""
        lock = self.for_running_loop()
        acquire = asyncio.ensure_future(lock.acquire())
        try:
            await ctx.run(acquire)
        except BaseException:
            # The lock can be handed over in the same tick the wait is abandoned
            if acquire.done() and not acquire.cancelled() and acquire.exception() is None:
                lock.release()
            raise
        try:
            yield
        finally:
            lock.release()

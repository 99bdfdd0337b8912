"""
JS-API ticket fetching and caching.
"""

import time
from typing import Any, Optional, Protocol, runtime_checkable

import httpx
from pydantic import Field

from ..cache.base import Cache
from ..context import RequestContext
from ..shared.errors import MalformedResponseError
from ..shared.logging import bind_app_id, get_logger
from ..shared.metrics import MetricsCollector, get_metrics
from ..util.http import http_get
from .base import CommonError, RefreshLock, cache_ttl, parse_response

TICKET_URL = "https://api.weixin.qq.com/cgi-bin/ticket/getticket"

logger = get_logger("wechat.credential.js_ticket")


class Ticket(CommonError):
    """A JS-API ticket as issued by WeChat."""

    ticket: str = ""
    expires_in: int = 0
    expires_at: float = Field(default=0.0, description="Epoch seconds the ticket stops being valid")


@runtime_checkable
class JsTicketHandle(Protocol):
    """Supplies a JS-API ticket for an access token."""

    async def get_ticket(self, ctx: RequestContext, access_token: str) -> Ticket:
        ...


async def get_ticket_from_server(
    ctx: RequestContext,
    access_token: str,
    client: Optional[httpx.AsyncClient] = None
) -> Ticket:
    """Request a fresh jsapi ticket from WeChat, bypassing any cache."""
    data = await http_get(
        ctx,
        TICKET_URL,
        params={"access_token": access_token, "type": "jsapi"},
        client=client
    )
    ticket = parse_response(Ticket, data, api="getTicket")
    if not ticket.ticket:
        raise MalformedResponseError("getTicket: response carries no ticket")
    ticket.expires_at = time.time() + ticket.expires_in
    return ticket


class DefaultJsTicket:
    """Ticket fetcher backed by a cache, keyed per app id.

    Concurrent misses on one instance are serialized and re-check the cache,
    so they cost a single remote call.
    """

    def __init__(
        self,
        app_id: str,
        cache_key_prefix: str,
        cache: Cache,
        *,
        client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[MetricsCollector] = None
    ):
        self.app_id = app_id
        self.cache_key_prefix = cache_key_prefix
        self.cache = cache
        self.client = client
        self.metrics = metrics or get_metrics()
        self._refresh_lock = RefreshLock()

    @property
    def cache_key(self) -> str:
        return f"{self.cache_key_prefix}_jsapi_ticket_{self.app_id}"

    async def get_ticket(
        self,
        ctx: RequestContext,
        access_token: str,
        force_refresh: bool = False
    ) -> Ticket:
        """Cached ticket when present, otherwise one fetched under ``ctx``."""
        with bind_app_id(self.app_id):
            return await self._get_ticket(ctx, access_token, force_refresh)

    async def _get_ticket(self, ctx: RequestContext, access_token: str, force_refresh: bool) -> Ticket:
        key = self.cache_key
        if not force_refresh:
            cached = await self._cached(key)
            self.metrics.record_cache_lookup("jsapi_ticket", hit=cached is not None)
            if cached is not None:
                logger.debug("jsapi ticket cache hit", app_id=self.app_id)
                return cached

        async with self._refresh_lock.hold(ctx):
            if not force_refresh:
                cached = await self._cached(key)
                if cached is not None:
                    return cached

            logger.debug("jsapi ticket cache miss", app_id=self.app_id, forced=force_refresh)
            with self.metrics.track_fetch("jsapi_ticket"):
                ticket = await get_ticket_from_server(ctx, access_token, self.client)

            # A call cancelled while in flight must not leave a cache entry behind
            ctx.check()
            ttl = cache_ttl(ticket.expires_in)
            if ttl > 0:
                await self.cache.set(key, ticket.model_dump(mode="json"), ttl)
            logger.info("jsapi ticket fetched", app_id=self.app_id,
                        expires_in=ticket.expires_in, cached_for=ttl)
            return ticket

    async def _cached(self, key: str) -> Optional[Ticket]:
        value: Any = await self.cache.get(key)
        if value is None:
            return None
        if isinstance(value, str):
            # Written by a client that stores the bare ticket string
            return Ticket(ticket=value)
        return Ticket.model_validate(value)

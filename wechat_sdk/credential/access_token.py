"""
Official account access token fetching and caching.
"""

from typing import Optional

import httpx

from ..cache.base import Cache
from ..context import RequestContext
from ..shared.errors import MalformedResponseError
from ..shared.logging import bind_app_id, get_logger
from ..shared.metrics import MetricsCollector, get_metrics
from ..util.http import http_get
from .base import CommonError, RefreshLock, cache_ttl, parse_response

ACCESS_TOKEN_URL = "https://api.weixin.qq.com/cgi-bin/token"

logger = get_logger("wechat.credential.access_token")


class AccessTokenResponse(CommonError):
    access_token: str = ""
    expires_in: int = 0


async def get_access_token_from_server(
    ctx: RequestContext,
    app_id: str,
    app_secret: str,
    client: Optional[httpx.AsyncClient] = None
) -> AccessTokenResponse:
    """Request a fresh access token from WeChat, bypassing any cache."""
    data = await http_get(
        ctx,
        ACCESS_TOKEN_URL,
        params={"grant_type": "client_credential", "appid": app_id, "secret": app_secret},
        client=client
    )
    resp = parse_response(AccessTokenResponse, data, api="getAccessToken")
    if not resp.access_token:
        raise MalformedResponseError("getAccessToken: response carries no access_token")
    return resp


class DefaultAccessToken:
    """Access token provider backed by a cache, keyed per app id."""

    def __init__(
        self,
        app_id: str,
        app_secret: str,
        cache_key_prefix: str,
        cache: Cache,
        *,
        client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[MetricsCollector] = None
    ):
        if cache is None:
            raise ValueError("cache is required")
        self.app_id = app_id
        self.app_secret = app_secret
        self.cache_key_prefix = cache_key_prefix
        self.cache = cache
        self.client = client
        self.metrics = metrics or get_metrics()
        self._refresh_lock = RefreshLock()

    @property
    def cache_key(self) -> str:
        return f"{self.cache_key_prefix}access_token_{self.app_id}"

    async def get_access_token(self, ctx: RequestContext) -> str:
        with bind_app_id(self.app_id):
            return await self._get_access_token(ctx)

    async def _get_access_token(self, ctx: RequestContext) -> str:
        key = self.cache_key
        token = await self.cache.get(key)
        self.metrics.record_cache_lookup("access_token", hit=bool(token))
        if token:
            return token

        async with self._refresh_lock.hold(ctx):
            # Another task may have refreshed while we waited
            token = await self.cache.get(key)
            if token:
                return token

            with self.metrics.track_fetch("access_token"):
                resp = await get_access_token_from_server(ctx, self.app_id, self.app_secret, self.client)
            ctx.check()
            ttl = cache_ttl(resp.expires_in)
            if ttl > 0:
                await self.cache.set(key, resp.access_token, ttl)
            logger.info("access token fetched", app_id=self.app_id, expires_in=resp.expires_in)
            return resp.access_token

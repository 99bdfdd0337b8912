"""
Official account entry point.
"""

from typing import Optional

import httpx

from ..context import RequestContext
from ..credential.access_token import DefaultAccessToken
from ..credential.base import AccessTokenProvider
from .config import OfficialAccountConfig, OfficialAccountContext
from .js import Js, JsConfig, sign_js_config


class OfficialAccount:
    """Wires credentials and modules for one official account."""

    def __init__(self, config: OfficialAccountConfig, *, client: Optional[httpx.AsyncClient] = None):
        self.client = client
        handle = DefaultAccessToken(
            config.app_id,
            config.app_secret,
            config.cache_key_prefix,
            config.cache,
            client=client
        )
        self.context = OfficialAccountContext(config=config, access_token_handle=handle)
        self._js: Optional[Js] = None

    def set_access_token_handle(self, handle: AccessTokenProvider) -> None:
        """Swap in a custom access token provider, e.g. a central token service."""
        self.context.access_token_handle = handle

    async def get_access_token(self, ctx: RequestContext) -> str:
        return await self.context.access_token_handle.get_access_token(ctx)

    def get_js(self) -> Js:
        if self._js is None:
            self._js = Js(self.context, client=self.client)
        return self._js


__all__ = [
    "Js",
    "JsConfig",
    "OfficialAccount",
    "OfficialAccountConfig",
    "OfficialAccountContext",
    "sign_js_config",
]

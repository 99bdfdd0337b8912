"""
JS-SDK configuration for official account web pages.
"""

from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from ..context import RequestContext
from ..credential.js_ticket import DefaultJsTicket, JsTicketHandle
from ..shared.logging import bind_app_id, get_logger
from ..util.signature import current_timestamp, random_str, signature
from .config import OfficialAccountContext

NONCE_LENGTH = 16

logger = get_logger("wechat.officialaccount.js")


class JsConfig(BaseModel):
    """Signed configuration handed to ``wx.config`` on the client."""

    model_config = ConfigDict(populate_by_name=True)

    app_id: str = Field(alias="appId")
    nonce_str: str = Field(alias="nonceStr")
    timestamp: int
    url: str
    signature: str


def sign_js_config(ticket: str, nonce_str: str, timestamp: int, url: str) -> str:
    """Signature over the canonical jsapi_ticket/noncestr/timestamp/url string."""
    raw = f"jsapi_ticket={ticket}&noncestr={nonce_str}&timestamp={timestamp}&url={url}"
    return signature(raw)


class Js:
    """Builds JS-SDK configs for one official account."""

    def __init__(
        self,
        context: OfficialAccountContext,
        js_ticket_handle: Optional[JsTicketHandle] = None,
        *,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.context = context
        self.js_ticket_handle = js_ticket_handle or DefaultJsTicket(
            context.app_id,
            context.config.cache_key_prefix,
            context.config.cache,
            client=client
        )

    def set_js_ticket_handle(self, handle: JsTicketHandle) -> None:
        self.js_ticket_handle = handle

    async def get_config(self, ctx: RequestContext, url: str, app_id: Optional[str] = None) -> JsConfig:
        """Signed JS-SDK config for ``url``.

        ``ctx`` reaches both the access token provider and the ticket
        fetch; errors from either propagate unchanged.
        """
        with bind_app_id(self.context.app_id):
            access_token = await self.context.access_token_handle.get_access_token(ctx)
            ticket = await self.js_ticket_handle.get_ticket(ctx, access_token)

        nonce_str = random_str(NONCE_LENGTH)
        timestamp = current_timestamp()
        config = JsConfig(
            app_id=app_id or self.context.app_id,
            nonce_str=nonce_str,
            timestamp=timestamp,
            url=url,
            signature=sign_js_config(ticket.ticket, nonce_str, timestamp, url),
        )
        logger.debug("js config built", app_id=config.app_id)
        return config

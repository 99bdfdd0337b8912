"""
Remote credentials: access tokens and JS-API tickets.
"""

from .access_token import DefaultAccessToken, get_access_token_from_server
from .base import (
    CACHE_KEY_MINI_PROGRAM_PREFIX,
    CACHE_KEY_OFFICIAL_ACCOUNT_PREFIX,
    CACHE_KEY_WORK_PREFIX,
    AccessTokenProvider,
)
from .js_ticket import DefaultJsTicket, JsTicketHandle, Ticket, get_ticket_from_server

__all__ = [
    "AccessTokenProvider",
    "CACHE_KEY_MINI_PROGRAM_PREFIX",
    "CACHE_KEY_OFFICIAL_ACCOUNT_PREFIX",
    "CACHE_KEY_WORK_PREFIX",
    "DefaultAccessToken",
    "DefaultJsTicket",
    "JsTicketHandle",
    "Ticket",
    "get_access_token_from_server",
    "get_ticket_from_server",
]

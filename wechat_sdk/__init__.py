"""
WeChat Official Account SDK core.

Credentials (access token, JS-API ticket) are fetched under an explicit
``RequestContext`` and cached in a pluggable ``Cache``.
"""

from .context import RequestContext, background
from .shared.errors import (
    CacheError,
    ContextCancelled,
    ContextDeadlineExceeded,
    ContextError,
    MalformedResponseError,
    NetworkError,
    RemoteAPIError,
    WeChatSDKError,
)

__version__ = "0.1.0"

__all__ = [
    "CacheError",
    "ContextCancelled",
    "ContextDeadlineExceeded",
    "ContextError",
    "MalformedResponseError",
    "NetworkError",
    "RemoteAPIError",
    "RequestContext",
    "WeChatSDKError",
    "background",
]

"""
Shared error types for the WeChat SDK.
"""

from typing import Dict, Any, Optional


class WeChatSDKError(Exception):
    """Base exception for the SDK."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ContextError(WeChatSDKError):
    """Raised when a request context is done."""


class ContextCancelled(ContextError):
    """The request context was cancelled."""

    def __init__(self, message: str = "context canceled", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONTEXT_CANCELLED", message, details)


class ContextDeadlineExceeded(ContextError, TimeoutError):
    """The request context deadline passed."""

    def __init__(self, message: str = "context deadline exceeded", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONTEXT_DEADLINE_EXCEEDED", message, details)


class NetworkError(WeChatSDKError):
    """Transport-level failures talking to WeChat."""

    def __init__(self, message: str = "Network error", details: Optional[Dict[str, Any]] = None):
        super().__init__("NETWORK_ERROR", message, details)


class MalformedResponseError(WeChatSDKError):
    """The remote endpoint returned a body we could not decode."""

    def __init__(self, message: str = "Malformed response", details: Optional[Dict[str, Any]] = None):
        super().__init__("MALFORMED_RESPONSE", message, details)


class RemoteAPIError(WeChatSDKError):
    """WeChat answered with a non-zero errcode."""

    def __init__(self, errcode: int, errmsg: str, api: str = "", details: Optional[Dict[str, Any]] = None):
        self.errcode = errcode
        self.errmsg = errmsg
        self.api = api
        prefix = f"{api} Error : " if api else ""
        super().__init__(
            "REMOTE_API_ERROR",
            f"{prefix}errcode={errcode} , errmsg={errmsg}",
            {"errcode": errcode, "errmsg": errmsg, **(details or {})}
        )


class CacheError(WeChatSDKError):
    """Cache backend failures."""

    def __init__(self, message: str = "Cache error", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_ERROR", message, details)

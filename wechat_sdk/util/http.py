"""
Context-aware HTTP helpers for WeChat endpoints.
"""

import time
from typing import Any, Dict, Optional

import httpx

from ..context import RequestContext
from ..shared.config import get_settings
from ..shared.errors import MalformedResponseError, NetworkError
from ..shared.logging import get_logger

# Key under which the caller's RequestContext travels in request.extensions
CONTEXT_EXTENSION = "context"

logger = get_logger("wechat.http")


async def http_get(
    ctx: RequestContext,
    url: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None
) -> Dict[str, Any]:
    """GET ``url`` under ``ctx`` and decode the JSON object it returns.

    The request is abandoned as soon as ``ctx`` is cancelled or its
    deadline passes; the context's own error is raised in that case.
    Without an injected ``client`` a short-lived one is opened for the call.
    """
    ctx.check()

    if client is not None:
        return await _get_json(ctx, client, url, params)

    async with httpx.AsyncClient(timeout=timeout or get_settings().http_timeout) as owned:
        return await _get_json(ctx, owned, url, params)


async def _get_json(
    ctx: RequestContext,
    client: httpx.AsyncClient,
    url: str,
    params: Optional[Dict[str, Any]]
) -> Dict[str, Any]:
    t0 = time.time()
    try:
        response = await ctx.run(
            client.get(url, params=params, extensions={CONTEXT_EXTENSION: ctx})
        )
    except httpx.HTTPError as e:
        _log_request(url, -1, t0, error=str(e))
        raise NetworkError(f"GET {url} failed: {e}", details={"url": url}) from e

    _log_request(url, response.status_code, t0)
    if response.status_code >= 400:
        raise NetworkError(
            f"GET {url} returned HTTP {response.status_code}",
            details={"url": url, "status_code": response.status_code}
        )

    try:
        data = response.json()
    except ValueError as e:
        raise MalformedResponseError(
            f"Invalid JSON from {url}: {e}",
            details={"url": url, "body": response.text[:200]}
        ) from e

    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"Expected a JSON object from {url}",
            details={"url": url, "body": response.text[:200]}
        )
    return data


def _log_request(url: str, status: int, started: float, error: Optional[str] = None) -> None:
    # Query strings carry credentials; never log them
    safe_url = url.split("?")[0]
    duration_ms = int((time.time() - started) * 1000)
    if error:
        logger.error("http_request", method="GET", url=safe_url, status=status,
                     duration_ms=duration_ms, error=error)
    else:
        logger.debug("http_request", method="GET", url=safe_url, status=status,
                     duration_ms=duration_ms)

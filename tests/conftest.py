"""
Shared fixtures for SDK tests.
"""

import pytest
import pytest_asyncio

from wechat_sdk.cache import MemoryCache
from wechat_sdk.context import RequestContext
from wechat_sdk.shared.config import get_settings
from wechat_sdk.shared.test_helpers import MockAccessTokenHandle, RecordingTransport


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; reset around each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def memory_cache():
    """Empty in-memory cache."""
    return MemoryCache()


@pytest.fixture
def transport():
    """Transport answering with a valid ticket."""
    return RecordingTransport()


@pytest_asyncio.fixture
async def http_client(transport):
    """AsyncClient bound to the recording transport."""
    async with transport.client() as client:
        yield client


@pytest.fixture
def access_token_handle():
    """Access token provider with a fixed token."""
    return MockAccessTokenHandle()


@pytest.fixture
def background_ctx():
    """Root request context."""
    return RequestContext.background()

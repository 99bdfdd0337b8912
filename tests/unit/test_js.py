"""
Unit tests for JS-SDK config building.
"""

import pytest

from wechat_sdk.cache import MemoryCache
from wechat_sdk.context import background
from wechat_sdk.credential import CACHE_KEY_OFFICIAL_ACCOUNT_PREFIX, DefaultJsTicket
from wechat_sdk.officialaccount import Js, JsConfig, OfficialAccount, OfficialAccountConfig, sign_js_config
from wechat_sdk.officialaccount.config import OfficialAccountContext
from wechat_sdk.shared.errors import ContextCancelled, RemoteAPIError
from wechat_sdk.shared.logging import app_id_var
from wechat_sdk.shared.test_helpers import MockAccessTokenHandle, RecordingTransport, TestDataFactory

APP_ID = "test-app-id"
URL = "https://www.baidu.com"


def build_js(cache, client, handle=None):
    """Js wired like an official account with a mock token provider."""
    config = OfficialAccountConfig(app_id=APP_ID, app_secret="test-app-secret", cache=cache)
    context = OfficialAccountContext(config=config, access_token_handle=handle or MockAccessTokenHandle())
    js = Js(context)
    js.set_js_ticket_handle(DefaultJsTicket(APP_ID, CACHE_KEY_OFFICIAL_ACCOUNT_PREFIX, cache, client=client))
    return js


class TestSignJsConfig:
    """Signature over ticket, nonce, timestamp and url."""

    def test_known_vector(self):
        """Matches the published JS-SDK signing example."""
        sig = sign_js_config(
            "sM4AOVdWfPE4DxkXGEs8VMCPGGVi4C3VM0P37wVUCFvkVAy_90u5h9nbSlYy3-Sl-HhTdfl2fzFy1AOcHKP7qg",
            "Wm3WZYTPz0wzccnW",
            1414587457,
            "http://mp.weixin.qq.com?params=value",
        )
        assert sig == "0f9de62fce790f9a083d5c99e95740ceb90c27ed"


class TestGetConfig:
    """Test cases for Js.get_config."""

    @pytest.mark.asyncio
    async def test_empty_cache_returns_config(self, memory_cache, transport, http_client):
        """Empty cache and valid token produce a config for the requested app."""
        js = build_js(memory_cache, http_client)

        config = await js.get_config(background(), URL, APP_ID)

        assert config.app_id == APP_ID
        assert config.url == URL
        assert len(config.nonce_str) == 16
        assert config.signature == sign_js_config("mock-ticket", config.nonce_str, config.timestamp, URL)
        assert transport.call_count == 1

    @pytest.mark.asyncio
    async def test_context_passing(self, memory_cache, transport, http_client):
        """The caller's context and its values reach the transport."""
        handle = MockAccessTokenHandle()
        js = build_js(memory_cache, http_client, handle)
        ctx = background().with_value("testKey111", "testValue222")

        config = await js.get_config(ctx, URL, APP_ID)

        assert config.app_id == APP_ID
        assert handle.contexts == [ctx]
        seen = transport.calls[0].context
        assert seen is ctx
        assert seen.value("testKey111") == "testValue222"

    @pytest.mark.asyncio
    async def test_context_cancellation(self, memory_cache, transport, http_client):
        """A cancelled context yields ContextCancelled and caches nothing."""
        js = build_js(memory_cache, http_client)
        ctx, cancel = background().with_cancel()
        cancel()

        with pytest.raises(ContextCancelled):
            await js.get_config(ctx, URL, APP_ID)

        assert transport.call_count == 0
        assert len(memory_cache) == 0

    @pytest.mark.asyncio
    async def test_cached_ticket_skips_transport(self, memory_cache, transport, http_client):
        """A pre-populated ticket is used without contacting the transport."""
        js = build_js(memory_cache, http_client)
        await memory_cache.set(js.js_ticket_handle.cache_key, "cached-ticket", 60)

        config = await js.get_config(background(), URL, APP_ID)

        assert transport.call_count == 0
        assert config.signature == sign_js_config("cached-ticket", config.nonce_str, config.timestamp, URL)

    @pytest.mark.asyncio
    async def test_app_id_defaults_to_account(self, memory_cache, http_client):
        """Without an explicit app id the account's is used."""
        js = build_js(memory_cache, http_client)

        config = await js.get_config(background(), URL)

        assert config.app_id == APP_ID

    @pytest.mark.asyncio
    async def test_ticket_error_propagates(self, memory_cache):
        """Remote errors from the ticket fetch surface unchanged."""
        transport = RecordingTransport(TestDataFactory.error_payload(40001, "invalid credential"))
        async with transport.client() as client:
            js = build_js(memory_cache, client)
            with pytest.raises(RemoteAPIError):
                await js.get_config(background(), URL, APP_ID)

    def test_serialized_field_names(self):
        """Client-side code receives camelCase field names."""
        config = JsConfig(app_id="a", nonce_str="n", timestamp=1, url="u", signature="s")
        assert config.model_dump(by_alias=True) == {
            "appId": "a", "nonceStr": "n", "timestamp": 1, "url": "u", "signature": "s",
        }


class TestOfficialAccount:
    """End-to-end wiring through OfficialAccount."""

    @pytest.mark.asyncio
    async def test_token_and_ticket_through_one_transport(self):
        """Default wiring fetches a token, then a ticket, under one context."""
        transport = RecordingTransport(routes={
            "/cgi-bin/token": TestDataFactory.access_token_payload("tok-1"),
            "/cgi-bin/ticket/getticket": TestDataFactory.ticket_payload("real-ticket"),
        })
        cache = MemoryCache()
        async with transport.client() as client:
            account = OfficialAccount(OfficialAccountConfig(app_id=APP_ID, app_secret="s", cache=cache), client=client)
            ctx = background().with_value("request_id", "r-1")
            config = await account.get_js().get_config(ctx, URL)

        assert config.signature == sign_js_config("real-ticket", config.nonce_str, config.timestamp, URL)
        assert transport.call_count == 2
        assert all(call.context is ctx for call in transport.calls)
        assert transport.calls[1].params == {"access_token": "tok-1", "type": "jsapi"}
        assert account.get_js() is account.get_js()

    @pytest.mark.asyncio
    async def test_custom_access_token_handle(self, memory_cache):
        """A custom provider replaces the default one."""
        account = OfficialAccount(OfficialAccountConfig(app_id=APP_ID, cache=memory_cache))
        account.set_access_token_handle(MockAccessTokenHandle(token="central-token"))

        assert await account.get_access_token(background()) == "central-token"

    @pytest.mark.asyncio
    async def test_cache_key_prefix_from_config(self):
        """Both default fetchers key their entries with the configured prefix."""
        transport = RecordingTransport(routes={
            "/cgi-bin/token": TestDataFactory.access_token_payload("tok-1"),
            "/cgi-bin/ticket/getticket": TestDataFactory.ticket_payload("real-ticket"),
        })
        cache = MemoryCache()
        config = OfficialAccountConfig(app_id=APP_ID, app_secret="s", cache=cache, cache_key_prefix="tenant_a_")
        async with transport.client() as client:
            account = OfficialAccount(config, client=client)
            await account.get_js().get_config(background(), URL)

        assert await cache.get(f"tenant_a_access_token_{APP_ID}") == "tok-1"
        assert (await cache.get(f"tenant_a__jsapi_ticket_{APP_ID}"))["ticket"] == "real-ticket"
        assert not await cache.is_exist(f"{CACHE_KEY_OFFICIAL_ACCOUNT_PREFIX}access_token_{APP_ID}")

    @pytest.mark.asyncio
    async def test_app_id_bound_while_building_config(self, memory_cache, http_client):
        """The account's app id is bound for log correlation while the config is built."""
        seen = []

        class RecordingHandle:
            async def get_access_token(self, ctx):
                seen.append(app_id_var.get())
                return "tok"

        js = build_js(memory_cache, http_client, handle=RecordingHandle())
        await js.get_config(background(), URL)

        assert seen == [APP_ID]
        assert app_id_var.get() is None

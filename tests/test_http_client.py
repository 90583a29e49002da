"""Unit tests for the shared HTTP helper."""

import httpx
import pytest

from chain_explainer.core.errors import MalformedResponseError, TransportError
from chain_explainer.core.http_client import ChainHttpClient
from chain_explainer.models.config import ExplainerSettings


class TestRequests:
    """Tests for JSON and text requests against a mock transport."""

    @pytest.mark.asyncio
    async def test_get_json_sends_json_headers(self):
        """Test JSON headers and query parameters are sent."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        async with ChainHttpClient(transport=httpx.MockTransport(handler)) as client:
            data = await client.get_json("https://api.example/v1/items", params={"limit": 5})

        assert data == {"ok": True}
        assert seen[0].headers["accept"] == "application/json"
        assert seen[0].url.params["limit"] == "5"

    @pytest.mark.asyncio
    async def test_get_text_strips(self):
        """Test text bodies are stripped."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="840000\n"))
        async with ChainHttpClient(transport=transport) as client:
            assert await client.get_text("https://api.example/blocks/tip/height") == "840000"

    @pytest.mark.asyncio
    async def test_non_2xx_is_transport_error(self):
        """Test error statuses raise TransportError with the status code."""
        transport = httpx.MockTransport(lambda request: httpx.Response(503, text="unavailable"))
        async with ChainHttpClient(transport=transport) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.get_json("https://api.example/x", provider="example")

        assert exc_info.value.status_code == 503
        assert exc_info.value.provider == "example"
        assert "status=503" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_network_error_is_transport_error(self):
        """Test connection failures raise TransportError."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with ChainHttpClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(TransportError):
                await client.get_json("https://api.example/x")

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self):
        """Test timeouts raise TransportError."""
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with ChainHttpClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(TransportError, match="timed out"):
                await client.get_json("https://api.example/x")

    @pytest.mark.asyncio
    async def test_invalid_json_is_malformed(self):
        """Test undecodable bodies raise MalformedResponseError."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
        async with ChainHttpClient(transport=transport) as client:
            with pytest.raises(MalformedResponseError):
                await client.get_json("https://api.example/x")


class TestProxyAndCredentials:
    """Tests for proxy forwarding and per-host credentials."""

    @pytest.mark.asyncio
    async def test_proxy_forwards_target_url(self):
        """Test requests go to the proxy with the encoded target as ?url=."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[])

        client = ChainHttpClient(proxy_url="https://proxy.example/api/", transport=httpx.MockTransport(handler))
        async with client:
            await client.get_json("https://mempool.space/api/blocks", params={"limit": 2})

        assert seen[0].url.host == "proxy.example"
        assert seen[0].url.path == "/api"
        assert seen[0].url.params["url"] == "https://mempool.space/api/blocks?limit=2"

    @pytest.mark.asyncio
    async def test_credentials_by_host(self):
        """Test Hiro gets x-api-key and the sidechain API a bearer token."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={})

        settings = ExplainerSettings(_env_file=None, hiro_api_key="hiro-key", sidechain_api_key="side-key")
        async with ChainHttpClient.from_settings(settings, transport=httpx.MockTransport(handler)) as client:
            await client.get_json("https://api.mainnet.hiro.so/extended/v1/block")
            await client.get_json("https://api.layertwolabs.com/thunder/stats")
            await client.get_json("https://mempool.space/api/mempool")

        assert seen[0].headers["x-api-key"] == "hiro-key"
        assert seen[1].headers["authorization"] == "Bearer side-key"
        assert "x-api-key" not in seen[2].headers
        assert "authorization" not in seen[2].headers

    @pytest.mark.asyncio
    async def test_external_client_not_closed(self):
        """Test a caller-supplied AsyncClient stays open after aclose."""
        external = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
        client = ChainHttpClient(client=external)
        await client.aclose()

        assert not external.is_closed
        await external.aclose()

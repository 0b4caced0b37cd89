from __future__ import annotations

import asyncio
import base64
import json

import httpx
import pytest

from proxyhub.hub import (
    BrightDataExecutor,
    DirectExecutor,
    PathKind,
    ProxiflyExecutor,
    ProxyRequest,
    SmartProxyExecutor,
    build_executor,
)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _decode_basic(value: str) -> str:
    scheme, token = value.split(" ", 1)
    assert scheme == "Basic"
    return base64.b64decode(token).decode("utf-8")


@pytest.mark.asyncio
async def test_direct_executor_sends_request_unmodified():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, headers={"X-Upstream": "yes"}, text="created")

    async with _client(handler) as client:
        executor = DirectExecutor("direct", client)
        response = await executor.execute(
            ProxyRequest(url="https://example.test/items?q=1", method="post", headers={"X-Trace": "abc"}, body="{}")
        )

    assert response.success is True
    assert response.status_code == 201
    assert response.body == "created"
    assert response.headers["x-upstream"] == "yes"
    assert response.provider == "direct"
    assert response.error is None
    assert seen[0].method == "POST"
    assert str(seen[0].url) == "https://example.test/items?q=1"
    assert seen[0].headers["X-Trace"] == "abc"
    assert seen[0].content == b"{}"
    assert "Proxy-Authorization" not in seen[0].headers


@pytest.mark.asyncio
@pytest.mark.parametrize(("status", "success"), [(200, True), (302, True), (399, True), (404, False), (503, False)])
async def test_success_follows_status_range(status, success):
    async with _client(lambda request: httpx.Response(status)) as client:
        response = await DirectExecutor("direct", client).execute(ProxyRequest(url="https://example.test/"))

    assert response.success is success
    assert response.status_code == status
    if not success:
        assert response.error == f"HTTP {status}"


@pytest.mark.asyncio
async def test_transport_error_becomes_failure_response():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("name resolution failed", request=request)

    async with _client(handler) as client:
        response = await DirectExecutor("direct", client).execute(ProxyRequest(url="https://unreachable.test/"))

    assert response.success is False
    assert response.status_code == 0
    assert response.error == "ConnectError: name resolution failed"


@pytest.mark.asyncio
async def test_slow_call_is_cut_off_by_request_timeout():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200)

    async with _client(handler) as client:
        response = await DirectExecutor("direct", client).execute(
            ProxyRequest(url="https://slow.test/", timeout=0.05)
        )

    assert response.success is False
    assert response.status_code == 0
    assert "timed out" in response.error


def test_request_timeout_defaults_to_thirty_seconds():
    assert ProxyRequest(url="https://example.test/").effective_timeout() == 30.0
    assert ProxyRequest(url="https://example.test/", timeout=5).effective_timeout() == 5.0


@pytest.mark.asyncio
async def test_proxifly_exchanges_key_and_annotates_forwarded_for():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.host == "api.proxifly.dev":
            return httpx.Response(200, json=[{"protocol": "http", "ip": "203.0.113.7", "port": 8080}])
        return httpx.Response(200, text="ok")

    async with _client(handler) as client:
        executor = ProxiflyExecutor("proxifly", client, api_key="pfy-key")
        response = await executor.execute(ProxyRequest(url="https://lyrics.test/search"))

    assert response.success is True
    assert json.loads(seen[0].content) == {"apiKey": "pfy-key", "https": True, "quantity": 1}
    assert seen[0].method == "POST"
    assert seen[1].headers["X-Forwarded-For"] == "203.0.113.7"


@pytest.mark.asyncio
async def test_proxifly_exchange_failure_is_reported():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "api.proxifly.dev":
            return httpx.Response(402, json={"error": "payment required"})
        raise AssertionError("target must not be called")

    async with _client(handler) as client:
        response = await ProxiflyExecutor("proxifly", client, api_key="pfy-key").execute(
            ProxyRequest(url="https://lyrics.test/")
        )

    assert response.success is False
    assert response.status_code == 0
    assert "failed to get proxifly proxy" in response.error


@pytest.mark.asyncio
async def test_proxifly_empty_pool_is_reported():
    async with _client(lambda request: httpx.Response(200, json=[])) as client:
        response = await ProxiflyExecutor("proxifly", client, api_key="pfy-key").execute(
            ProxyRequest(url="https://lyrics.test/")
        )

    assert response.success is False
    assert response.error == "no proxies available from proxifly"


@pytest.mark.asyncio
async def test_brightdata_attaches_zone_credentials():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    async with _client(handler) as client:
        executor = BrightDataExecutor("brightdata", client, api_key="brd-key", zone="mobile")
        response = await executor.execute(ProxyRequest(url="https://stream.test/"))

    assert response.success is True
    assert _decode_basic(seen[0].headers["Proxy-Authorization"]) == "brd-key-zone-mobile:brd-key"
    assert seen[0].headers["X-BrightData-Zone"] == "mobile"


@pytest.mark.asyncio
async def test_brightdata_defaults_to_residential_zone():
    async with _client(lambda request: httpx.Response(200)) as client:
        executor = BrightDataExecutor("brightdata", client, api_key="brd-key")

    assert executor.zone == "residential"


@pytest.mark.asyncio
async def test_smartproxy_attaches_proxy_authorization():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    async with _client(handler) as client:
        await SmartProxyExecutor("smartproxy", client, api_key="spx-key").execute(ProxyRequest(url="https://x.test/"))

    assert _decode_basic(seen[0].headers["Proxy-Authorization"]) == "spx-key:"


@pytest.mark.asyncio
async def test_unconfigured_forwarding_path_fails_without_network():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    async with _client(handler) as client:
        executor = SmartProxyExecutor("smartproxy", client, api_key=None)
        response = await executor.execute(ProxyRequest(url="https://x.test/"))

    assert executor.configured is False
    assert response.success is False
    assert response.error == "smartproxy credentials are not configured"


@pytest.mark.asyncio
async def test_build_executor_maps_every_kind():
    async with _client(lambda request: httpx.Response(200)) as client:
        built = {kind: build_executor(kind, kind.value, client, api_key="k") for kind in PathKind}

    assert isinstance(built[PathKind.DIRECT], DirectExecutor)
    assert isinstance(built[PathKind.PROXIFLY], ProxiflyExecutor)
    assert isinstance(built[PathKind.BRIGHTDATA], BrightDataExecutor)
    assert isinstance(built[PathKind.SMARTPROXY], SmartProxyExecutor)
    assert all(executor.configured for executor in built.values())

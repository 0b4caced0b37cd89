from __future__ import annotations

import asyncio
import base64
import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from proxyhub.hub.types import DEFAULT_TIMEOUT_SECONDS, PathKind, ProxyRequest, ProxyResponse

logger = logging.getLogger(__name__)

PROXIFLY_ENDPOINT = "https://api.proxifly.dev/get-proxy"
BRIGHTDATA_DEFAULT_ZONE = "residential"


class PathExecutionError(Exception):
    """Raised inside an executor when the path cannot carry the request."""


def describe_transport_error(exc: BaseException) -> str:
    text = str(exc).strip()
    name = type(exc).__name__
    return f"{name}: {text}" if text else name


def basic_credentials(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


class PathExecutor(ABC):
    """Turns a ProxyRequest into one concrete call over a single routing path.

    Executors report every transport problem as a failed ProxyResponse and never
    touch path health; recording outcomes is the dispatcher's job.
    """

    kind: PathKind

    def __init__(
        self,
        name: str,
        http_client: httpx.AsyncClient,
        default_timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.name = name
        self.http_client = http_client
        self.default_timeout = default_timeout

    @property
    def configured(self) -> bool:
        return True

    @abstractmethod
    async def prepare_headers(self, request: ProxyRequest, timeout: float) -> dict[str, str]:
        raise NotImplementedError

    async def execute(self, request: ProxyRequest, timeout: float | None = None) -> ProxyResponse:
        deadline = timeout if timeout and timeout > 0 else request.effective_timeout(self.default_timeout)
        try:
            return await asyncio.wait_for(self._send(request, deadline), timeout=deadline)
        except asyncio.TimeoutError:
            return ProxyResponse.failure(f"timed out after {deadline:g}s", provider=self.name)
        except httpx.HTTPError as exc:
            return ProxyResponse.failure(describe_transport_error(exc), provider=self.name)
        except PathExecutionError as exc:
            return ProxyResponse.failure(str(exc), provider=self.name)

    async def _send(self, request: ProxyRequest, timeout: float) -> ProxyResponse:
        if not self.configured:
            raise PathExecutionError(f"{self.name} credentials are not configured")

        headers = dict(request.headers)
        headers.update(await self.prepare_headers(request, timeout))
        response = await self.http_client.request(
            request.method.upper(),
            request.url,
            headers=headers,
            content=request.body,
            timeout=timeout,
        )
        return ProxyResponse(
            success=200 <= response.status_code <= 399,
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.text,
            provider=self.name,
            error=None if response.status_code < 400 else f"HTTP {response.status_code}",
        )


class DirectExecutor(PathExecutor):
    kind = PathKind.DIRECT

    async def prepare_headers(self, request: ProxyRequest, timeout: float) -> dict[str, str]:
        return {}


class ProxiflyExecutor(PathExecutor):
    """Exchanges the API key for a fresh proxy and tags the request with it."""

    kind = PathKind.PROXIFLY

    def __init__(
        self,
        name: str,
        http_client: httpx.AsyncClient,
        api_key: str | None,
        endpoint: str = PROXIFLY_ENDPOINT,
        default_timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        super().__init__(name, http_client, default_timeout)
        self.api_key = api_key or ""
        self.endpoint = endpoint

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def prepare_headers(self, request: ProxyRequest, timeout: float) -> dict[str, str]:
        proxy = await self._acquire_proxy(timeout)
        return {"X-Forwarded-For": proxy["ip"]}

    async def _acquire_proxy(self, timeout: float) -> dict[str, Any]:
        response = await self.http_client.post(
            self.endpoint,
            json={"apiKey": self.api_key, "https": True, "quantity": 1},
            timeout=timeout,
        )
        if not 200 <= response.status_code < 300:
            raise PathExecutionError(f"failed to get proxifly proxy (HTTP {response.status_code})")

        try:
            payload = response.json()
        except ValueError as exc:
            raise PathExecutionError("proxifly returned an unreadable proxy list") from exc

        proxy = payload[0] if isinstance(payload, list) and payload else payload
        if not isinstance(proxy, dict) or not proxy.get("ip"):
            raise PathExecutionError("no proxies available from proxifly")

        logger.debug(
            "proxifly issued %s://%s:%s",
            proxy.get("protocol", "http"),
            proxy["ip"],
            proxy.get("port", ""),
        )
        return proxy


class BrightDataExecutor(PathExecutor):
    kind = PathKind.BRIGHTDATA

    def __init__(
        self,
        name: str,
        http_client: httpx.AsyncClient,
        api_key: str | None,
        zone: str | None = None,
        default_timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        super().__init__(name, http_client, default_timeout)
        self.api_key = api_key or ""
        self.zone = zone or BRIGHTDATA_DEFAULT_ZONE

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def prepare_headers(self, request: ProxyRequest, timeout: float) -> dict[str, str]:
        username = f"{self.api_key}-zone-{self.zone}"
        return {
            "Proxy-Authorization": basic_credentials(username, self.api_key),
            "X-BrightData-Zone": self.zone,
        }


class SmartProxyExecutor(PathExecutor):
    kind = PathKind.SMARTPROXY

    def __init__(
        self,
        name: str,
        http_client: httpx.AsyncClient,
        api_key: str | None,
        default_timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        super().__init__(name, http_client, default_timeout)
        self.api_key = api_key or ""

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def prepare_headers(self, request: ProxyRequest, timeout: float) -> dict[str, str]:
        return {"Proxy-Authorization": basic_credentials(self.api_key, "")}


def build_executor(
    kind: PathKind | str,
    name: str,
    http_client: httpx.AsyncClient,
    api_key: str | None = None,
    zone: str | None = None,
    endpoint: str | None = None,
    default_timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> PathExecutor:
    kind = PathKind(kind)
    if kind is PathKind.DIRECT:
        return DirectExecutor(name, http_client, default_timeout=default_timeout)
    if kind is PathKind.PROXIFLY:
        return ProxiflyExecutor(
            name,
            http_client,
            api_key=api_key,
            endpoint=endpoint or PROXIFLY_ENDPOINT,
            default_timeout=default_timeout,
        )
    if kind is PathKind.BRIGHTDATA:
        return BrightDataExecutor(name, http_client, api_key=api_key, zone=zone, default_timeout=default_timeout)
    return SmartProxyExecutor(name, http_client, api_key=api_key, default_timeout=default_timeout)

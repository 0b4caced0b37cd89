from __future__ import annotations

import time
from types import SimpleNamespace
from typing import Any, Callable

import httpx
import pytest
from fastapi import FastAPI

from proxyhub.config import AppConfig, HubSettings, PathConfig
from proxyhub.hub import (
    Dispatcher,
    DispatchConfig,
    HealthMonitor,
    HealthMonitorConfig,
    Path,
    PathExecutor,
    PathKind,
    PathRegistry,
    ProxyHub,
    ProxyRequest,
    ProxyResponse,
)
from proxyhub.main import create_app

PATH_NAMES = ["direct", "proxifly", "brightdata", "smartproxy"]
MASTER_KEY = "sk-master"


class FakeExecutor(PathExecutor):
    """Executor that replays a script of outcomes instead of touching the network.

    Script items: ``True``/``False`` for a plain success/failure, a ``ProxyResponse``
    to return verbatim, or an exception instance to raise.
    """

    kind = PathKind.DIRECT

    def __init__(self, name: str, script: list[Any] | None = None, default: Any = True):
        super().__init__(name, http_client=None)  # type: ignore[arg-type]
        self.script = list(script or [])
        self.default = default
        self.calls: list[ProxyRequest] = []
        self.call_times: list[float] = []

    async def prepare_headers(self, request: ProxyRequest, timeout: float) -> dict[str, str]:
        return {}

    async def execute(self, request: ProxyRequest, timeout: float | None = None) -> ProxyResponse:
        self.calls.append(request)
        self.call_times.append(time.monotonic())
        outcome = self.script.pop(0) if self.script else self.default
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, ProxyResponse):
            return outcome
        if outcome:
            return ProxyResponse(success=True, status_code=200, body="ok", provider=self.name)
        return ProxyResponse.failure(f"{self.name} refused", provider=self.name)


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_registry(names: list[str] | None = None, **kwargs: Any) -> PathRegistry:
    names = names or PATH_NAMES
    return PathRegistry([Path(name=name, priority=index) for index, name in enumerate(names)], **kwargs)


@pytest.fixture
def registry() -> PathRegistry:
    return make_registry()


@pytest.fixture
def recorded_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def executors() -> dict[str, FakeExecutor]:
    return {name: FakeExecutor(name) for name in PATH_NAMES}


@pytest.fixture
def dispatcher(registry: PathRegistry, executors: dict[str, FakeExecutor], recorded_sleep: RecordingSleep) -> Dispatcher:
    return Dispatcher(registry, executors, config=DispatchConfig(), sleep=recorded_sleep)


@pytest.fixture
def monitor(registry: PathRegistry, executors: dict[str, FakeExecutor]) -> HealthMonitor:
    return HealthMonitor(HealthMonitorConfig(interval_seconds=0.01), registry, executors)


def build_config(**hub_settings: Any) -> AppConfig:
    return AppConfig(
        hub_settings=HubSettings(**{"health_check_enabled": False, **hub_settings}),
        paths=[
            PathConfig(name="direct", priority=0),
            PathConfig(name="proxifly", priority=1, api_key="pfy-key"),
            PathConfig(name="brightdata", priority=2, api_key="brd-key", zone="residential"),
            PathConfig(name="smartproxy", priority=3, api_key="spx-key"),
        ],
    )


@pytest.fixture
def mock_handler() -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "api.proxifly.dev":
            return httpx.Response(200, json=[{"protocol": "http", "ip": "203.0.113.7", "port": 8080}])
        return httpx.Response(200, json={"origin": "198.51.100.1"})

    return handler


@pytest.fixture
async def hub(mock_handler, recorded_sleep: RecordingSleep):
    client = httpx.AsyncClient(transport=httpx.MockTransport(mock_handler))
    proxy_hub = ProxyHub.from_config(build_config(), http_client=client, sleep=recorded_sleep)
    yield proxy_hub
    await proxy_hub.aclose()
    await client.aclose()


@pytest.fixture
async def test_app(hub: ProxyHub) -> FastAPI:
    app = create_app()
    app.state.settings = SimpleNamespace(master_key=MASTER_KEY)
    app.state.proxy_hub = hub
    return app


@pytest.fixture
async def client(test_app: FastAPI):
    transport = httpx.ASGITransport(app=test_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def registry_factory() -> Callable[..., PathRegistry]:
    return make_registry


@pytest.fixture
def executor_factory() -> type[FakeExecutor]:
    return FakeExecutor


@pytest.fixture
def config_factory() -> Callable[..., AppConfig]:
    return build_config

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import TYPE_CHECKING, Awaitable, Callable

import httpx

from proxyhub.hub.dispatcher import DispatchConfig, Dispatcher
from proxyhub.hub.executors import PathExecutor, build_executor, describe_transport_error
from proxyhub.hub.health import HealthMonitor, HealthMonitorConfig
from proxyhub.hub.state import HealthHistory, Path, PathRegistry
from proxyhub.hub.stats import StatsHandler
from proxyhub.hub.types import PathHealth, ProxyRequest, ProxyResponse

if TYPE_CHECKING:
    from proxyhub.config import AppConfig

logger = logging.getLogger(__name__)


class ProxyHub:
    """Composition root for the outbound resilience layer.

    One instance per process, created by the application and handed to callers.
    """

    def __init__(
        self,
        registry: PathRegistry,
        executors: dict[str, PathExecutor],
        dispatcher: Dispatcher,
        monitor: HealthMonitor,
        http_client: httpx.AsyncClient | None = None,
        owns_client: bool = False,
    ):
        self.registry = registry
        self.executors = executors
        self.dispatcher = dispatcher
        self.monitor = monitor
        self.stats = StatsHandler(registry, executors)
        self.http_client = http_client
        self._owns_client = owns_client

    @classmethod
    def from_config(
        cls,
        cfg: AppConfig,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> ProxyHub:
        settings = cfg.hub_settings
        owns_client = http_client is None
        client = http_client or httpx.AsyncClient(timeout=settings.default_timeout)

        executors: dict[str, PathExecutor] = {}
        paths: list[Path] = []
        for entry in cfg.paths:
            executor = build_executor(
                entry.kind,
                entry.name,
                client,
                api_key=entry.api_key,
                zone=entry.zone,
                endpoint=entry.endpoint,
                default_timeout=settings.default_timeout,
            )
            enabled = entry.enabled and executor.configured
            if entry.enabled and not executor.configured:
                logger.warning("path %s disabled: missing credentials", entry.name)
            executors[entry.name] = executor
            paths.append(Path(name=entry.name, priority=entry.priority, enabled=enabled))

        registry = PathRegistry(
            paths,
            history=HealthHistory(settings.history_size),
            max_failures=settings.max_failures,
            healthy_latency_ms=settings.healthy_latency_ms,
            degraded_latency_ms=settings.degraded_latency_ms,
        )
        dispatcher = Dispatcher(
            registry,
            executors,
            config=DispatchConfig(max_retries=settings.max_retries, backoff_base=settings.backoff_base),
            sleep=sleep,
        )
        monitor = HealthMonitor(
            HealthMonitorConfig(
                enabled=settings.health_check_enabled,
                interval_seconds=settings.health_check_interval,
                probe_url=settings.probe_url,
                probe_timeout=settings.probe_timeout,
            ),
            registry,
            executors,
        )
        logger.info(
            "initialized %d paths (%d enabled)",
            len(paths),
            sum(1 for path in paths if path.enabled),
        )
        return cls(registry, executors, dispatcher, monitor, http_client=client, owns_client=owns_client)

    async def dispatch(self, request: ProxyRequest) -> ProxyResponse:
        return await self.dispatcher.dispatch(request)

    async def fetch(
        self,
        url: str,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        body: str | bytes | None = None,
        timeout: float | None = None,
    ) -> ProxyResponse:
        request = ProxyRequest(url=url, method=method, headers=dict(headers or {}), body=body, timeout=timeout)
        return await self.dispatcher.dispatch(request)

    async def try_each_path(self, request: ProxyRequest) -> dict[str, ProxyResponse]:
        """Send ``request`` once over every enabled path, in priority order.

        Diagnostic only: results are not recorded against path health.
        """
        views = sorted(self.registry.snapshot(), key=lambda view: view.priority)
        names = [view.name for view in views if view.enabled and view.name in self.executors]
        if not names:
            return {}

        results = await asyncio.gather(*(self._try_path(name, request) for name in names))
        return dict(zip(names, results, strict=False))

    async def _try_path(self, name: str, request: ProxyRequest) -> ProxyResponse:
        started = time.monotonic()
        try:
            response = await self.executors[name].execute(request)
        except Exception as exc:
            response = ProxyResponse.failure(describe_transport_error(exc), provider=name)
        return replace(response, provider=name, latency=(time.monotonic() - started) * 1000)

    def snapshot(self) -> list[PathHealth]:
        return self.stats.snapshot()

    def set_enabled(self, name: str, enabled: bool) -> bool:
        return self.stats.set_enabled(name, enabled)

    def start(self) -> None:
        self.monitor.start()

    async def aclose(self) -> None:
        await self.monitor.stop()
        if self._owns_client and self.http_client is not None:
            await self.http_client.aclose()

    async def __aenter__(self) -> ProxyHub:
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

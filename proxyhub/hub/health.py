from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass
from typing import Mapping

from proxyhub.hub.executors import PathExecutor, describe_transport_error
from proxyhub.hub.state import PathRegistry
from proxyhub.hub.types import ProxyRequest, ProxyResponse
from proxyhub.metrics import increment_probe

logger = logging.getLogger(__name__)

DEFAULT_PROBE_URL = "https://httpbin.org/ip"


@dataclass
class HealthMonitorConfig:
    enabled: bool = True
    interval_seconds: float = 60.0
    probe_url: str = DEFAULT_PROBE_URL
    probe_timeout: float = 10.0


class HealthMonitor:
    """Periodic canary probes that keep path health fresh.

    Probes go straight to each enabled path's executor, so unhealthy paths are
    still exercised and can be rehabilitated by a successful probe.
    """

    def __init__(
        self,
        config: HealthMonitorConfig,
        registry: PathRegistry,
        executors: Mapping[str, PathExecutor],
    ):
        self.config = config
        self.registry = registry
        self.executors = executors
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task[None] | None:
        if not self.config.enabled:
            return None
        if self.running:
            return self._task
        self._task = asyncio.create_task(self._run(), name="proxyhub-health-monitor")
        logger.info("health monitor started (interval=%ss)", self.config.interval_seconds)
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("health monitor stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.config.interval_seconds)
            try:
                await self.run_once()
            except Exception:
                logger.exception("health sweep failed")

    async def run_once(self) -> dict[str, bool]:
        names = [view.name for view in self.registry.snapshot() if view.enabled and view.name in self.executors]
        if not names:
            return {}

        results = await asyncio.gather(*(self._probe(name) for name in names))
        return dict(zip(names, results, strict=False))

    async def _probe(self, name: str) -> bool:
        executor = self.executors[name]
        request = ProxyRequest(url=self.config.probe_url, timeout=self.config.probe_timeout)
        started = time.monotonic()
        try:
            response = await executor.execute(request, timeout=self.config.probe_timeout)
        except Exception as exc:
            response = ProxyResponse.failure(describe_transport_error(exc), provider=name)
        latency_ms = (time.monotonic() - started) * 1000

        self.registry.record_probe(name, response.success, latency_ms)
        increment_probe(path=name, success=response.success)
        if response.success:
            logger.info("%s health check passed (%.0fms)", name, latency_ms)
        else:
            logger.warning("%s health check failed: %s", name, response.error or f"HTTP {response.status_code}")
        return response.success

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Mapping
from urllib.parse import urlsplit

from proxyhub.hub.executors import PathExecutor, describe_transport_error
from proxyhub.hub.state import PathRegistry
from proxyhub.hub.types import ProxyRequest, ProxyResponse
from proxyhub.metrics import (
    increment_dispatch,
    increment_path_request,
    observe_dispatch_latency,
    observe_path_latency,
)

logger = logging.getLogger(__name__)

NO_AVAILABLE_PATHS = "no available paths"


@dataclass
class DispatchConfig:
    max_retries: int = 3
    backoff_base: float = 1.0
    backoff_multiplier: float = 2.0


def redact_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.netloc:
        return url
    return f"{parts.scheme}://{parts.netloc}{parts.path}"


class Dispatcher:
    """Runs a request across the ranked paths, retrying each before moving on.

    ``dispatch`` never raises for transport or configuration problems: every
    failure comes back as a ``ProxyResponse`` with ``success=False``.
    """

    def __init__(
        self,
        registry: PathRegistry,
        executors: Mapping[str, PathExecutor],
        config: DispatchConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.registry = registry
        self.executors = executors
        self.config = config or DispatchConfig()
        self._sleep = sleep
        self._clock = clock

    def compute_backoff(self, attempt: int) -> float:
        return self.config.backoff_base * (self.config.backoff_multiplier ** attempt)

    async def dispatch(self, request: ProxyRequest) -> ProxyResponse:
        started = self._clock()
        paths = self.registry.list_enabled()
        if not paths:
            logger.warning("no available paths for %s %s", request.method, redact_url(request.url))
            return self._finish(ProxyResponse.failure(NO_AVAILABLE_PATHS), started)

        max_retries = max(1, int(self.config.max_retries))
        errors: list[str] = []

        for index, path in enumerate(paths):
            executor = self.executors.get(path.name)
            if executor is None:
                errors.append(f"{path.name}: no executor registered")
                continue

            for attempt in range(max_retries):
                attempt_started = self._clock()
                try:
                    response = await executor.execute(request)
                except Exception as exc:
                    response = ProxyResponse.failure(describe_transport_error(exc), provider=path.name)
                latency_ms = (self._clock() - attempt_started) * 1000

                increment_path_request(path=path.name, success=response.success)
                observe_path_latency(path=path.name, success=response.success, latency_seconds=latency_ms / 1000)

                if response.success:
                    self.registry.record_outcome(path.name, True, latency_ms)
                    if index > 0 or attempt > 0:
                        logger.info(
                            "%s %s served by %s after %d failed attempt(s)",
                            request.method,
                            redact_url(request.url),
                            path.name,
                            len(errors),
                        )
                    return self._finish(replace(response, provider=path.name, latency=latency_ms), started)

                self.registry.record_outcome(path.name, False, latency_ms)
                error = response.error or f"HTTP {response.status_code}"
                errors.append(f"{path.name}: {error}")
                logger.warning(
                    "attempt %d/%d via %s failed for %s: %s",
                    attempt + 1,
                    max_retries,
                    path.name,
                    redact_url(request.url),
                    error[:200],
                )

                if attempt < max_retries - 1:
                    await self._sleep(self.compute_backoff(attempt))

        logger.error("all paths failed for %s %s", request.method, redact_url(request.url))
        return self._finish(ProxyResponse.failure("; ".join(errors)), started)

    def _finish(self, response: ProxyResponse, started: float) -> ProxyResponse:
        increment_dispatch(provider=response.provider, success=response.success)
        observe_dispatch_latency(success=response.success, latency_seconds=self._clock() - started)
        return response

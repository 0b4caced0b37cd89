from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Iterable

from proxyhub.hub.types import HealthSample, HealthStatus, PathHealth

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 100
DEFAULT_MAX_FAILURES = 5
DEFAULT_HEALTHY_LATENCY_MS = 1000.0
DEFAULT_DEGRADED_LATENCY_MS = 3000.0


@dataclass
class Path:
    name: str
    priority: int
    enabled: bool = True
    health_status: HealthStatus = HealthStatus.HEALTHY
    last_checked: float = field(default_factory=time.time)
    failure_count: int = 0
    success_count: int = 0
    average_latency: float = 0.0
    consecutive_failures: int = 0
    last_success: float = 0.0
    last_failure: float = 0.0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def view(self) -> PathHealth:
        return PathHealth(
            name=self.name,
            enabled=self.enabled,
            priority=self.priority,
            health_status=self.health_status,
            last_checked=self.last_checked,
            failure_count=self.failure_count,
            success_count=self.success_count,
            average_latency=self.average_latency,
            consecutive_failures=self.consecutive_failures,
            last_success=self.last_success,
            last_failure=self.last_failure,
        )


class HealthHistory:
    """Bounded per-path outcome history used for inspection only."""

    def __init__(self, max_size: int = DEFAULT_HISTORY_SIZE):
        self.max_size = max(1, int(max_size))
        self._samples: dict[str, deque[HealthSample]] = {}
        self._lock = threading.Lock()

    def append(self, sample: HealthSample) -> None:
        with self._lock:
            samples = self._samples.get(sample.provider)
            if samples is None:
                samples = deque(maxlen=self.max_size)
                self._samples[sample.provider] = samples
            samples.append(sample)

    def latest(self, name: str) -> HealthSample | None:
        with self._lock:
            samples = self._samples.get(name)
            return samples[-1] if samples else None

    def recent(self, name: str, limit: int | None = None) -> list[HealthSample]:
        with self._lock:
            samples = list(self._samples.get(name, ()))
        if limit is not None and limit >= 0:
            return samples[-limit:] if limit else []
        return samples

    def __len__(self) -> int:
        with self._lock:
            return sum(len(samples) for samples in self._samples.values())


class PathRegistry:
    def __init__(
        self,
        paths: Iterable[Path],
        history: HealthHistory | None = None,
        max_failures: int = DEFAULT_MAX_FAILURES,
        healthy_latency_ms: float = DEFAULT_HEALTHY_LATENCY_MS,
        degraded_latency_ms: float = DEFAULT_DEGRADED_LATENCY_MS,
        clock: Callable[[], float] = time.time,
    ):
        self._paths: dict[str, Path] = {}
        for path in paths:
            if path.name in self._paths:
                raise ValueError(f"duplicate path name: {path.name}")
            self._paths[path.name] = path
        self.history = history or HealthHistory()
        self.max_failures = max_failures
        self.healthy_latency_ms = healthy_latency_ms
        self.degraded_latency_ms = degraded_latency_ms
        self._clock = clock

    def __contains__(self, name: object) -> bool:
        return name in self._paths

    def __len__(self) -> int:
        return len(self._paths)

    def names(self) -> list[str]:
        return list(self._paths)

    def get(self, name: str) -> PathHealth | None:
        path = self._paths.get(name)
        if path is None:
            return None
        with path.lock:
            return path.view()

    def snapshot(self) -> list[PathHealth]:
        views: list[PathHealth] = []
        for path in self._paths.values():
            with path.lock:
                views.append(path.view())
        return views

    def list_enabled(self) -> list[PathHealth]:
        candidates = [
            view
            for view in self.snapshot()
            if view.enabled and view.health_status is not HealthStatus.UNHEALTHY
        ]
        # sorted() is stable, so equal keys keep registration order
        return sorted(candidates, key=lambda view: (view.priority, view.health_status.rank))

    def set_enabled(self, name: str, enabled: bool) -> bool:
        path = self._paths.get(name)
        if path is None:
            return False
        with path.lock:
            path.enabled = bool(enabled)
        logger.info("path %s %s", name, "enabled" if enabled else "disabled")
        return True

    def record_outcome(self, name: str, success: bool, latency_ms: float) -> HealthStatus | None:
        path = self._paths.get(name)
        if path is None:
            logger.debug("ignoring outcome for unknown path %s", name)
            return None

        with path.lock:
            previous = path.health_status
            self._apply_outcome(path, success, latency_ms)
            sample = self._sample(path, latency_ms)
            status = path.health_status

        self.history.append(sample)
        self._log_transition(name, previous, status)
        return status

    def record_probe(self, name: str, success: bool, latency_ms: float) -> HealthStatus | None:
        """Apply a canary probe result.

        A successful probe is the only way out of unhealthy, and only as far as
        degraded. It never touches ``success_count``, the latency mean or the
        healthy/degraded split; those are earned through real traffic.
        """
        path = self._paths.get(name)
        if path is None:
            logger.debug("ignoring probe for unknown path %s", name)
            return None

        with path.lock:
            previous = path.health_status
            if success:
                now = self._clock()
                if previous is HealthStatus.UNHEALTHY:
                    path.health_status = HealthStatus.DEGRADED
                path.failure_count = 0
                path.consecutive_failures = 0
                path.last_success = now
                path.last_checked = now
            else:
                self._apply_outcome(path, False, latency_ms)
            sample = self._sample(path, latency_ms)
            status = path.health_status

        self.history.append(sample)
        if previous is HealthStatus.UNHEALTHY and status is HealthStatus.DEGRADED:
            logger.info("path %s rehabilitated after successful probe", name)
        else:
            self._log_transition(name, previous, status)
        return status

    def _apply_outcome(self, path: Path, success: bool, latency_ms: float) -> None:
        now = self._clock()
        if success:
            path.success_count += 1
            path.failure_count = 0
            path.consecutive_failures = 0
            path.last_success = now
            path.average_latency = (
                path.average_latency * (path.success_count - 1) + float(latency_ms)
            ) / path.success_count
            if path.health_status is not HealthStatus.UNHEALTHY:
                if path.average_latency < self.healthy_latency_ms:
                    path.health_status = HealthStatus.HEALTHY
                elif path.average_latency < self.degraded_latency_ms:
                    path.health_status = HealthStatus.DEGRADED
        else:
            path.failure_count += 1
            path.consecutive_failures += 1
            path.last_failure = now
            if path.failure_count >= self.max_failures:
                path.health_status = HealthStatus.UNHEALTHY
        path.last_checked = now

    def _sample(self, path: Path, latency_ms: float) -> HealthSample:
        total = path.failure_count + path.success_count
        return HealthSample(
            provider=path.name,
            status=path.health_status,
            latency=float(latency_ms),
            failure_rate=path.failure_count / total if total else 0.0,
            last_success=path.last_success,
            last_failure=path.last_failure,
            consecutive_failures=path.consecutive_failures,
            timestamp=path.last_checked,
        )

    @staticmethod
    def _log_transition(name: str, previous: HealthStatus, current: HealthStatus) -> None:
        if previous is current:
            return
        if current is HealthStatus.UNHEALTHY:
            logger.warning("path %s marked unhealthy", name)
        else:
            logger.info("path %s %s -> %s", name, previous.value, current.value)

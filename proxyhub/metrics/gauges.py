from __future__ import annotations

from prometheus_client import Gauge

from proxyhub.metrics.prometheus import get_prometheus_registry, sanitize_label

proxyhub_path_state_metric = Gauge(
    "proxyhub_path_state",
    "Path health state (0=healthy, 1=degraded, 2=unhealthy)",
    ["path"],
    registry=get_prometheus_registry(),
)

proxyhub_path_enabled_metric = Gauge(
    "proxyhub_path_enabled",
    "Whether the path is administratively enabled (0/1)",
    ["path"],
    registry=get_prometheus_registry(),
)

proxyhub_path_average_latency_metric = Gauge(
    "proxyhub_path_average_latency_ms",
    "Running mean latency of successful calls per path",
    ["path"],
    registry=get_prometheus_registry(),
)


def set_path_state(*, path: str, state: int) -> None:
    proxyhub_path_state_metric.labels(path=sanitize_label(path)).set(float(state))


def set_path_enabled(*, path: str, enabled: bool) -> None:
    proxyhub_path_enabled_metric.labels(path=sanitize_label(path)).set(1.0 if enabled else 0.0)


def set_path_average_latency(*, path: str, latency_ms: float) -> None:
    proxyhub_path_average_latency_metric.labels(path=sanitize_label(path)).set(max(0.0, float(latency_ms)))

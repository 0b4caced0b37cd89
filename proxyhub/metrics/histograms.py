from __future__ import annotations

from prometheus_client import Histogram

from proxyhub.metrics.prometheus import get_prometheus_registry, sanitize_label

LATENCY_BUCKETS = [0.05, 0.1, 0.25, 0.5, 0.75, 1.0, 2.0, 3.0, 5.0, 10.0, 20.0, 30.0]

proxyhub_path_latency_metric = Histogram(
    "proxyhub_path_latency_seconds",
    "Latency of individual attempts per path",
    ["path", "outcome"],
    buckets=LATENCY_BUCKETS,
    registry=get_prometheus_registry(),
)

proxyhub_dispatch_latency_metric = Histogram(
    "proxyhub_dispatch_latency_seconds",
    "End-to-end dispatch latency including retries and backoff",
    ["status"],
    buckets=LATENCY_BUCKETS,
    registry=get_prometheus_registry(),
)


def observe_path_latency(*, path: str, success: bool, latency_seconds: float) -> None:
    proxyhub_path_latency_metric.labels(
        path=sanitize_label(path),
        outcome="success" if success else "failure",
    ).observe(max(0.0, float(latency_seconds)))


def observe_dispatch_latency(*, success: bool, latency_seconds: float) -> None:
    proxyhub_dispatch_latency_metric.labels(
        status="success" if success else "failure",
    ).observe(max(0.0, float(latency_seconds)))

from __future__ import annotations

from prometheus_client import Counter

from proxyhub.metrics.prometheus import get_prometheus_registry, sanitize_label

proxyhub_path_requests_metric = Counter(
    "proxyhub_path_requests_total",
    "Attempts issued over each routing path",
    ["path", "outcome"],
    registry=get_prometheus_registry(),
)

proxyhub_dispatch_metric = Counter(
    "proxyhub_dispatch_total",
    "Dispatch calls by serving provider",
    ["provider", "status"],
    registry=get_prometheus_registry(),
)

proxyhub_probe_metric = Counter(
    "proxyhub_probe_total",
    "Health monitor canary probes",
    ["path", "outcome"],
    registry=get_prometheus_registry(),
)


def _outcome(success: bool) -> str:
    return "success" if success else "failure"


def increment_path_request(*, path: str, success: bool) -> None:
    proxyhub_path_requests_metric.labels(path=sanitize_label(path), outcome=_outcome(success)).inc()


def increment_dispatch(*, provider: str, success: bool) -> None:
    proxyhub_dispatch_metric.labels(provider=sanitize_label(provider), status=_outcome(success)).inc()


def increment_probe(*, path: str, success: bool) -> None:
    proxyhub_probe_metric.labels(path=sanitize_label(path), outcome=_outcome(success)).inc()

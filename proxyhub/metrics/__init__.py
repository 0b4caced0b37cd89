from proxyhub.metrics.counters import increment_dispatch, increment_path_request, increment_probe
from proxyhub.metrics.gauges import set_path_average_latency, set_path_enabled, set_path_state
from proxyhub.metrics.histograms import observe_dispatch_latency, observe_path_latency
from proxyhub.metrics.prometheus import get_prometheus_registry

__all__ = [
    "get_prometheus_registry",
    "increment_dispatch",
    "increment_path_request",
    "increment_probe",
    "observe_dispatch_latency",
    "observe_path_latency",
    "set_path_average_latency",
    "set_path_enabled",
    "set_path_state",
]

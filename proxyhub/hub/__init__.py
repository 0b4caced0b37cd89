from proxyhub.hub.dispatcher import NO_AVAILABLE_PATHS, DispatchConfig, Dispatcher
from proxyhub.hub.executors import (
    BrightDataExecutor,
    DirectExecutor,
    PathExecutionError,
    PathExecutor,
    ProxiflyExecutor,
    SmartProxyExecutor,
    build_executor,
)
from proxyhub.hub.health import DEFAULT_PROBE_URL, HealthMonitor, HealthMonitorConfig
from proxyhub.hub.hub import ProxyHub
from proxyhub.hub.state import HealthHistory, Path, PathRegistry
from proxyhub.hub.stats import StatsHandler
from proxyhub.hub.types import HealthSample, HealthStatus, PathHealth, PathKind, ProxyRequest, ProxyResponse

__all__ = [
    "DEFAULT_PROBE_URL",
    "BrightDataExecutor",
    "DirectExecutor",
    "DispatchConfig",
    "Dispatcher",
    "HealthHistory",
    "HealthMonitor",
    "HealthMonitorConfig",
    "HealthSample",
    "HealthStatus",
    "NO_AVAILABLE_PATHS",
    "Path",
    "PathExecutionError",
    "PathExecutor",
    "PathHealth",
    "PathKind",
    "PathRegistry",
    "ProxiflyExecutor",
    "ProxyHub",
    "ProxyRequest",
    "ProxyResponse",
    "SmartProxyExecutor",
    "StatsHandler",
    "build_executor",
]

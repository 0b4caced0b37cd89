"""Outbound-request resilience hub: ranked routing paths with retry, health tracking and rehabilitation."""

from proxyhub.hub import HealthStatus, PathKind, ProxyHub, ProxyRequest, ProxyResponse

__version__ = "0.1.0"

__all__ = [
    "HealthStatus",
    "PathKind",
    "ProxyHub",
    "ProxyRequest",
    "ProxyResponse",
    "__version__",
]

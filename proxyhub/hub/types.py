from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

DEFAULT_TIMEOUT_SECONDS = 30.0
NO_PROVIDER = "none"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]


_STATUS_RANK = {
    HealthStatus.HEALTHY: 0,
    HealthStatus.DEGRADED: 1,
    HealthStatus.UNHEALTHY: 2,
}


class PathKind(str, Enum):
    DIRECT = "direct"
    PROXIFLY = "proxifly"
    BRIGHTDATA = "brightdata"
    SMARTPROXY = "smartproxy"


@dataclass(frozen=True)
class ProxyRequest:
    url: str
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    body: str | bytes | None = None
    timeout: float | None = None

    def effective_timeout(self, default: float = DEFAULT_TIMEOUT_SECONDS) -> float:
        if self.timeout is None or self.timeout <= 0:
            return default
        return float(self.timeout)


@dataclass(frozen=True)
class ProxyResponse:
    success: bool
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""
    provider: str = NO_PROVIDER
    latency: float = 0.0
    error: str | None = None

    @classmethod
    def failure(cls, error: str, provider: str = NO_PROVIDER, latency: float = 0.0) -> ProxyResponse:
        return cls(success=False, status_code=0, provider=provider, latency=latency, error=error)

    def to_dict(self) -> dict[str, object]:
        return {
            "success": self.success,
            "status_code": self.status_code,
            "headers": dict(self.headers),
            "body": self.body,
            "provider": self.provider,
            "latency": round(self.latency, 2),
            "error": self.error,
        }


@dataclass(frozen=True)
class HealthSample:
    provider: str
    status: HealthStatus
    latency: float
    failure_rate: float
    last_success: float
    last_failure: float
    consecutive_failures: int
    timestamp: float

    def to_dict(self) -> dict[str, object]:
        return {
            "provider": self.provider,
            "status": self.status.value,
            "latency": round(self.latency, 2),
            "failure_rate": self.failure_rate,
            "last_success": self.last_success,
            "last_failure": self.last_failure,
            "consecutive_failures": self.consecutive_failures,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class PathHealth:
    """Point-in-time view of one path, safe to hand to readers."""

    name: str
    enabled: bool
    priority: int
    health_status: HealthStatus
    last_checked: float
    failure_count: int
    success_count: int
    average_latency: float
    consecutive_failures: int = 0
    last_success: float = 0.0
    last_failure: float = 0.0

    @property
    def total_requests(self) -> int:
        return self.failure_count + self.success_count

    @property
    def failure_rate(self) -> float:
        return self.failure_count / max(1, self.total_requests)

    @property
    def success_rate(self) -> float:
        total = self.total_requests
        return self.success_count / total if total > 0 else 0.0

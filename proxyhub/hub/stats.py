from __future__ import annotations

import time
from typing import Any, Mapping

from proxyhub.hub.executors import PathExecutor
from proxyhub.hub.state import PathRegistry
from proxyhub.hub.types import HealthStatus, PathHealth, PathKind
from proxyhub.metrics import set_path_average_latency, set_path_enabled, set_path_state

PRICING_TIERS = {
    PathKind.PROXIFLY: "affordable",
    PathKind.BRIGHTDATA: "premium",
    PathKind.SMARTPROXY: "budget",
}


class StatsHandler:
    def __init__(self, registry: PathRegistry, executors: Mapping[str, PathExecutor]):
        self.registry = registry
        self.executors = executors

    def snapshot(self) -> list[PathHealth]:
        views = self.registry.snapshot()
        for view in views:
            set_path_state(path=view.name, state=view.health_status.rank)
            set_path_enabled(path=view.name, enabled=view.enabled)
            set_path_average_latency(path=view.name, latency_ms=view.average_latency)
        return views

    def set_enabled(self, name: str, enabled: bool) -> bool:
        updated = self.registry.set_enabled(name, enabled)
        if updated:
            set_path_enabled(path=name, enabled=enabled)
        return updated

    def get_health_status(self) -> list[dict[str, Any]]:
        return [
            {
                "provider": view.name,
                "status": view.health_status.value,
                "latency": round(view.average_latency, 2),
                "failure_rate": view.failure_rate,
                "last_success": view.last_success,
                "last_failure": view.last_failure,
                "consecutive_failures": view.consecutive_failures,
            }
            for view in self.snapshot()
        ]

    def get_provider_stats(self) -> dict[str, dict[str, Any]]:
        return {
            view.name: {
                "enabled": view.enabled,
                "priority": view.priority,
                "health_status": view.health_status.value,
                "success_rate": view.success_rate,
                "average_latency": round(view.average_latency, 2),
                "total_requests": view.total_requests,
            }
            for view in self.snapshot()
        }

    def get_history(self, name: str, limit: int | None = None) -> list[dict[str, Any]]:
        return [sample.to_dict() for sample in self.registry.history.recent(name, limit)]

    def get_configuration(self) -> dict[str, Any]:
        views = sorted(self.registry.snapshot(), key=lambda view: view.priority)
        providers: list[dict[str, Any]] = []
        for view in views:
            executor = self.executors.get(view.name)
            kind = executor.kind if executor is not None else None
            entry: dict[str, Any] = {
                "name": view.name,
                "priority": view.priority,
                "type": "direct" if kind is PathKind.DIRECT else "proxy",
                "configured": executor.configured if executor is not None else False,
            }
            if kind in PRICING_TIERS:
                entry["pricing"] = PRICING_TIERS[kind]
            providers.append(entry)
        return {"providers": providers, "fallback_order": [view.name for view in views]}

    def get_status_payload(self, include_history: bool = False) -> dict[str, Any]:
        views = self.snapshot()
        health = self.get_health_status()
        payload: dict[str, Any] = {
            "timestamp": int(time.time()),
            "status": "operational" if self.registry.list_enabled() else "unavailable",
            "providers": health,
            "statistics": self.get_provider_stats(),
            "summary": {
                "total_providers": len(views),
                "healthy": sum(1 for view in views if view.health_status is HealthStatus.HEALTHY),
                "degraded": sum(1 for view in views if view.health_status is HealthStatus.DEGRADED),
                "unhealthy": sum(1 for view in views if view.health_status is HealthStatus.UNHEALTHY),
                "enabled": sum(1 for view in views if view.enabled),
            },
            "configuration": self.get_configuration(),
        }
        if include_history:
            payload["history"] = {view.name: self.get_history(view.name) for view in views}
        return payload

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> JSONResponse:
    ready_payload = _readiness_payload(request)
    status = 200 if ready_payload["status"] == "ok" else 503
    payload = {"liveliness": "ok", "readiness": ready_payload}
    return JSONResponse(status_code=status, content=payload)


@router.get("/health/liveliness")
async def liveliness() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/readiness")
async def readiness(request: Request) -> JSONResponse:
    payload = _readiness_payload(request)
    status = 200 if payload["status"] == "ok" else 503
    return JSONResponse(status_code=status, content=payload)


def _readiness_payload(request: Request) -> dict[str, object]:
    checks: dict[str, bool] = {}

    hub = getattr(request.app.state, "proxy_hub", None)
    checks["proxy_hub"] = hub is not None
    checks["routable_paths"] = bool(hub is not None and hub.registry.list_enabled())
    checks["health_monitor"] = bool(hub is not None and (hub.monitor.running or not hub.monitor.config.enabled))

    status = "ok" if all(checks.values()) else "degraded"
    return {"status": status, "checks": checks}

from __future__ import annotations

import time
from typing import Any
from urllib.parse import urlsplit

from fastapi import APIRouter, Depends, Query

from proxyhub.hub import ProxyHub, ProxyRequest
from proxyhub.hub.health import DEFAULT_PROBE_URL
from proxyhub.middleware.admin import require_master_key
from proxyhub.models.errors import InvalidRequestError, PathNotFoundError
from proxyhub.models.requests import TogglePathRequest
from proxyhub.routers.dependencies import get_proxy_hub

router = APIRouter(prefix="/proxy", tags=["proxy"])


@router.get("/status")
async def proxy_status(
    history: bool = Query(default=False),
    hub: ProxyHub = Depends(get_proxy_hub),
) -> dict[str, Any]:
    return hub.stats.get_status_payload(include_history=history)


@router.get("/status/{provider}/history")
async def proxy_history(
    provider: str,
    limit: int = Query(default=100, ge=1, le=1000),
    hub: ProxyHub = Depends(get_proxy_hub),
) -> dict[str, Any]:
    if provider not in hub.registry:
        raise PathNotFoundError(message=f"Provider '{provider}' not found", param="provider")
    return {"provider": provider, "history": hub.stats.get_history(provider, limit)}


@router.post("/status/toggle", dependencies=[Depends(require_master_key)])
async def toggle_provider(
    payload: TogglePathRequest,
    hub: ProxyHub = Depends(get_proxy_hub),
) -> dict[str, Any]:
    if not hub.set_enabled(payload.provider, payload.enabled):
        raise PathNotFoundError(message=f"Provider '{payload.provider}' not found", param="provider")
    return {
        "provider": payload.provider,
        "enabled": payload.enabled,
        "message": f"Provider {payload.provider} {'enabled' if payload.enabled else 'disabled'}",
    }


def _summarize(results: list[dict[str, Any]]) -> dict[str, Any]:
    successful = [entry for entry in results if entry["success"]]
    fastest = min(successful, key=lambda entry: entry["latency"], default=None)
    return {
        "total": len(results),
        "successful": len(successful),
        "failed": len(results) - len(successful),
        "fastest_provider": fastest["provider_used"] if fastest else "",
        "fastest_latency": fastest["latency"] if fastest else 0,
    }


@router.get("/test")
async def test_proxy(
    url: str = Query(default=DEFAULT_PROBE_URL, min_length=1),
    timeout: float = Query(default=15.0, gt=0, le=120),
    hub: ProxyHub = Depends(get_proxy_hub),
) -> dict[str, Any]:
    parts = urlsplit(url)
    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise InvalidRequestError(message="url must be an absolute http(s) URL", param="url")

    request = ProxyRequest(url=url, timeout=timeout)
    started = time.monotonic()
    response = await hub.dispatch(request)
    elapsed_ms = (time.monotonic() - started) * 1000

    results: list[dict[str, Any]] = [
        {
            "provider": "auto-fallback",
            "provider_used": response.provider,
            "success": response.success,
            "status_code": response.status_code,
            "latency": round(elapsed_ms, 2),
            "error": response.error,
        }
    ]
    for name, path_response in (await hub.try_each_path(request)).items():
        results.append(
            {
                "provider": name,
                "provider_used": name,
                "success": path_response.success,
                "status_code": path_response.status_code,
                "latency": round(path_response.latency, 2),
                "error": path_response.error,
            }
        )

    summary = _summarize(results)
    return {
        "test_url": url,
        "response": {
            "provider": response.provider,
            "success": response.success,
            "status_code": response.status_code,
            "latency": round(response.latency, 2),
            "total_latency": round(elapsed_ms, 2),
            "error": response.error,
        },
        "results": results,
        "summary": summary,
        "message": "Proxy tests completed" if summary["successful"] else "All proxy tests failed",
    }


@router.post("/probe", dependencies=[Depends(require_master_key)])
async def probe_paths(hub: ProxyHub = Depends(get_proxy_hub)) -> dict[str, Any]:
    results = await hub.monitor.run_once()
    return {
        "results": results,
        "providers": hub.stats.get_health_status(),
    }

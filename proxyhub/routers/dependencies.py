from __future__ import annotations

from fastapi import Request

from proxyhub.hub import ProxyHub
from proxyhub.models.errors import ServiceUnavailableError


def get_proxy_hub(request: Request) -> ProxyHub:
    hub = getattr(request.app.state, "proxy_hub", None)
    if hub is None:
        raise ServiceUnavailableError(message="Proxy hub not initialized")
    return hub

from proxyhub.routers.health import router as health_router
from proxyhub.routers.metrics import router as metrics_router
from proxyhub.routers.proxy import router as proxy_router

__all__ = ["health_router", "metrics_router", "proxy_router"]

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from proxyhub.config import build_app_config, get_settings
from proxyhub.hub import ProxyHub
from proxyhub.middleware.errors import register_exception_handlers
from proxyhub.routers import health_router, metrics_router, proxy_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    cfg = build_app_config(settings)
    app.state.settings = settings
    app.state.app_config = cfg

    hub = ProxyHub.from_config(cfg)
    app.state.proxy_hub = hub
    hub.start()

    logger.info("application startup complete")
    try:
        yield
    finally:
        await hub.aclose()


def create_app() -> FastAPI:
    app = FastAPI(title="ProxyHub", version="0.1.0", lifespan=lifespan)
    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(proxy_router)

    return app


app = create_app()


def cli():
    """Command line entry point for the hub service."""
    import argparse

    import uvicorn

    parser = argparse.ArgumentParser(description="ProxyHub outbound request service")
    parser.add_argument("--host", "-H", help="Host to bind to", default="0.0.0.0")
    parser.add_argument("--port", "-p", help="Port to bind to", type=int, default=8000)
    parser.add_argument("--reload", help="Enable auto-reload", action="store_true")

    args = parser.parse_args()

    uvicorn.run(
        "proxyhub.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == "__main__":
    cli()

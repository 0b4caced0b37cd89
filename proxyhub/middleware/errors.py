from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from proxyhub.models.errors import HubError

logger = logging.getLogger(__name__)


def _serialize_error(exc: HubError) -> dict[str, object]:
    return {
        "error": {
            "message": exc.message,
            "type": exc.error_type,
            "param": getattr(exc, "param", None),
            "code": getattr(exc, "code", None),
        }
    }


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HubError)
    async def hub_error_handler(_: Request, exc: HubError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=_serialize_error(exc))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(_: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled exception", exc_info=exc)
        hub_error = HubError()
        return JSONResponse(status_code=hub_error.status_code, content=_serialize_error(hub_error))

from __future__ import annotations

from fastapi import Header, Request

from proxyhub.models.errors import AuthenticationError, ServiceUnavailableError


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    if not authorization.lower().startswith("bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None


async def require_master_key(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_master_key: str | None = Header(default=None, alias="X-Master-Key"),
) -> str:
    configured = getattr(getattr(request.app.state, "settings", None), "master_key", None)
    if not configured:
        raise ServiceUnavailableError(message="Master key not configured")

    provided = x_master_key or _extract_bearer_token(authorization)
    if provided != configured:
        raise AuthenticationError()

    return configured

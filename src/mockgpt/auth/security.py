"""Static bearer-token authentication."""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status

logger = logging.getLogger("mockgpt.auth")


def _extract_bearer_token(request: Request) -> str | None:
    auth = request.headers.get("Authorization")
    if not auth or not auth.startswith("Bearer "):
        return None
    return auth.split(" ", 1)[1]


async def api_key_auth(request: Request) -> str | None:
    """FastAPI dependency: accept the request if its bearer token is configured.

    With no keys configured every request is accepted.
    """
    valid_keys: list[str] = request.app.state.settings.api_keys
    if not valid_keys:
        return None

    key = _extract_bearer_token(request)
    if key is not None and key in valid_keys:
        return key

    logger.info("Rejected request to %s: missing or unknown API key", request.url.path)
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

"""Dependency definitions for the Larder API server."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from larder.config import get_settings
from larder.engine.facade import LarderEngine


async def get_engine(request: Request) -> LarderEngine:
    """Return the application's engine, loading persisted state on first use."""

    engine: LarderEngine = request.app.state.engine
    if not engine.loaded:
        await engine.load()
    return engine


def require_api_token(
    request: Request,
    settings = Depends(get_settings),
) -> None:
    """Ensure requests carry the configured API token when required."""

    token = settings.api_token
    if not token:
        return

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.split("Bearer ")[-1].strip() == token:
        return

    if request.headers.get("X-API-Key") == token:
        return

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

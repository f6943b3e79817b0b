"""FastAPI dependency injection for settings and the shared HTTP client.

Usage in route handlers::

    @router.get("/session")
    async def mint(settings: Settings, client: HttpClient) -> dict:
        ...
"""

from __future__ import annotations

from typing import Annotated

import httpx
from fastapi import Depends, HTTPException, Request, status

from mentarie.realtime.settings import MentarieSettings, get_settings


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Return the pooled upstream client created during lifespan."""
    client: httpx.AsyncClient | None = getattr(request.app.state, "http_client", None)
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="HTTP client not initialised.",
        )
    return client


Settings = Annotated[MentarieSettings, Depends(get_settings)]
HttpClient = Annotated[httpx.AsyncClient, Depends(get_http_client)]

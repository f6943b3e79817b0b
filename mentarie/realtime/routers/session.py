"""Ephemeral session credential endpoint.

Clients call ``GET /api/session`` right before connecting; the server mints a
short-lived realtime session upstream with its own API key and passes the
upstream JSON (including ``client_secret.value``) straight through.
"""

from __future__ import annotations

from typing import Any

import httpx
from fastapi import APIRouter, HTTPException, status
from loguru import logger

from mentarie.realtime.agents import ALL_AGENT_SETS, DEFAULT_AGENT_SET_KEY
from mentarie.realtime.credentials import extract_client_secret
from mentarie.realtime.deps import HttpClient, Settings

router = APIRouter(tags=["session"])


@router.get("/session")
async def create_session(settings: Settings, client: HttpClient) -> dict[str, Any]:
    """Mint an ephemeral realtime session."""
    if settings.openai_api_key is None:
        raise HTTPException(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Realtime API key not configured (MENTARIE_OPENAI_API_KEY is unset).",
        )

    try:
        response = await client.post(
            settings.sessions_url,
            headers={"Authorization": f"Bearer {settings.openai_api_key.get_secret_value()}"},
            json={"model": settings.realtime_model, "voice": settings.voice},
            timeout=settings.request_timeout,
        )
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as e:
        logger.error("Upstream session mint failed: {} {}", e.response.status_code, e.response.text[:200])
        raise HTTPException(
            status.HTTP_502_BAD_GATEWAY,
            detail=f"Upstream session request failed ({e.response.status_code}).",
        ) from e
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Upstream session mint failed: {}", e)
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, detail="Upstream session request failed.") from e

    if extract_client_secret(data) is None:
        logger.error("Upstream session response carried no client_secret")
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, detail="Upstream response has no client secret.")
    return data


@router.get("/agent-sets")
async def list_agent_sets() -> dict[str, Any]:
    """Names of the built-in agent sets."""
    return {"default": DEFAULT_AGENT_SET_KEY, "agent_sets": sorted(ALL_AGENT_SETS)}

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.routing import APIRouter
from loguru import logger

from mentarie.realtime.log import setup_logging
from mentarie.realtime.settings import get_settings


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # -- Startup ---------------------------------------------------------------
    settings = get_settings()
    setup_logging(settings.log_level, serialize=settings.log_json, show_wire=settings.log_wire)

    logger.info("Credential API starting (host={}, port={})", settings.host, settings.port)
    if settings.openai_api_key is None:
        logger.warning("MENTARIE_OPENAI_API_KEY not set -- /api/session will return 503")

    _app.state.http_client = httpx.AsyncClient(timeout=settings.request_timeout)

    yield

    # -- Shutdown --------------------------------------------------------------
    await _app.state.http_client.aclose()
    _app.state.http_client = None
    logger.info("Credential API stopped")


app = FastAPI(title="Mentarie Realtime", lifespan=lifespan)

# ---------------------------------------------------------------------------
# API router -- all backend endpoints live under /api
# ---------------------------------------------------------------------------
api = APIRouter(prefix="/api")


@api.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


from mentarie.realtime.routers.session import router as session_router  # noqa: E402

api.include_router(session_router)

app.include_router(api)

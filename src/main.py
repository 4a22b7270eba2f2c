"""Entry point for the telephony session tracking service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.dependencies import get_platform_client, get_registry
from api.routes import router as api_router
from config.settings import get_settings
from telephony.errors import CallControlError, RegistryNotConfiguredError

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        registry = get_registry()
    except RegistryNotConfiguredError:
        LOGGER.warning("PLATFORM_ACCESS_TOKEN not configured; session tracking disabled")
        yield
        return

    await registry.initialize()
    yield
    await get_platform_client().aclose()


settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)

app = FastAPI(
    title="Telephony Session Tracker",
    description="Keeps an in-memory view of live telephony sessions in sync with the platform.",
    lifespan=lifespan,
)
app.include_router(api_router, prefix="/api")


@app.exception_handler(CallControlError)
async def call_control_error_handler(request: Request, exc: CallControlError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

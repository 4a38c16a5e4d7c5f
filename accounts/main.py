"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from accounts import __version__
from accounts.api.errors import register_exception_handlers
from accounts.api.v1 import router as v1_router
from accounts.core.config import settings
from accounts.core.logging_config import setup_logging

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger("accounts")

app = FastAPI(
    title="Accounts API",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Refresh tokens travel in a cookie, so origins must be explicit (no "*").
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = int((time.perf_counter() - start) * 1000)
    logger.info("%s %s -> %s (%dms)", request.method, request.url.path, response.status_code, ms)
    return response


register_exception_handlers(app)
app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Accounts API"}

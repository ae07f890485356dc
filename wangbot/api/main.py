"""
wangbot.api.main — FastAPI application entry point
=====================================================

Dashboard backend: renders profile cards as SVG, stores per-member card
styles, and serves read-only leaderboard / member data.

Run with::

    uvicorn wangbot.api.main:app --reload --port 5000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from wangbot.api.deps import get_engine  # noqa: E402
from wangbot.api.routes.profile_card import router as profile_card_router  # noqa: E402
from wangbot.api.routes.public import router as public_router  # noqa: E402
from wangbot.database.engine import init_db  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine."""
    engine = get_engine()
    init_db(engine)
    logger.info("Wangbot API started — engine ready (%s)", engine.url.database)
    yield
    logger.info("Wangbot API shutting down")


app = FastAPI(
    title="Wangbot Dashboard API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(profile_card_router, prefix="/api")
app.include_router(public_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}

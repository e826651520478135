"""HelpYT Directory - FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from config import get_settings
from database import engine
from models import Base
from routers import (
    bookmarks_router,
    channels_router,
    cron_router,
    metadata_router,
    users_router,
    youtube_router,
)
from services.redis_store import RedisStore
from services.scheduler import start_scheduler, stop_scheduler
from services.stats_events import channel_events, stats_regeneration_handler
from services.stats_rollup import get_rollup_engine
from middleware.rate_limit import limiter, rate_limit_exceeded_handler

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

regenerate_channel_stats = stats_regeneration_handler(get_rollup_engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - create tables on startup, cleanup on shutdown."""
    # Startup: create database tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Check Redis connectivity
    redis_ok = await RedisStore.health_check()
    if redis_ok:
        print("✓ Redis connection established")
    else:
        print("⚠ Redis not available - metadata lookups will not be cached")

    if not settings.debug and settings.auth_jwt_secret == "dev-secret-change-in-production":
        print("⚠ SECURITY WARNING: Using default auth JWT secret in production!")
        print("  Set AUTH_JWT_SECRET to the auth provider's signing secret.")

    if not settings.debug and not settings.cron_secret:
        print("⚠ CRON_SECRET not set - /api/cron/generate-stats is open to anyone")

    # Regenerate statistics after clicks and edits
    channel_events.subscribe(regenerate_channel_stats)

    # Optional in-process daily roll-up
    start_scheduler()

    yield

    # Shutdown: stop scheduler, drop hooks and close Redis connection pool
    stop_scheduler()
    channel_events.unsubscribe(regenerate_channel_stats)
    await RedisStore.close()
    await engine.dispose()


app = FastAPI(
    title="HelpYT Directory API",
    description="Community-curated directory of YouTube channels",
    version="0.1.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(bookmarks_router)
app.include_router(channels_router)
app.include_router(cron_router)
app.include_router(metadata_router)
app.include_router(users_router)
app.include_router(youtube_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "helpyt-directory"}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "HelpYT Directory API",
        "version": "0.1.0",
        "docs": "/docs",
    }

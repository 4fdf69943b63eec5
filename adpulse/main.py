"""AdPulse — FastAPI Application Entry Point.

Marketing analytics backend for quick-commerce platforms: syncs ads and
sales sheets into daily metrics and serves dashboard rollups.
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adpulse.config import settings
from adpulse.database import check_connection, init_db
from adpulse.scheduler.jobs import start_scheduler, stop_scheduler
from adpulse.api.source_routes import router as source_router
from adpulse.api.sync_routes import router as sync_router
from adpulse.api.metrics_routes import router as metrics_router
from adpulse.core.logging import get_logger

logger = get_logger("main")


IS_SERVERLESS = bool(
    os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME")
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("🚀 AdPulse starting up...")
    logger.info(f"🌍 Environment: {'SERVERLESS' if IS_SERVERLESS else 'LOCAL'}")
    db_ok = check_connection()
    if db_ok:
        try:
            init_db()
        except Exception as e:
            logger.error(f"❌ Table creation failed: {e}")
    else:
        logger.error("❌ Database NOT connected — endpoints will fail")
    if not IS_SERVERLESS:
        start_scheduler()
    yield
    if not IS_SERVERLESS:
        stop_scheduler()
    logger.info("AdPulse shut down")


app = FastAPI(
    title="AdPulse",
    description="Sync ads and sales sheets from quick-commerce platforms into daily metrics and dashboard rollups.",
    version=settings.app_version,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(source_router)
app.include_router(sync_router)
app.include_router(metrics_router)


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "adpulse",
        "version": settings.app_version,
    }

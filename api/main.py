"""
Local AI Authority API

FastAPI application that:
1. Accepts business profiles and generates their prompt sets
2. Queues authority runs and executes them in the background
3. Serves run results with scores, highlights and an action plan
4. Runs the free, cached local visibility scan
"""

import logging
import sys
from datetime import datetime

from fastapi import FastAPI

from src import __version__
from src.database import init_db, check_db_connection
from src.services.run_queue import get_run_queue
from src.utils.config import get_settings
from api.local_authority import router as local_authority_router
from api.local_scan import router as local_scan_router

# Configure logging to stdout
logging.basicConfig(
    level=getattr(logging, get_settings().LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
    force=True,
)
logger = logging.getLogger(__name__)

# Quiet down chatty loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

app = FastAPI(
    title="Local AI Authority Engine",
    description="Measures how often AI assistants recommend a local business",
    version=__version__,
)

app.include_router(local_authority_router)
app.include_router(local_scan_router)


# ============================================================================
# STARTUP - Initialize Database
# ============================================================================

@app.on_event("startup")
async def startup_event():
    """Initialize database on startup."""
    logger.info("Initializing database...")
    init_db()
    if check_db_connection():
        logger.info("Database connection verified")
    else:
        logger.warning("Database connection check failed - continuing anyway")


# ============================================================================
# HEALTH
# ============================================================================

@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Local AI Authority Engine"}


@app.get("/api/health")
async def health():
    """Detailed health check including database status."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": __version__,
        "database_connected": check_db_connection(),
        "runs_in_queue": len(get_run_queue().list_active()),
    }


# ============================================================================
# RUN SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
